"""Tests for the administrative CLI."""

from unittest.mock import patch

import pytest

from patient_records import cli


class TestParser:
    def test_register_arguments(self):
        args = cli.build_parser().parse_args(
            ["register", "--name", "Jane Doe", "--age", "34", "--gender", "Female"]
        )
        assert (args.name, args.age, args.gender) == ("Jane Doe", "34", "Female")
        assert args.func is cli.cmd_register

    def test_gender_choices_enforced(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(
                ["register", "--name", "Jane", "--age", "34", "--gender", "F"]
            )

    def test_version_command(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["version"])
        assert exc_info.value.code == 0
        assert "Version:" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 0
        assert "commands" in capsys.readouterr().out


class TestCommands:
    @pytest.mark.asyncio
    async def test_register_then_lookup(self, session_maker, capsys):
        with patch("patient_records.models.base.async_session_maker", session_maker):
            assert await cli.register_patient("Jane Doe", "34", "Female") is True
            out = capsys.readouterr().out
            number = next(
                line.split(":", 1)[1].strip()
                for line in out.splitlines()
                if "Patient number" in line
            )

            assert await cli.lookup_patient(number) is True
            assert "Jane Doe" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_register_rejects_bad_age(self, session_maker, capsys):
        with patch("patient_records.models.base.async_session_maker", session_maker):
            assert await cli.register_patient("Jane Doe", "old", "Female") is False
        assert "Age" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_lookup_miss(self, session_maker, capsys):
        with patch("patient_records.models.base.async_session_maker", session_maker):
            assert await cli.lookup_patient("PT-19000101-0001") is False
        assert "No patient" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_check_database(self, session_maker):
        with patch("patient_records.models.base.async_session_maker", session_maker):
            assert await cli.check_database() is True
