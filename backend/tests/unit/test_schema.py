"""Tests for record field schemas and drafts."""

from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from patient_records.core.errors import ValidationError
from patient_records.models.history import SECTION_CATALOG
from patient_records.models.orientation import ORIENTATION_QUESTIONS
from patient_records.services.records.forms import (
    ADMISSION_DISCHARGE,
    FORMS,
    ORIENTATION,
    PATIENT_HISTORY,
    PERSONAL_DATA,
    get_form,
)


class TestFieldCoercion:
    def test_text_none_becomes_empty(self):
        assert PERSONAL_DATA.field("first_name").coerce(None) == ""

    def test_text_rejects_non_string(self):
        with pytest.raises(ValidationError) as exc_info:
            PERSONAL_DATA.field("first_name").coerce(42)
        assert exc_info.value.field == "first_name"

    def test_text_choices(self):
        sex = PERSONAL_DATA.field("sex")
        assert sex.coerce("female") == "female"
        assert sex.coerce("") == ""
        with pytest.raises(ValidationError):
            sex.coerce("Female")

    @pytest.mark.parametrize("blank", ["", None])
    def test_blank_date_is_none(self, blank):
        assert PERSONAL_DATA.field("birth_date").coerce(blank) is None

    def test_date_parses_iso(self):
        assert PERSONAL_DATA.field("birth_date").coerce("1990-04-02") == date(1990, 4, 2)

    @pytest.mark.parametrize("bad", ["02/04/1990", "1990-13-01", 19900402])
    def test_date_rejects_malformed(self, bad):
        with pytest.raises(ValidationError):
            PERSONAL_DATA.field("birth_date").coerce(bad)

    def test_date_rejects_timestamp(self):
        with pytest.raises(ValidationError):
            PERSONAL_DATA.field("birth_date").coerce(datetime(1990, 4, 2, 10, 0))

    def test_time_parses_iso(self):
        assert ADMISSION_DISCHARGE.field("admission_time").coerce("08:30") == time(8, 30)
        assert ADMISSION_DISCHARGE.field("admission_time").coerce("") is None

    def test_flags_fill_missing_keys(self):
        flags = ORIENTATION.field("questions").coerce({"oriented_to_person": True})
        assert set(flags) == set(ORIENTATION_QUESTIONS)
        assert flags["oriented_to_person"] is True
        assert flags["oriented_to_time"] is False

    def test_flags_reject_unknown_key(self):
        with pytest.raises(ValidationError):
            ORIENTATION.field("questions").coerce({"can_fly": True})

    def test_flags_reject_non_bool(self):
        with pytest.raises(ValidationError):
            ORIENTATION.field("questions").coerce({"oriented_to_person": "yes"})

    def test_list_rejects_plain_string(self):
        with pytest.raises(ValidationError):
            PATIENT_HISTORY.field("image_urls").coerce("a.png")


class TestStorageConversion:
    def test_empty_date_goes_out_as_null(self):
        assert PERSONAL_DATA.field("birth_date").to_storage(None) is None

    def test_text_goes_out_as_empty_string(self):
        assert PERSONAL_DATA.field("city").to_storage(None) == ""

    def test_stale_flag_keys_dropped_on_load(self):
        flags = ORIENTATION.field("questions").from_storage(
            {"oriented_to_person": True, "retired_question": True}
        )
        assert "retired_question" not in flags
        assert flags["oriented_to_person"] is True

    def test_null_list_loads_as_empty(self):
        assert PATIENT_HISTORY.field("image_urls").from_storage(None) == []


class TestRecordSchema:
    def test_forms_registry(self):
        assert set(FORMS) == {"personal_data", "history", "orientation", "admission_discharge"}
        assert get_form("history") is PATIENT_HISTORY
        with pytest.raises(ValidationError):
            get_form("billing")

    def test_blank_draft_is_normalized(self):
        draft = PERSONAL_DATA.blank_draft("p-1")
        assert draft.id is None
        assert draft.values["first_name"] == ""
        assert draft.values["birth_date"] is None

    def test_history_requires_catalog_section(self):
        assert PATIENT_HISTORY.sections == SECTION_CATALOG
        with pytest.raises(ValidationError):
            PATIENT_HISTORY.blank_draft("p-1", "hobbies")
        with pytest.raises(ValidationError):
            PERSONAL_DATA.blank_draft("p-1", "complains")

    def test_build_draft_rejects_unknown_field(self):
        with pytest.raises(ValidationError):
            PERSONAL_DATA.build_draft("p-1", {"shoe_size": "42"})

    def test_row_values_carry_every_field(self):
        draft = PERSONAL_DATA.build_draft("p-1", {"first_name": "Jane"})
        values = PERSONAL_DATA.row_values(draft)
        assert set(values) == set(PERSONAL_DATA.field_names)
        assert values["first_name"] == "Jane"
        assert values["last_name"] == ""
        assert values["registration_date"] is None

    def test_row_values_revalidate_hand_edited_draft(self):
        draft = PERSONAL_DATA.blank_draft("p-1")
        draft.values["birth_date"] = "not a date"
        with pytest.raises(ValidationError):
            PERSONAL_DATA.row_values(draft)

    def test_row_values_reject_foreign_draft(self):
        draft = ORIENTATION.blank_draft("p-1")
        with pytest.raises(ValidationError):
            PERSONAL_DATA.row_values(draft)

    def test_draft_from_row(self):
        row = SimpleNamespace(
            id="r-1",
            patient_id="p-1",
            section_type="examination",
            content=None,
            image_urls=None,
        )
        draft = PATIENT_HISTORY.draft_from_row(row)
        assert draft.id == "r-1"
        assert draft.section == "examination"
        assert draft.values == {"content": "", "image_urls": []}


class TestDraft:
    def test_copy_is_deep(self):
        draft = ORIENTATION.blank_draft("p-1")
        clone = draft.copy()
        clone.values["questions"]["oriented_to_person"] = True
        assert draft.values["questions"]["oriented_to_person"] is False

    def test_key_ignores_row_id(self):
        draft = PATIENT_HISTORY.blank_draft("p-1", "education")
        assert draft.key == draft.with_id("r-9").key
        assert draft.with_id("r-9").is_new is False
