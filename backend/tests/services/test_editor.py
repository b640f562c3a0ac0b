"""Tests for record editors and the patient workspace."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select

from patient_records.core.errors import (
    PersistenceError,
    RecordsError,
    SaveInProgressError,
    ValidationError,
)
from patient_records.models.history import SECTION_CATALOG
from patient_records.models.personal_data import PatientPersonalData
from patient_records.services.records.editor import RecordEditor
from patient_records.services.records.forms import (
    ORIENTATION,
    PATIENT_HISTORY,
    PERSONAL_DATA,
)
from patient_records.services.records.identity import PatientIdentityResolver
from patient_records.services.records.store import RecordSectionStore
from patient_records.services.records.upsert import UpsertCoordinator
from patient_records.services.records.workspace import PatientWorkspace


def _editor(session, schema, patient_id, policy, section=None):
    return RecordEditor(
        RecordSectionStore(session, schema, policy),
        UpsertCoordinator(session, schema, policy),
        patient_id,
        section=section,
    )


class TestRecordEditor:
    @pytest.mark.asyncio
    async def test_dirty_law(self, session, fast_policy, patient):
        editor = _editor(session, PERSONAL_DATA, patient.id, fast_policy)
        await editor.load()
        assert editor.dirty is False

        editor.set_field("first_name", "Jane")
        assert editor.dirty is True

        await editor.save()
        assert editor.dirty is False
        assert editor.draft.id is not None

    @pytest.mark.asyncio
    async def test_jane_doe_saves_insert_then_update(self, session, fast_policy, patient):
        editor = _editor(session, PERSONAL_DATA, patient.id, fast_policy)
        await editor.load()
        assert editor.draft.id is None

        editor.set_field("first_name", "Jane")
        first = await editor.save()
        editor.set_field("last_name", "Doe")
        second = await editor.save()

        assert second.id == first.id
        count = await session.scalar(
            select(func.count())
            .select_from(PatientPersonalData)
            .where(PatientPersonalData.patient_id == patient.id)
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_failed_save_keeps_edits(self, session, fast_policy, patient):
        editor = _editor(session, PERSONAL_DATA, patient.id, fast_policy)
        await editor.load()
        editor.set_field("city", "Irbid")
        editor.coordinator.save = AsyncMock(side_effect=PersistenceError("connection refused"))

        with pytest.raises(PersistenceError):
            await editor.save()

        assert editor.dirty is True
        assert editor.busy is False
        assert editor.draft.values["city"] == "Irbid"
        assert editor.draft.id is None

    @pytest.mark.asyncio
    async def test_second_save_while_busy_rejected(self, session, fast_policy, patient):
        editor = _editor(session, PERSONAL_DATA, patient.id, fast_policy)
        await editor.load()
        release = asyncio.Event()

        async def slow_save(draft):
            await release.wait()
            return draft.with_id("r-1")

        editor.coordinator.save = slow_save
        first = asyncio.create_task(editor.save())
        await asyncio.sleep(0)
        assert editor.busy is True

        with pytest.raises(SaveInProgressError):
            await editor.save()

        release.set()
        saved = await first
        assert saved.id == "r-1"
        assert editor.busy is False

    @pytest.mark.asyncio
    async def test_edit_during_save_stays_dirty(self, session, fast_policy, patient):
        editor = _editor(session, PERSONAL_DATA, patient.id, fast_policy)
        await editor.load()
        editor.set_field("city", "Irbid")
        release = asyncio.Event()

        async def slow_save(draft):
            await release.wait()
            return draft.with_id("r-1")

        editor.coordinator.save = slow_save
        task = asyncio.create_task(editor.save())
        await asyncio.sleep(0)
        editor.set_field("city", "Zarqa")
        release.set()
        await task

        assert editor.draft.id == "r-1"
        assert editor.dirty is True

    @pytest.mark.asyncio
    async def test_invalid_value_leaves_draft_untouched(self, session, fast_policy, patient):
        editor = _editor(session, PERSONAL_DATA, patient.id, fast_policy)
        await editor.load()
        with pytest.raises(ValidationError):
            editor.update({"first_name": "Jane", "birth_date": "yesterday"})
        assert editor.draft.values["first_name"] == ""
        assert editor.dirty is False

    @pytest.mark.asyncio
    async def test_toggle(self, session, fast_policy, patient):
        editor = _editor(session, ORIENTATION, patient.id, fast_policy)
        await editor.load()

        assert editor.toggle("oriented_to_place") is True
        assert editor.dirty is True
        assert editor.toggle("oriented_to_place") is False
        assert editor.dirty is False

        with pytest.raises(ValidationError):
            editor.toggle("can_fly")

    @pytest.mark.asyncio
    async def test_images(self, session, fast_policy, patient):
        editor = _editor(session, PATIENT_HISTORY, patient.id, fast_policy, section="examination")
        await editor.load()

        editor.add_image("p/examination/a.png")
        editor.add_image("data:image/png;base64,AAAA")
        assert editor.remove_image(0) == "p/examination/a.png"
        assert editor.value("image_urls") == ["data:image/png;base64,AAAA"]

        with pytest.raises(ValidationError):
            editor.remove_image(5)

        saved = await editor.save()
        reloaded = await _editor(
            session, PATIENT_HISTORY, patient.id, fast_policy, section="examination"
        ).load()
        assert reloaded == saved

    @pytest.mark.asyncio
    async def test_unloaded_editor(self, session, fast_policy, patient):
        editor = _editor(session, PERSONAL_DATA, patient.id, fast_policy)
        assert editor.loaded is False
        with pytest.raises(RecordsError):
            editor.set_field("first_name", "Jane")

    def test_schema_mismatch_rejected(self):
        session = MagicMock()
        with pytest.raises(ValueError):
            RecordEditor(
                RecordSectionStore(session, PERSONAL_DATA),
                UpsertCoordinator(session, ORIENTATION),
                "p-1",
            )


class TestPatientWorkspace:
    @pytest.mark.asyncio
    async def test_register_builds_every_editor(self, session, fast_policy):
        workspace = PatientWorkspace(session, policy=fast_policy)
        await workspace.register("Jane Doe", 34, "Female")

        assert tuple(workspace.history()) == SECTION_CATALOG
        assert workspace.editor("personal_data").loaded
        assert workspace.editor("orientation").loaded
        assert workspace.editor("admission_discharge").loaded
        assert workspace.dirty is False

    @pytest.mark.asyncio
    async def test_dirty_aggregates_and_notifies(self, session, fast_policy, patient):
        workspace = PatientWorkspace(session, policy=fast_policy)
        seen = []
        workspace.subscribe(seen.append)
        await workspace.open_by_number(patient.patient_number)

        editor = workspace.editor("history", "lab_results")
        editor.set_field("content", "Hb 13.2")
        assert workspace.dirty is True
        assert workspace.dirty_editors() == [("history", "lab_results")]
        assert workspace.allows_navigation() is False

        await editor.save()
        assert workspace.dirty is False
        assert seen == [True, False]

    @pytest.mark.asyncio
    async def test_patient_change_rebuilds_editors(self, session, fast_policy, patient):
        resolver = PatientIdentityResolver(session, policy=fast_policy)
        workspace = PatientWorkspace(session, resolver=resolver, policy=fast_policy)
        await workspace.open_by_number(patient.patient_number)
        old_editor = workspace.editor("personal_data")
        old_editor.set_field("first_name", "Jane")

        other = await resolver.register_patient("John Roe", 50, "Male")
        await workspace.load()

        new_editor = workspace.editor("personal_data")
        assert new_editor is not old_editor
        assert new_editor.patient_id == other.id
        assert workspace.dirty is False

        resolver.clear()
        with pytest.raises(RecordsError):
            workspace.editor("personal_data")

    @pytest.mark.asyncio
    async def test_unknown_patient_number(self, session, fast_policy):
        workspace = PatientWorkspace(session, policy=fast_policy)
        assert await workspace.open_by_number("PT-00000000-0000") is None
        assert workspace.editors == {}

    @pytest.mark.asyncio
    async def test_concurrent_saves_of_two_history_sections(self, session, fast_policy):
        workspace = PatientWorkspace(session, policy=fast_policy)
        await workspace.register("Jane Doe", 34, "Female")
        investigations = workspace.editor("history", "investigations")
        examination = workspace.editor("history", "examination")
        investigations.set_field("content", "CBC ordered")
        examination.set_field("content", "Chest clear")

        first, second = await asyncio.gather(investigations.save(), examination.save())

        assert first.id != second.id
        assert workspace.dirty is False
        sections = await RecordSectionStore(
            session, PATIENT_HISTORY, fast_policy
        ).load_sections(workspace.patient.id)
        assert sections["investigations"].values["content"] == "CBC ordered"
        assert sections["examination"].values["content"] == "Chest clear"

    @pytest.mark.asyncio
    async def test_concurrent_saves_of_two_forms(self, session, fast_policy):
        workspace = PatientWorkspace(session, policy=fast_policy)
        await workspace.register("Jane Doe", 34, "Female")
        personal = workspace.editor("personal_data")
        orientation = workspace.editor("orientation")
        personal.set_field("first_name", "Jane")
        orientation.toggle("oriented_to_place")

        await asyncio.gather(personal.save(), orientation.save())

        assert personal.draft.id is not None
        assert orientation.draft.id is not None
        assert workspace.dirty is False

    @pytest.mark.asyncio
    async def test_active_patient_readable_after_conflict_save(
        self, session_maker, session, fast_policy
    ):
        workspace = PatientWorkspace(session, policy=fast_policy)
        await workspace.register("Jane Doe", 34, "Female")
        patient_id = workspace.patient.id
        editor = workspace.editor("personal_data")
        editor.set_field("first_name", "New")

        # Another client saved first; this editor still believes no row exists
        async with session_maker() as other:
            other.add(PatientPersonalData(id="existing", patient_id=patient_id, first_name="Old"))
            await other.commit()

        saved = await editor.save()

        assert saved.id == "existing"
        assert workspace.patient.full_name == "Jane Doe"
        assert workspace.patient.id == patient_id

    @pytest.mark.asyncio
    async def test_active_patient_readable_after_failed_save(self, session, fast_policy):
        workspace = PatientWorkspace(session, policy=fast_policy)
        patient = await workspace.register("Jane Doe", 34, "Female")
        editor = workspace.editor("personal_data")
        editor.draft.id = "gone"
        editor.set_field("city", "Irbid")

        with pytest.raises(PersistenceError):
            await editor.save()

        assert workspace.patient.patient_number == patient.patient_number
        assert editor.dirty is True
        assert editor.draft.values["city"] == "Irbid"
