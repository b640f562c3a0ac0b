"""Tests for loading record drafts."""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from patient_records.core.errors import ConsistencyError, ValidationError
from patient_records.models.history import SECTION_CATALOG, PatientHistory
from patient_records.models.orientation import ORIENTATION_QUESTIONS
from patient_records.models.personal_data import PatientPersonalData
from patient_records.services.records.forms import ORIENTATION, PATIENT_HISTORY, PERSONAL_DATA
from patient_records.services.records.store import RecordSectionStore


@pytest.mark.asyncio
async def test_singleton_without_row_is_blank(session, fast_policy, patient):
    draft = await RecordSectionStore(session, PERSONAL_DATA, fast_policy).load(patient.id)
    assert draft.id is None
    assert draft.patient_id == patient.id
    assert draft.values["first_name"] == ""
    assert draft.values["birth_date"] is None


@pytest.mark.asyncio
async def test_singleton_loads_stored_row(session, fast_policy, patient):
    session.add(
        PatientPersonalData(
            id="row-1", patient_id=patient.id, first_name="Jane", birth_date=date(1990, 4, 2)
        )
    )
    await session.commit()

    draft = await RecordSectionStore(session, PERSONAL_DATA, fast_policy).load(patient.id)
    assert draft.id == "row-1"
    assert draft.values["first_name"] == "Jane"
    assert draft.values["middle_name"] == ""
    assert draft.values["birth_date"] == date(1990, 4, 2)


@pytest.mark.asyncio
async def test_orientation_flags_always_complete(session, fast_policy, patient):
    draft = await RecordSectionStore(session, ORIENTATION, fast_policy).load(patient.id)
    assert draft.values["questions"] == {key: False for key in ORIENTATION_QUESTIONS}


@pytest.mark.asyncio
async def test_duplicate_singleton_rows_are_consistency_error(session, fast_policy):
    store = RecordSectionStore(session, PERSONAL_DATA, fast_policy)
    rows = [
        SimpleNamespace(id=f"row-{i}", patient_id="p-1", **PERSONAL_DATA.blank_draft("p-1").values)
        for i in range(2)
    ]
    with patch.object(store, "_fetch", AsyncMock(return_value=rows)):
        with pytest.raises(ConsistencyError) as exc_info:
            await store.load("p-1")
    assert exc_info.value.count == 2


@pytest.mark.asyncio
async def test_sections_prepopulated_in_catalog_order(session, fast_policy, patient):
    session.add(
        PatientHistory(
            id="h-1",
            patient_id=patient.id,
            section_type="lab_results",
            content="Hb 13.2",
            image_urls=["p/lab_results/a.png"],
        )
    )
    await session.commit()

    drafts = await RecordSectionStore(session, PATIENT_HISTORY, fast_policy).load_sections(
        patient.id
    )

    assert tuple(drafts) == SECTION_CATALOG
    assert drafts["lab_results"].id == "h-1"
    assert drafts["lab_results"].values["content"] == "Hb 13.2"
    assert drafts["examination"].id is None
    assert drafts["examination"].values == {"content": "", "image_urls": []}


@pytest.mark.asyncio
async def test_load_single_section(session, fast_policy, patient):
    store = RecordSectionStore(session, PATIENT_HISTORY, fast_policy)
    draft = await store.load_section(patient.id, "education")
    assert draft.section == "education"
    assert draft.id is None

    with pytest.raises(ValidationError):
        await store.load_section(patient.id, "hobbies")


@pytest.mark.asyncio
async def test_wrong_shape_calls_rejected(session, fast_policy):
    with pytest.raises(ValidationError):
        await RecordSectionStore(session, PATIENT_HISTORY, fast_policy).load("p-1")
    with pytest.raises(ValidationError):
        await RecordSectionStore(session, PERSONAL_DATA, fast_policy).load_sections("p-1")
