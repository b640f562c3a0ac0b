"""Singleton record endpoints: personal data, orientation, admission/discharge.

GET always answers with a record; a patient who has never been saved gets
a blank one with a null id. PUT merges the given fields into the stored
record and saves the whole record.
"""

from typing import Any

from fastapi import APIRouter
from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.api.v1.deps import CurrentPatient, DbSession
from patient_records.api.v1.payloads import (
    AdmissionDischargePayload,
    AdmissionDischargeResponse,
    OrientationPayload,
    OrientationResponse,
    PersonalDataPayload,
    PersonalDataResponse,
    RecordPayload,
    to_response,
)
from patient_records.core.logging import audit_logger
from patient_records.services.records.editor import RecordEditor
from patient_records.services.records.forms import get_form
from patient_records.services.records.schema import Draft
from patient_records.services.records.store import RecordSectionStore
from patient_records.services.records.upsert import UpsertCoordinator

router = APIRouter()


def open_editor(
    db: AsyncSession, form: str, patient_id: str, section: str | None = None
) -> RecordEditor:
    schema = get_form(form)
    return RecordEditor(
        RecordSectionStore(db, schema),
        UpsertCoordinator(db, schema),
        patient_id,
        section=section,
    )


async def load_record(
    db: AsyncSession, form: str, patient_id: str, section: str | None = None
) -> Draft:
    draft = await open_editor(db, form, patient_id, section).load()
    audit_logger.log_access(
        resource_type=get_form(form).name,
        resource_id=patient_id,
        action="VIEW",
        details={"section": section} if section else None,
    )
    return draft


async def save_record(
    db: AsyncSession,
    form: str,
    patient_id: str,
    payload: RecordPayload,
    section: str | None = None,
) -> Draft:
    editor = open_editor(db, form, patient_id, section)
    await editor.load()
    changes: dict[str, Any] = payload.model_dump(exclude_unset=True)
    editor.update(changes)
    return await editor.save()


@router.get("/{patient_id}/personal-data", response_model=PersonalDataResponse)
async def get_personal_data(patient: CurrentPatient, db: DbSession):
    draft = await load_record(db, "personal_data", patient.id)
    return to_response(PersonalDataResponse, draft)


@router.put("/{patient_id}/personal-data", response_model=PersonalDataResponse)
async def save_personal_data(
    payload: PersonalDataPayload, patient: CurrentPatient, db: DbSession
):
    draft = await save_record(db, "personal_data", patient.id, payload)
    return to_response(PersonalDataResponse, draft)


@router.get("/{patient_id}/orientation", response_model=OrientationResponse)
async def get_orientation(patient: CurrentPatient, db: DbSession):
    draft = await load_record(db, "orientation", patient.id)
    return to_response(OrientationResponse, draft)


@router.put("/{patient_id}/orientation", response_model=OrientationResponse)
async def save_orientation(payload: OrientationPayload, patient: CurrentPatient, db: DbSession):
    draft = await save_record(db, "orientation", patient.id, payload)
    return to_response(OrientationResponse, draft)


@router.get("/{patient_id}/admission-discharge", response_model=AdmissionDischargeResponse)
async def get_admission_discharge(patient: CurrentPatient, db: DbSession):
    draft = await load_record(db, "admission_discharge", patient.id)
    return to_response(AdmissionDischargeResponse, draft)


@router.put("/{patient_id}/admission-discharge", response_model=AdmissionDischargeResponse)
async def save_admission_discharge(
    payload: AdmissionDischargePayload, patient: CurrentPatient, db: DbSession
):
    draft = await save_record(db, "admission_discharge", patient.id, payload)
    return to_response(AdmissionDischargeResponse, draft)
