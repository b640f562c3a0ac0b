"""Patient registration and lookup endpoints."""

from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from patient_records.api.v1.deps import CurrentPatient, DbSession
from patient_records.core.logging import audit_logger
from patient_records.models.patient import Patient
from patient_records.services.records.identity import PatientIdentityResolver

router = APIRouter()


class RegistrationRequest(BaseModel):
    """New patient details; range checks happen in the resolver."""

    full_name: str = Field(..., description="Patient full name")
    age: int = Field(..., description="Age in whole years")
    gender: str = Field(..., description="Male, Female or Other")


class PatientResponse(BaseModel):
    """Registered patient."""

    id: str = Field(..., description="Opaque patient id")
    patient_number: str = Field(..., description="Human-facing patient number")
    full_name: str
    age: int
    gender: str
    created_at: datetime | None = None


def _to_response(patient: Patient) -> PatientResponse:
    return PatientResponse(
        id=patient.id,
        patient_number=patient.patient_number,
        full_name=patient.full_name,
        age=patient.age,
        gender=patient.gender,
        created_at=patient.created_at,
    )


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def register_patient(payload: RegistrationRequest, db: DbSession) -> PatientResponse:
    """Register a patient and assign a new patient number."""
    patient = await PatientIdentityResolver(db).register_patient(
        payload.full_name, payload.age, payload.gender
    )
    return _to_response(patient)


@router.get("/by-number/{patient_number}", response_model=PatientResponse)
async def find_patient_by_number(patient_number: str, db: DbSession) -> PatientResponse:
    """Exact lookup by patient number."""
    patient = await PatientIdentityResolver(db).find_patient_by_number(patient_number)
    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )
    return _to_response(patient)


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(patient: CurrentPatient) -> PatientResponse:
    """Get patient information."""
    audit_logger.log_access(resource_type="patient", resource_id=patient.id, action="VIEW")
    return _to_response(patient)
