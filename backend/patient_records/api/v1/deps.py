"""Shared endpoint dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.models.base import get_db
from patient_records.models.patient import Patient
from patient_records.services.images.storage import ImageStorageService
from patient_records.services.records.identity import PatientIdentityResolver

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_patient_or_404(patient_id: str, db: DbSession) -> Patient:
    """Resolve the ``patient_id`` path parameter or answer 404."""
    patient = await PatientIdentityResolver(db).get_patient(patient_id)
    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Patient not found: {patient_id}",
        )
    return patient


def get_image_storage(request: Request) -> ImageStorageService:
    storage = getattr(request.app.state, "image_storage", None)
    if storage is None or not storage.is_ready():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Image storage is not available",
        )
    return storage


CurrentPatient = Annotated[Patient, Depends(get_patient_or_404)]
ImageStorage = Annotated[ImageStorageService, Depends(get_image_storage)]
