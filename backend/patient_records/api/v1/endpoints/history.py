"""Patient history endpoints, one record per catalog section."""

from fastapi import APIRouter, File, UploadFile, status
from pydantic import BaseModel, Field

from patient_records.api.v1.deps import CurrentPatient, DbSession, ImageStorage
from patient_records.api.v1.endpoints.records import load_record, save_record
from patient_records.api.v1.payloads import (
    HistorySectionPayload,
    HistorySectionResponse,
    to_response,
)
from patient_records.core.logging import audit_logger
from patient_records.models.history import SECTION_LABELS
from patient_records.services.records.forms import PATIENT_HISTORY
from patient_records.services.records.store import RecordSectionStore

router = APIRouter()


class HistorySectionView(HistorySectionResponse):
    label: str = Field(..., description="Display label of the section")


class UploadedImage(BaseModel):
    """Stored upload; add ``reference`` to the section's ``image_urls`` to attach it."""

    reference: str
    url: str
    size: int
    checksum: str
    content_type: str


def _view(draft) -> HistorySectionView:
    return HistorySectionView(
        label=SECTION_LABELS[draft.section],
        **to_response(HistorySectionResponse, draft).model_dump(),
    )


@router.get("/{patient_id}/history", response_model=list[HistorySectionView])
async def get_history(patient: CurrentPatient, db: DbSession) -> list[HistorySectionView]:
    """All history sections in catalog order, blank where never saved."""
    drafts = await RecordSectionStore(db, PATIENT_HISTORY).load_sections(patient.id)
    audit_logger.log_access(
        resource_type=PATIENT_HISTORY.name, resource_id=patient.id, action="VIEW"
    )
    return [_view(draft) for draft in drafts.values()]


@router.get("/{patient_id}/history/{section}", response_model=HistorySectionView)
async def get_history_section(
    section: str, patient: CurrentPatient, db: DbSession
) -> HistorySectionView:
    draft = await load_record(db, "history", patient.id, section)
    return _view(draft)


@router.put("/{patient_id}/history/{section}", response_model=HistorySectionView)
async def save_history_section(
    section: str, payload: HistorySectionPayload, patient: CurrentPatient, db: DbSession
) -> HistorySectionView:
    """Save one section; other sections are untouched."""
    draft = await save_record(db, "history", patient.id, payload, section)
    return _view(draft)


@router.post(
    "/{patient_id}/history/{section}/images",
    response_model=UploadedImage,
    status_code=status.HTTP_201_CREATED,
)
async def upload_history_image(
    section: str,
    patient: CurrentPatient,
    storage: ImageStorage,
    file: UploadFile = File(..., description="Image file"),
) -> UploadedImage:
    """Store an image for a section and return its reference."""
    section = PATIENT_HISTORY.check_section(section)
    # One byte past the limit is enough for the store to reject the upload
    data = await file.read(storage.max_bytes + 1)
    stored = await storage.store(patient.id, section, data, file.content_type)
    return UploadedImage(
        reference=stored.reference,
        url=f"/api/v1/images/{stored.reference}",
        size=stored.size,
        checksum=stored.checksum,
        content_type=stored.content_type,
    )
