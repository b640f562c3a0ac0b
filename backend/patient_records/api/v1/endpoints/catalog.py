"""Static catalogs the record forms are built from."""

from fastapi import APIRouter
from pydantic import BaseModel

from patient_records.core.config import settings
from patient_records.models.admission import DischargeType
from patient_records.models.history import SECTION_CATALOG, SECTION_LABELS
from patient_records.models.orientation import ORIENTATION_QUESTIONS
from patient_records.models.patient import GENDER_CHOICES

router = APIRouter()


class CatalogEntry(BaseModel):
    key: str
    label: str


class CatalogResponse(BaseModel):
    history_sections: list[CatalogEntry]
    orientation_questions: list[CatalogEntry]
    discharge_types: list[str]
    genders: list[str]
    notice_dismiss_seconds: int


@router.get("", response_model=CatalogResponse)
async def get_catalog() -> CatalogResponse:
    return CatalogResponse(
        history_sections=[
            CatalogEntry(key=section, label=SECTION_LABELS[section])
            for section in SECTION_CATALOG
        ],
        orientation_questions=[
            CatalogEntry(key=key, label=label) for key, label in ORIENTATION_QUESTIONS.items()
        ],
        discharge_types=[kind.value for kind in DischargeType],
        genders=list(GENDER_CHOICES),
        notice_dismiss_seconds=settings.notice_dismiss_seconds,
    )
