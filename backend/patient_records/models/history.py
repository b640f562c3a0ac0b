"""
Patient history model.

History is split into a fixed catalog of sections. Each (patient, section)
pair has at most one row, created the first time that section is saved.
"""

from enum import Enum as PyEnum

from sqlalchemy import JSON, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from patient_records.models.base import Base, generate_uuid


class HistorySection(str, PyEnum):
    """History section types, in display order."""

    COMPLAINS = "complains"
    EXAMINATION = "examination"
    INVESTIGATIONS = "investigations"
    TREATMENT_PLAN = "treatment_plan"
    SERVICE_REQUEST = "service_request"
    EDUCATION = "education"
    MEDICATION_REQUEST = "medication_request"
    MEDICAL_REPORT = "medical_report"
    LAB_RESULTS = "lab_results"
    RADIOLOGY_REPORTS = "radiology_reports"


SECTION_LABELS: dict[str, str] = {
    HistorySection.COMPLAINS.value: "Complains & Visit Form",
    HistorySection.EXAMINATION.value: "Examination",
    HistorySection.INVESTIGATIONS.value: "Investigations & Reports",
    HistorySection.TREATMENT_PLAN.value: "Treatment Plan",
    HistorySection.SERVICE_REQUEST.value: "Service Request",
    HistorySection.EDUCATION.value: "Education",
    HistorySection.MEDICATION_REQUEST.value: "Medication Request",
    HistorySection.MEDICAL_REPORT.value: "Medical Report",
    HistorySection.LAB_RESULTS.value: "Lab Results",
    HistorySection.RADIOLOGY_REPORTS.value: "Radiology Reports",
}

SECTION_CATALOG: tuple[str, ...] = tuple(section.value for section in HistorySection)


class PatientHistory(Base):
    """
    One history section for one patient.

    ``image_urls`` holds storage references in upload order. Rows written
    before reference storage existed may still hold inline ``data:`` URLs.
    """

    __tablename__ = "patient_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    patient_id: Mapped[str] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    section_type: Mapped[str] = mapped_column(String(32), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_urls: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (UniqueConstraint("patient_id", "section_type"),)

    def __repr__(self) -> str:
        return (
            f"<PatientHistory(id={self.id}, patient_id='{self.patient_id}', "
            f"section='{self.section_type}')>"
        )
