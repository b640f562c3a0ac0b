"""
General patient orientation model.

A yes/no checklist over a fixed set of orientation questions, stored as a
single JSON mapping per patient.
"""

from sqlalchemy import JSON, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from patient_records.models.base import Base, generate_uuid

ORIENTATION_QUESTIONS: dict[str, str] = {
    "oriented_to_person": "Oriented to Person",
    "oriented_to_place": "Oriented to Place",
    "oriented_to_time": "Oriented to Time",
    "oriented_to_situation": "Oriented to Situation",
    "responds_to_verbal_commands": "Responds to Verbal Commands",
    "follows_simple_instructions": "Follows Simple Instructions",
    "recognizes_family_members": "Recognizes Family Members",
    "aware_of_medical_condition": "Aware of Medical Condition",
    "understands_treatment_plan": "Understands Treatment Plan",
    "appropriate_emotional_response": "Appropriate Emotional Response",
}


class GeneralPatientOrientation(Base):
    """Singleton-per-patient orientation assessment."""

    __tablename__ = "general_patient_orientation"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    patient_id: Mapped[str] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), unique=True, nullable=False, index=True
    )
    questions: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<GeneralPatientOrientation(id={self.id}, patient_id='{self.patient_id}')>"
