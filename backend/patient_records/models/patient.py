"""
Patient database model.

The patient row is the identity root every record table points at. It is
created once at registration and carries the human-facing patient number.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from patient_records.models.base import Base, generate_uuid

GENDER_CHOICES = ("Male", "Female", "Other")


class Patient(Base):
    """
    Patient model representing a registered patient.

    Record tables reference ``id``; there are deliberately no relationship
    collections here, related rows are queried on demand.
    """

    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # PT-<YYYYMMDD>-<sequence>, assigned once, never changed
    patient_number: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, index=True
    )

    full_name: Mapped[str] = mapped_column(String(256), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(16), nullable=False)

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, patient_number='{self.patient_number}')>"


class PatientNumberSequence(Base):
    """Per-day counter backing patient number generation."""

    __tablename__ = "patient_number_sequences"

    # YYYYMMDD
    day: Mapped[str] = mapped_column(String(8), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<PatientNumberSequence(day='{self.day}', last_value={self.last_value})>"
