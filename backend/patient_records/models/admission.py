"""
Admission and discharge model.

One row per patient covering the admission order, the admitting desk
sign-off, and the discharge order with its own sign-off.
"""

from datetime import date, time
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Date, ForeignKey, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from patient_records.models.base import Base, generate_uuid


class DischargeType(str, PyEnum):
    """How the stay ended."""

    NORMAL = "normal"
    ESCAPE = "escape"
    DEATH = "death"
    OTHER = "other"


class AdmissionDischarge(Base):
    """Singleton-per-patient admission/discharge record."""

    __tablename__ = "admissions_discharge"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    patient_id: Mapped[str] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), unique=True, nullable=False, index=True
    )

    # Admission order
    admission_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    admission_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    admission_doctor: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    provisional_diagnosis: Mapped[str] = mapped_column(Text, nullable=False, default="")
    treatment_plan: Mapped[str] = mapped_column(Text, nullable=False, default="")
    expected_duration: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    doctor_sign_admission: Mapped[str] = mapped_column(String(256), nullable=False, default="")

    # Admission desk
    admission_employee_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    admission_employee_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    admission_employee_signature: Mapped[str] = mapped_column(
        String(256), nullable=False, default=""
    )
    admission_employee_stamp: Mapped[str] = mapped_column(String(256), nullable=False, default="")

    # Discharge order
    discharge_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    discharge_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    discharge_doctor: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    final_diagnosis: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Empty string until a discharge is recorded, otherwise a DischargeType value
    discharge_type: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    discharge_authorized_person: Mapped[str] = mapped_column(
        String(256), nullable=False, default=""
    )
    discharge_relative_relation: Mapped[str] = mapped_column(
        String(64), nullable=False, default=""
    )
    discharge_identity: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    doctor_sign_discharge: Mapped[str] = mapped_column(String(256), nullable=False, default="")

    # Discharge desk
    discharge_employee_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    discharge_employee_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    discharge_employee_signature: Mapped[str] = mapped_column(
        String(256), nullable=False, default=""
    )
    discharge_employee_stamp: Mapped[str] = mapped_column(String(256), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<AdmissionDischarge(id={self.id}, patient_id='{self.patient_id}')>"
