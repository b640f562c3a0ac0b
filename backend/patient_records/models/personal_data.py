"""
Personal data model.

One row per patient holding identification, address and next-of-kin
details.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from patient_records.models.base import Base, generate_uuid


class PatientPersonalData(Base):
    """Singleton-per-patient personal data record."""

    __tablename__ = "patient_personal_data"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    patient_id: Mapped[str] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), unique=True, nullable=False, index=True
    )

    # Identification
    first_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    middle_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    file_number: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    id_number: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    sex: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    nationality: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    marital_status: Mapped[str] = mapped_column(String(16), nullable=False, default="")

    # Address
    city: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    area: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    street: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    home_number: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    mobile: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    telephone: Mapped[str] = mapped_column(String(32), nullable=False, default="")

    # Registration desk
    registration_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    data_register_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")

    # Next of kin
    relative_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    relative_relation: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    relative_phone: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    relative_city: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    relative_area: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    relative_street: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    relative_home_number: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    relative_mobile: Mapped[str] = mapped_column(String(32), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<PatientPersonalData(id={self.id}, patient_id='{self.patient_id}')>"
