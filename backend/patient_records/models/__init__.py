"""
Database models for Patient Records.

This module exports all SQLAlchemy models and database utilities.
"""

from patient_records.models.base import Base, async_session_maker, create_tables, engine, get_db
from patient_records.models.patient import GENDER_CHOICES, Patient, PatientNumberSequence
from patient_records.models.personal_data import PatientPersonalData
from patient_records.models.history import (
    SECTION_CATALOG,
    SECTION_LABELS,
    HistorySection,
    PatientHistory,
)
from patient_records.models.orientation import ORIENTATION_QUESTIONS, GeneralPatientOrientation
from patient_records.models.admission import AdmissionDischarge, DischargeType

__all__ = [
    "Base",
    "get_db",
    "engine",
    "async_session_maker",
    "create_tables",
    "Patient",
    "PatientNumberSequence",
    "GENDER_CHOICES",
    "PatientPersonalData",
    "PatientHistory",
    "HistorySection",
    "SECTION_CATALOG",
    "SECTION_LABELS",
    "GeneralPatientOrientation",
    "ORIENTATION_QUESTIONS",
    "AdmissionDischarge",
    "DischargeType",
]
