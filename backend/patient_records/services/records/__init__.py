"""Per-patient record services: identity, loading, saving and dirty tracking."""

from patient_records.services.records.dirty import DirtyStateGuard
from patient_records.services.records.editor import RecordEditor
from patient_records.services.records.forms import FORMS, get_form
from patient_records.services.records.identity import PatientIdentityResolver
from patient_records.services.records.numbering import (
    PatientNumberGenerator,
    SequencePatientNumberGenerator,
)
from patient_records.services.records.schema import Draft, RecordSchema
from patient_records.services.records.store import RecordSectionStore
from patient_records.services.records.upsert import UpsertCoordinator
from patient_records.services.records.workspace import PatientWorkspace

__all__ = [
    "DirtyStateGuard",
    "Draft",
    "FORMS",
    "get_form",
    "PatientIdentityResolver",
    "PatientNumberGenerator",
    "PatientWorkspace",
    "RecordEditor",
    "RecordSchema",
    "RecordSectionStore",
    "SequencePatientNumberGenerator",
    "UpsertCoordinator",
]
