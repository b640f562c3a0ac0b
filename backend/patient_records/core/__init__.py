"""Core configuration and utilities for the Patient Records backend."""

from patient_records.core.config import settings
from patient_records.core.errors import (
    ConsistencyError,
    PersistenceError,
    RecordsError,
    SaveInProgressError,
    ValidationError,
)
from patient_records.core.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "setup_logging",
    "get_logger",
    "RecordsError",
    "ValidationError",
    "PersistenceError",
    "ConsistencyError",
    "SaveInProgressError",
]
