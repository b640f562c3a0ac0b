"""
Patient Records Backend - registration and per-patient medical records

This package provides patient registration and lookup by patient number,
plus draft/upsert handling for the personal data, history, orientation and
admission/discharge records kept for each patient.
"""

__version__ = "1.0.0"
__author__ = "Patient Records Team"
