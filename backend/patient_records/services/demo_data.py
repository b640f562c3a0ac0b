"""Optional demo data seeding (development only)."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.core.logging import get_logger
from patient_records.models.base import generate_uuid
from patient_records.models.patient import Patient
from patient_records.models.personal_data import PatientPersonalData

logger = get_logger(__name__)

# Outside the PT-<YYYYMMDD>-<n> space, so they never collide with real numbers
DEMO_PATIENTS = [
    {
        "patient_number": "PT-DEMO-0001",
        "full_name": "John Doe",
        "age": 59,
        "gender": "Male",
        "personal": {"first_name": "John", "last_name": "Doe", "sex": "male"},
    },
    {
        "patient_number": "PT-DEMO-0002",
        "full_name": "Jane Smith",
        "age": 46,
        "gender": "Female",
        "personal": {"first_name": "Jane", "last_name": "Smith", "sex": "female"},
    },
    {
        "patient_number": "PT-DEMO-0003",
        "full_name": "Robert Johnson",
        "age": 69,
        "gender": "Male",
        "personal": {"first_name": "Robert", "last_name": "Johnson", "sex": "male"},
    },
]

DEMO_PATIENT_NUMBERS = {demo["patient_number"] for demo in DEMO_PATIENTS}


async def seed_demo_patients(db: AsyncSession) -> int:
    """Insert demo patients if they do not already exist."""
    inserted = 0
    for demo in DEMO_PATIENTS:
        exists_result = await db.execute(
            select(Patient.id).where(Patient.patient_number == demo["patient_number"])
        )
        if exists_result.scalar_one_or_none():
            continue
        patient_id = generate_uuid()
        db.add(
            Patient(
                id=patient_id,
                patient_number=demo["patient_number"],
                full_name=demo["full_name"],
                age=demo["age"],
                gender=demo["gender"],
            )
        )
        db.add(PatientPersonalData(id=generate_uuid(), patient_id=patient_id, **demo["personal"]))
        inserted += 1

    if inserted:
        await db.commit()
        logger.warning("demo_patients_seeded", count=inserted)
    return inserted
