#!/usr/bin/env python
"""Purge demo patients and their records (safe by default)."""

import argparse
import asyncio

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from patient_records.core.config import get_settings
from patient_records.models import (
    AdmissionDischarge,
    GeneralPatientOrientation,
    Patient,
    PatientHistory,
    PatientPersonalData,
)
from patient_records.services.demo_data import DEMO_PATIENT_NUMBERS

RECORD_MODELS = (
    PatientPersonalData,
    PatientHistory,
    GeneralPatientOrientation,
    AdmissionDischarge,
)


async def purge_demo_data(dry_run: bool) -> int:
    settings = get_settings()
    engine = create_async_engine(settings.database.url, echo=False)

    deleted = 0
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            result = await session.execute(
                select(Patient.id).where(Patient.patient_number.in_(DEMO_PATIENT_NUMBERS))
            )
            patient_ids = list(result.scalars().all())

            if dry_run:
                print(f"[dry-run] Demo patients matched: {len(patient_ids)}")
                return 0

            if patient_ids:
                # Not every backend enforces ON DELETE CASCADE
                for model in RECORD_MODELS:
                    await session.execute(delete(model).where(model.patient_id.in_(patient_ids)))
                await session.execute(delete(Patient).where(Patient.id.in_(patient_ids)))
                deleted = len(patient_ids)

            await session.commit()
    finally:
        await engine.dispose()
    return deleted


def main() -> None:
    parser = argparse.ArgumentParser(description="Purge demo patients safely.")
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Apply deletions (default is dry-run).",
    )
    args = parser.parse_args()

    deleted = asyncio.run(purge_demo_data(dry_run=not args.apply))
    if args.apply:
        print(f"Deleted {deleted} demo patient record(s).")


if __name__ == "__main__":
    main()
