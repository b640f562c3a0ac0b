"""Patient number generation.

Numbers look like ``PT-20240115-0007``: a prefix, the UTC registration day
and a per-day counter. The counter lives in ``patient_number_sequences`` and
is advanced inside the caller's transaction, so a number is only consumed
when the registration that asked for it commits.
"""

from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Protocol

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.core.config import RegistrationSettings, settings
from patient_records.models.patient import PatientNumberSequence


class PatientNumberGenerator(Protocol):
    """Source of unique, formatted patient numbers."""

    async def next_number(self, session: AsyncSession) -> str:
        """Return a number never handed out before.

        May raise SQLAlchemy errors; callers translate them.
        """
        ...


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class SequencePatientNumberGenerator:
    """Database-backed per-day counter."""

    def __init__(
        self,
        registration: RegistrationSettings | None = None,
        clock: Callable[[], date] = utc_today,
    ):
        registration = registration or settings.registration
        self.prefix = registration.number_prefix
        self.digits = registration.sequence_digits
        self.clock = clock

    def format(self, day: date, value: int) -> str:
        return f"{self.prefix}-{day:%Y%m%d}-{value:0{self.digits}d}"

    async def next_number(self, session: AsyncSession) -> str:
        today = self.clock()
        key = f"{today:%Y%m%d}"
        table = PatientNumberSequence.__table__
        result = await session.execute(
            update(table)
            .where(table.c.day == key)
            .values(last_value=table.c.last_value + 1)
            .returning(table.c.last_value)
        )
        value = result.scalar_one_or_none()
        if value is None:
            # First registration of the day; a concurrent first registration
            # surfaces as an IntegrityError on flush
            session.add(PatientNumberSequence(day=key, last_value=1))
            await session.flush()
            value = 1
        return self.format(today, value)
