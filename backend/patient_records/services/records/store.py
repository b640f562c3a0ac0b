"""Record Section Store.

Materializes drafts for one record type from storage. Singleton records
yield one draft per patient; sectioned records (history) yield one draft per
catalog section, whether or not that section has ever been saved.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.core.config import PersistenceSettings
from patient_records.core.errors import ConsistencyError, ValidationError
from patient_records.core.logging import get_logger
from patient_records.services.records.persistence import call_storage
from patient_records.services.records.schema import Draft, RecordSchema

logger = get_logger(__name__)


class RecordSectionStore:
    """Loads drafts for ``schema`` keyed by patient (and section)."""

    def __init__(
        self,
        session: AsyncSession,
        schema: RecordSchema,
        policy: PersistenceSettings | None = None,
    ):
        self.session = session
        self.schema = schema
        self.policy = policy

    async def _fetch(self, patient_id: str, section: str | None = None) -> list[Any]:
        model = self.schema.model
        # populate_existing: rows already in the identity map may predate a bulk UPDATE
        query = (
            select(model)
            .where(model.patient_id == patient_id)
            .execution_options(populate_existing=True)
        )
        if section is not None:
            query = query.where(getattr(model, self.schema.section_column) == section)

        async def operation() -> list[Any]:
            result = await self.session.execute(query)
            return list(result.scalars().all())

        return await call_storage(
            self.session, operation, action=f"load:{self.schema.name}", policy=self.policy
        )

    async def load(self, patient_id: str) -> Draft:
        """Load the singleton draft for ``patient_id``.

        Raises:
            ConsistencyError: more than one row exists for the patient
        """
        if self.schema.is_sectioned:
            raise ValidationError(f"{self.schema.name} is sectioned; load a section instead")

        rows = await self._fetch(patient_id)
        if len(rows) > 1:
            logger.error(
                "duplicate_singleton_rows",
                table=self.schema.name,
                patient_id=patient_id,
                count=len(rows),
            )
            raise ConsistencyError(self.schema.name, patient_id, len(rows))
        if not rows:
            return self.schema.blank_draft(patient_id)
        return self.schema.draft_from_row(rows[0])

    async def load_section(self, patient_id: str, section: str) -> Draft:
        """Load one section draft, blank when the section was never saved."""
        section = self.schema.check_section(section)
        rows = await self._fetch(patient_id, section)
        if len(rows) > 1:
            raise ConsistencyError(self.schema.name, patient_id, len(rows), section=section)
        if not rows:
            return self.schema.blank_draft(patient_id, section)
        return self.schema.draft_from_row(rows[0])

    async def load_sections(self, patient_id: str) -> dict[str, Draft]:
        """Load every catalog section, in catalog order."""
        if not self.schema.is_sectioned:
            raise ValidationError(f"{self.schema.name} has no sections")

        by_section: dict[str, list[Any]] = {}
        for row in await self._fetch(patient_id):
            by_section.setdefault(getattr(row, self.schema.section_column), []).append(row)

        drafts: dict[str, Draft] = {}
        for section in self.schema.sections:
            rows = by_section.get(section, [])
            if len(rows) > 1:
                raise ConsistencyError(self.schema.name, patient_id, len(rows), section=section)
            drafts[section] = (
                self.schema.draft_from_row(rows[0])
                if rows
                else self.schema.blank_draft(patient_id, section)
            )
        return drafts
