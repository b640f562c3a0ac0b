"""Upsert Coordinator.

Persists one draft per call. A draft with an id is written by UPDATE; a
draft without one is INSERTed and the new id is handed back. When the
INSERT collides with the per-patient uniqueness constraint another save got
there first, so the write is replayed as an UPDATE of that row instead of
failing or creating a duplicate.
"""

import asyncio
import weakref
from typing import Any

from prometheus_client import Counter
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.core.config import PersistenceSettings
from patient_records.core.errors import ConsistencyError, PersistenceError
from patient_records.core.logging import audit_logger, get_logger
from patient_records.models.base import generate_uuid
from patient_records.services.records.persistence import call_storage, describe_error
from patient_records.services.records.schema import Draft, RecordSchema

logger = get_logger(__name__)

RECORD_SAVES = Counter(
    "patient_records_saves_total",
    "Persisted record writes",
    ["table", "operation"],
)

# One lock per record key for the lifetime of the saves holding it
_record_locks: "weakref.WeakValueDictionary[tuple, asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(key: tuple) -> asyncio.Lock:
    lock = _record_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _record_locks[key] = lock
    return lock


class UpsertCoordinator:
    """Decides INSERT vs UPDATE for drafts of one record schema."""

    def __init__(
        self,
        session: AsyncSession,
        schema: RecordSchema,
        policy: PersistenceSettings | None = None,
    ):
        self.session = session
        self.schema = schema
        self.policy = policy

    async def save(self, draft: Draft) -> Draft:
        """Persist ``draft`` as a whole and return a copy carrying its row id.

        Raises:
            ValidationError: a field value is malformed; nothing was sent
            PersistenceError: the write failed; nothing was committed
            ConsistencyError: conflict resolution found duplicate rows
        """
        values = self.schema.row_values(draft)

        async with _lock_for(draft.key):
            if draft.id is not None:
                await self._update(draft.id, draft, values)
                record_id, operation = draft.id, "update"
            else:
                try:
                    record_id = await self._insert(draft, values)
                    operation = "insert"
                except IntegrityError as exc:
                    existing_id = await self._existing_id(draft)
                    if existing_id is None:
                        # Not a duplicate-row conflict, e.g. unknown patient
                        self._log_failure(draft, "insert", exc)
                        raise PersistenceError(describe_error(exc)) from exc
                    logger.info(
                        "insert_conflict_resolved_as_update",
                        table=self.schema.name,
                        record_id=existing_id,
                        patient_id=draft.patient_id,
                        section=draft.section,
                    )
                    await self._update(existing_id, draft, values)
                    record_id, operation = existing_id, "conflict_update"

        RECORD_SAVES.labels(table=self.schema.name, operation=operation).inc()
        audit_logger.log_record_save(
            table=self.schema.name,
            record_id=record_id,
            patient_id=draft.patient_id,
            operation=operation,
            section=draft.section,
        )
        return draft.with_id(record_id)

    async def _insert(self, draft: Draft, values: dict[str, Any]) -> str:
        model = self.schema.model

        async def operation() -> str:
            record_id = generate_uuid()
            row = model(id=record_id, patient_id=draft.patient_id, **values)
            if self.schema.is_sectioned:
                setattr(row, self.schema.section_column, draft.section)
            self.session.add(row)
            await self.session.commit()
            return record_id

        return await call_storage(
            self.session, operation, action=f"insert:{self.schema.name}", policy=self.policy
        )

    async def _update(self, record_id: str, draft: Draft, values: dict[str, Any]) -> None:
        model = self.schema.model
        statement = (
            update(model)
            .where(model.id == record_id, model.patient_id == draft.patient_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if self.schema.is_sectioned:
            statement = statement.where(
                getattr(model, self.schema.section_column) == draft.section
            )

        async def operation() -> None:
            result = await self.session.execute(statement)
            if result.rowcount == 0:
                await self.session.rollback()
                raise PersistenceError(
                    f"{self.schema.name} record {record_id} does not exist "
                    f"for patient {draft.patient_id}"
                )
            await self.session.commit()

        try:
            await call_storage(
                self.session, operation, action=f"update:{self.schema.name}", policy=self.policy
            )
        except IntegrityError as exc:
            self._log_failure(draft, "update", exc)
            raise PersistenceError(describe_error(exc)) from exc
        except PersistenceError as exc:
            self._log_failure(draft, "update", exc)
            raise

    async def _existing_id(self, draft: Draft) -> str | None:
        model = self.schema.model
        query = select(model.id).where(model.patient_id == draft.patient_id)
        if self.schema.is_sectioned:
            query = query.where(getattr(model, self.schema.section_column) == draft.section)

        async def operation() -> list[str]:
            result = await self.session.execute(query)
            return list(result.scalars().all())

        ids = await call_storage(
            self.session, operation, action=f"resolve:{self.schema.name}", policy=self.policy
        )
        if len(ids) > 1:
            raise ConsistencyError(self.schema.name, draft.patient_id, len(ids), draft.section)
        return ids[0] if ids else None

    def _log_failure(self, draft: Draft, operation: str, exc: BaseException) -> None:
        audit_logger.log_record_save(
            table=self.schema.name,
            record_id=draft.id or "",
            patient_id=draft.patient_id,
            operation=operation,
            section=draft.section,
            success=False,
            error=describe_error(exc),
        )
