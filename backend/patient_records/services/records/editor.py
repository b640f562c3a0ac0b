"""Record editor: one draft, its dirty guard and its save cycle."""

import asyncio
from collections.abc import Callable
from typing import Any

from patient_records.core.errors import RecordsError, SaveInProgressError, ValidationError
from patient_records.core.logging import get_logger
from patient_records.services.records.dirty import DirtyStateGuard
from patient_records.services.records.schema import Draft, FieldKind, FieldSpec
from patient_records.services.records.store import RecordSectionStore
from patient_records.services.records.upsert import UpsertCoordinator

logger = get_logger(__name__)


class RecordEditor:
    """Edits a single record (or a single history section) of one patient.

    Mutations apply to the in-memory draft only. ``save`` pushes the whole
    draft through the coordinator; on failure the draft keeps its edits and
    stays dirty.
    """

    def __init__(
        self,
        store: RecordSectionStore,
        coordinator: UpsertCoordinator,
        patient_id: str,
        section: str | None = None,
        guard: DirtyStateGuard | None = None,
        storage_lock: asyncio.Lock | None = None,
    ):
        if store.schema is not coordinator.schema:
            raise ValueError("store and coordinator must share one record schema")
        self.store = store
        self.coordinator = coordinator
        self.schema = store.schema
        self.patient_id = patient_id
        self.section = self.schema.check_section(section)
        self.guard = guard or DirtyStateGuard()
        self.storage_lock = storage_lock or asyncio.Lock()
        self._draft: Draft | None = None
        self._busy = False

    @property
    def draft(self) -> Draft:
        if self._draft is None:
            raise RecordsError(f"{self.schema.name} has not been loaded")
        return self._draft

    @property
    def loaded(self) -> bool:
        return self._draft is not None

    @property
    def dirty(self) -> bool:
        return self.guard.dirty

    @property
    def busy(self) -> bool:
        return self._busy

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        return self.guard.subscribe(listener)

    async def load(self) -> Draft:
        """Replace the draft with the stored record, discarding local edits."""
        async with self.storage_lock:
            if self.section is None:
                draft = await self.store.load(self.patient_id)
            else:
                draft = await self.store.load_section(self.patient_id, self.section)
        self._draft = draft
        self.guard.mark_synced(draft)
        self.guard.observe(draft)
        return draft

    def value(self, name: str) -> Any:
        self.schema.field(name)
        return self.draft.values[name]

    def set_field(self, name: str, value: Any) -> None:
        spec = self.schema.field(name)
        self.draft.values[name] = spec.coerce(value)
        self.guard.observe(self.draft)

    def update(self, values: dict[str, Any]) -> None:
        """Apply several field changes; nothing changes if any is invalid."""
        coerced = {name: self.schema.field(name).coerce(value) for name, value in values.items()}
        self.draft.values.update(coerced)
        self.guard.observe(self.draft)

    def toggle(self, key: str) -> bool:
        """Flip one checkbox of the record's flag field and return its new state."""
        spec = self._field_of_kind(FieldKind.FLAGS)
        if key not in spec.choices:
            raise ValidationError(f"Unknown {spec.name} key '{key}'", field=spec.name)
        flags = self.draft.values[spec.name]
        flags[key] = not flags.get(key, False)
        self.guard.observe(self.draft)
        return flags[key]

    def add_image(self, reference: str) -> None:
        if not isinstance(reference, str) or not reference:
            raise ValidationError("Image reference must be a non-empty string")
        spec = self._field_of_kind(FieldKind.LIST)
        self.draft.values[spec.name].append(reference)
        self.guard.observe(self.draft)

    def remove_image(self, index: int) -> str:
        spec = self._field_of_kind(FieldKind.LIST)
        images = self.draft.values[spec.name]
        if not 0 <= index < len(images):
            raise ValidationError(f"No image at position {index}", field=spec.name)
        removed = images.pop(index)
        self.guard.observe(self.draft)
        return removed

    async def save(self) -> Draft:
        """Persist the draft and reset the dirty snapshot to what was stored.

        Raises:
            SaveInProgressError: a save of this editor is still running
            ValidationError, PersistenceError, ConsistencyError: from the
                coordinator; the draft is left as it was
        """
        if self._busy:
            raise SaveInProgressError(f"{self.schema.name} is already being saved")
        draft = self.draft
        submitted = draft.copy()
        self._busy = True
        try:
            async with self.storage_lock:
                saved = await self.coordinator.save(submitted)
        finally:
            self._busy = False

        draft.id = saved.id
        self.guard.mark_synced(saved)
        self.guard.observe(draft)
        logger.debug("record_saved", table=self.schema.name, section=self.section)
        return saved

    def _field_of_kind(self, kind: FieldKind) -> FieldSpec:
        for spec in self.schema.fields:
            if spec.kind is kind:
                return spec
        raise ValidationError(f"{self.schema.name} has no {kind.value} field")
