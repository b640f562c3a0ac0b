"""Patient workspace.

Binds the identity resolver to one editor per form: personal data, every
history section, orientation and admission/discharge. When the active
patient changes the editors are rebuilt for the new patient; their dirty
flags are folded into one that a shell can use as its leave hook.

Every editor works on the same session, so all storage calls made through
the workspace take one lock and never overlap.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.core.config import PersistenceSettings
from patient_records.core.errors import RecordsError
from patient_records.core.logging import get_logger
from patient_records.models.patient import Patient
from patient_records.services.records.editor import RecordEditor
from patient_records.services.records.forms import FORMS, get_form
from patient_records.services.records.identity import PatientIdentityResolver
from patient_records.services.records.store import RecordSectionStore
from patient_records.services.records.upsert import UpsertCoordinator

logger = get_logger(__name__)

EditorKey = tuple[str, str | None]


class PatientWorkspace:
    """All editors for the resolver's active patient."""

    def __init__(
        self,
        session: AsyncSession,
        resolver: PatientIdentityResolver | None = None,
        policy: PersistenceSettings | None = None,
    ):
        self.session = session
        self.policy = policy
        self.resolver = resolver or PatientIdentityResolver(session, policy=policy)
        self._editors: dict[EditorKey, RecordEditor] = {}
        self._unsubscribers: list[Callable[[], None]] = []
        self._listeners: list[Callable[[bool], None]] = []
        self._last_state = False
        self._storage_lock = asyncio.Lock()
        self.resolver.subscribe(self._on_patient_changed)
        if self.resolver.active_patient is not None:
            self._build(self.resolver.active_patient)

    @property
    def patient(self) -> Patient | None:
        return self.resolver.active_patient

    @property
    def editors(self) -> dict[EditorKey, RecordEditor]:
        return dict(self._editors)

    def editor(self, form: str, section: str | None = None) -> RecordEditor:
        get_form(form)
        try:
            return self._editors[(form, section)]
        except KeyError:
            if self.patient is None:
                raise RecordsError("No active patient") from None
            raise RecordsError(f"No editor for {form} section '{section}'") from None

    def history(self) -> dict[str, RecordEditor]:
        """History editors in catalog order."""
        return {
            section: editor
            for (form, section), editor in self._editors.items()
            if form == "history"
        }

    async def load(self) -> None:
        """Load every editor of the active patient from storage."""
        if self.patient is None:
            raise RecordsError("No active patient")
        for editor in self._editors.values():
            await editor.load()

    async def open_by_number(self, patient_number: Any) -> Patient | None:
        """Look up a patient, make them active and load their records."""
        async with self._storage_lock:
            patient = await self.resolver.find_patient_by_number(patient_number)
        if patient is not None:
            await self.load()
        return patient

    async def register(self, full_name: Any, age: Any, gender: Any) -> Patient:
        async with self._storage_lock:
            patient = await self.resolver.register_patient(full_name, age, gender)
        await self.load()
        return patient

    @property
    def dirty(self) -> bool:
        return any(editor.dirty for editor in self._editors.values())

    def dirty_editors(self) -> list[EditorKey]:
        return [key for key, editor in self._editors.items() if editor.dirty]

    def allows_navigation(self) -> bool:
        return not self.dirty

    def register_leave_hook(self, register: Callable[[Callable[[], bool]], Any]) -> Any:
        return register(self.allows_navigation)

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        """Call ``listener`` when the workspace as a whole turns dirty or clean."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _on_patient_changed(self, patient: Patient | None) -> None:
        self._teardown()
        if patient is not None:
            self._build(patient)
        self._notify()

    def _build(self, patient: Patient) -> None:
        for form, schema in FORMS.items():
            store = RecordSectionStore(self.session, schema, self.policy)
            coordinator = UpsertCoordinator(self.session, schema, self.policy)
            sections: tuple[str | None, ...] = schema.sections or (None,)
            for section in sections:
                editor = RecordEditor(
                    store,
                    coordinator,
                    patient.id,
                    section=section,
                    storage_lock=self._storage_lock,
                )
                self._editors[(form, section)] = editor
                self._unsubscribers.append(editor.subscribe(lambda _state: self._notify()))
        logger.debug("workspace_built", patient_id=patient.id, editors=len(self._editors))

    def _teardown(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._editors.clear()

    def _notify(self) -> None:
        state = self.dirty
        if state == self._last_state:
            return
        self._last_state = state
        for listener in list(self._listeners):
            listener(state)
