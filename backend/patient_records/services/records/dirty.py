"""Dirty-State Guard.

Tracks whether the draft being edited has drifted from the last copy known
to be persisted. The hosting shell either polls ``dirty`` or subscribes to
changes, and consults ``allows_navigation`` before letting the user leave.
"""

from collections.abc import Callable
from typing import Any

from patient_records.core.logging import get_logger
from patient_records.services.records.schema import Draft

logger = get_logger(__name__)

DirtyListener = Callable[[bool], None]


class DirtyStateGuard:
    """Owns the snapshot of one draft and its dirty flag."""

    def __init__(self) -> None:
        self._current: Draft | None = None
        self._snapshot: Draft | None = None
        self._listeners: list[DirtyListener] = []
        self._last_state = False

    @staticmethod
    def is_dirty(current: Draft | None, last_synced: Draft | None) -> bool:
        """Deep structural comparison; nothing synced yet means nothing to lose."""
        if current is None or last_synced is None:
            return False
        return current != last_synced

    @property
    def dirty(self) -> bool:
        return self.is_dirty(self._current, self._snapshot)

    @property
    def snapshot(self) -> Draft | None:
        return self._snapshot.copy() if self._snapshot is not None else None

    def observe(self, current: Draft) -> None:
        """Point the guard at the draft being edited and re-evaluate."""
        self._current = current
        self._notify()

    def mark_synced(self, persisted: Draft) -> None:
        """Record ``persisted`` as the last successfully loaded or saved state."""
        self._snapshot = persisted.copy()
        self._notify()

    def reset(self) -> None:
        self._current = None
        self._snapshot = None
        self._notify()

    def allows_navigation(self) -> bool:
        return not self.dirty

    def register_leave_hook(self, register: Callable[[Callable[[], bool]], Any]) -> Any:
        """Hand ``allows_navigation`` to a shell's navigation-guard registry."""
        return register(self.allows_navigation)

    def subscribe(self, listener: DirtyListener) -> Callable[[], None]:
        """Call ``listener`` with the new flag whenever it flips.

        Returns a callable that removes the listener again. A listener that
        raises stops the dispatch and the error reaches whoever changed the
        draft, as with the workspace and resolver listeners.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        state = self.dirty
        if state == self._last_state:
            return
        self._last_state = state
        logger.debug("dirty_state_changed", dirty=state, listeners=len(self._listeners))
        for listener in list(self._listeners):
            listener(state)
