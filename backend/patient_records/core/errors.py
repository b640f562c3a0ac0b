"""Error taxonomy for patient record operations.

A lookup that matches nothing is not an error: resolvers return ``None`` and
the HTTP layer turns that into a 404.
"""


class RecordsError(Exception):
    """Base class for all patient record errors."""


class ValidationError(RecordsError):
    """Malformed user input, detected before any storage call."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class PersistenceError(RecordsError):
    """A storage call failed.

    The message is the driver's message, passed through verbatim so the
    caller can show it.
    """


class ConsistencyError(RecordsError):
    """More rows were found than a singleton record allows."""

    def __init__(self, table: str, patient_id: str, count: int, section: str | None = None):
        self.table = table
        self.patient_id = patient_id
        self.count = count
        self.section = section
        scope = f"{table}[{section}]" if section else table
        super().__init__(
            f"Expected at most one {scope} row for patient {patient_id}, found {count}"
        )


class SaveInProgressError(RecordsError):
    """A save for the same record is already running."""
