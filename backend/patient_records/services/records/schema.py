"""Field schemas and drafts for per-patient records.

A ``RecordSchema`` describes one record table as a flat list of typed
fields. It owns every conversion between the three shapes a record takes:

* user input (strings from a form, JSON values from the API),
* the draft held while editing (text is never ``None``, empty dates are
  ``None``, flag maps always carry every key, lists are never ``None``),
* the row written to storage (the full field set, every time).
"""

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from patient_records.core.errors import ValidationError


class FieldKind(str, Enum):
    """Storage/edit behaviour of a record field."""

    TEXT = "text"
    DATE = "date"
    TIME = "time"
    FLAGS = "flags"
    LIST = "list"


@dataclass(frozen=True)
class FieldSpec:
    """One editable field of a record.

    For ``TEXT`` fields ``choices`` restricts non-empty values; for
    ``FLAGS`` fields it is the fixed set of keys.
    """

    name: str
    kind: FieldKind = FieldKind.TEXT
    choices: tuple[str, ...] = ()

    def blank(self) -> Any:
        if self.kind is FieldKind.TEXT:
            return ""
        if self.kind is FieldKind.FLAGS:
            return {key: False for key in self.choices}
        if self.kind is FieldKind.LIST:
            return []
        return None

    def coerce(self, value: Any) -> Any:
        """Normalize user input into the draft representation."""
        if self.kind is FieldKind.TEXT:
            return self._coerce_text(value)
        if self.kind is FieldKind.DATE:
            return self._coerce_date(value)
        if self.kind is FieldKind.TIME:
            return self._coerce_time(value)
        if self.kind is FieldKind.FLAGS:
            return self._coerce_flags(value)
        return self._coerce_list(value)

    def from_storage(self, value: Any) -> Any:
        """Normalize a stored column value into the draft representation.

        Lenient where ``coerce`` is strict: stale flag keys are dropped and
        missing ones default to False.
        """
        if self.kind is FieldKind.TEXT:
            return value or ""
        if self.kind is FieldKind.FLAGS:
            stored = value or {}
            return {key: bool(stored.get(key, False)) for key in self.choices}
        if self.kind is FieldKind.LIST:
            return list(value or [])
        if isinstance(value, str):
            return self.coerce(value)
        return value

    def to_storage(self, value: Any) -> Any:
        if self.kind is FieldKind.TEXT:
            return value or ""
        if self.kind is FieldKind.FLAGS:
            return dict(value)
        if self.kind is FieldKind.LIST:
            return list(value)
        # Empty dates/times go out as NULL, never as ""
        return value or None

    def _coerce_text(self, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValidationError(f"{self.name} must be a string", field=self.name)
        if value and self.choices and value not in self.choices:
            raise ValidationError(
                f"{self.name} must be one of: {', '.join(self.choices)}", field=self.name
            )
        return value

    def _coerce_date(self, value: Any) -> date | None:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            raise ValidationError(f"{self.name} must be a date, not a timestamp", field=self.name)
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                raise ValidationError(
                    f"{self.name} must be an ISO date (YYYY-MM-DD)", field=self.name
                ) from None
        raise ValidationError(f"{self.name} must be a date", field=self.name)

    def _coerce_time(self, value: Any) -> time | None:
        if value is None or value == "":
            return None
        if isinstance(value, time):
            return value
        if isinstance(value, str):
            try:
                return time.fromisoformat(value.strip())
            except ValueError:
                raise ValidationError(
                    f"{self.name} must be an ISO time (HH:MM[:SS])", field=self.name
                ) from None
        raise ValidationError(f"{self.name} must be a time", field=self.name)

    def _coerce_flags(self, value: Any) -> dict[str, bool]:
        if value is None:
            return self.blank()
        if not isinstance(value, Mapping):
            raise ValidationError(f"{self.name} must be a mapping", field=self.name)
        unknown = sorted(set(value) - set(self.choices))
        if unknown:
            raise ValidationError(
                f"{self.name} has unknown keys: {', '.join(unknown)}", field=self.name
            )
        flags = self.blank()
        for key, flag in value.items():
            if not isinstance(flag, bool):
                raise ValidationError(f"{self.name}.{key} must be true or false", field=self.name)
            flags[key] = flag
        return flags

    def _coerce_list(self, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
            raise ValidationError(f"{self.name} must be a list of strings", field=self.name)
        if not all(isinstance(item, str) for item in value):
            raise ValidationError(f"{self.name} must be a list of strings", field=self.name)
        return list(value)


def text(name: str, *choices: str) -> FieldSpec:
    return FieldSpec(name, FieldKind.TEXT, tuple(choices))


def date_field(name: str) -> FieldSpec:
    return FieldSpec(name, FieldKind.DATE)


def time_field(name: str) -> FieldSpec:
    return FieldSpec(name, FieldKind.TIME)


@dataclass
class Draft:
    """In-memory, possibly unsaved copy of one record.

    Two drafts are equal when every attribute and every field value is
    equal; that comparison is what decides dirtiness.
    """

    table: str
    patient_id: str
    values: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    section: str | None = None

    @property
    def key(self) -> tuple[str, str, str | None]:
        """Identity of the record this draft edits, independent of its row id."""
        return (self.table, self.patient_id, self.section)

    @property
    def is_new(self) -> bool:
        return self.id is None

    def copy(self) -> "Draft":
        return replace(self, values=copy.deepcopy(self.values))

    def with_id(self, record_id: str) -> "Draft":
        return replace(self, values=copy.deepcopy(self.values), id=record_id)


@dataclass(frozen=True)
class RecordSchema:
    """Field layout of one per-patient record table.

    ``sections`` is empty for singleton records (one row per patient) and
    holds the ordered catalog for keyed records (one row per patient and
    section).
    """

    name: str
    model: type
    fields: tuple[FieldSpec, ...]
    label: str = ""
    sections: tuple[str, ...] = ()
    section_column: str = "section_type"

    @property
    def is_sectioned(self) -> bool:
        return bool(self.sections)

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise ValidationError(f"{self.name} has no field '{name}'", field=name)

    def check_section(self, section: str | None) -> str | None:
        if not self.is_sectioned:
            if section is not None:
                raise ValidationError(f"{self.name} records have no sections")
            return None
        if section not in self.sections:
            raise ValidationError(
                f"Unknown {self.name} section '{section}'", field=self.section_column
            )
        return section

    def blank_draft(self, patient_id: str, section: str | None = None) -> Draft:
        return Draft(
            table=self.name,
            patient_id=patient_id,
            values={spec.name: spec.blank() for spec in self.fields},
            section=self.check_section(section),
        )

    def build_draft(
        self,
        patient_id: str,
        values: Mapping[str, Any],
        record_id: str | None = None,
        section: str | None = None,
    ) -> Draft:
        """Build a draft from user input; absent fields start blank."""
        unknown = sorted(set(values) - set(self.field_names))
        if unknown:
            raise ValidationError(f"{self.name} has no field(s): {', '.join(unknown)}")
        draft = self.blank_draft(patient_id, section)
        for name, value in values.items():
            draft.values[name] = self.field(name).coerce(value)
        draft.id = record_id
        return draft

    def draft_from_row(self, row: Any) -> Draft:
        section = getattr(row, self.section_column) if self.is_sectioned else None
        return Draft(
            table=self.name,
            patient_id=row.patient_id,
            values={spec.name: spec.from_storage(getattr(row, spec.name)) for spec in self.fields},
            id=row.id,
            section=section,
        )

    def row_values(self, draft: Draft) -> dict[str, Any]:
        """Full column set to persist for ``draft``.

        Every field is re-validated, so a draft mutated by hand cannot put
        a malformed value on the wire.
        """
        if draft.table != self.name:
            raise ValidationError(f"Draft for {draft.table} cannot be saved as {self.name}")
        self.check_section(draft.section)
        return {
            spec.name: spec.to_storage(spec.coerce(draft.values.get(spec.name)))
            for spec in self.fields
        }
