"""Patient Identity Resolver.

Establishes which patient the record forms work on, either by registering a
new patient or by looking one up by patient number, and remembers that
patient as the active context until it is replaced.
"""

import re
from collections.abc import Callable
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.core.config import PersistenceSettings, RegistrationSettings, settings
from patient_records.core.errors import PersistenceError, ValidationError
from patient_records.core.logging import audit_logger, get_logger
from patient_records.models.base import generate_uuid
from patient_records.models.patient import GENDER_CHOICES, Patient
from patient_records.services.records.numbering import (
    PatientNumberGenerator,
    SequencePatientNumberGenerator,
)
from patient_records.services.records.persistence import call_storage, describe_error

logger = get_logger(__name__)

PatientListener = Callable[[Patient | None], None]

_AGE_PATTERN = re.compile(r"\d+")

# A colliding number is retried once with a fresh one before giving up
REGISTRATION_ATTEMPTS = 2


def validate_registration(
    full_name: Any,
    age: Any,
    gender: Any,
    registration: RegistrationSettings | None = None,
) -> tuple[str, int, str]:
    """Check registration input and return it normalized.

    ``age`` may be an int or the digit string a form field produces.

    Raises:
        ValidationError: name blank, gender unknown, or age not a whole
            number within the configured range
    """
    registration = registration or settings.registration

    if not isinstance(full_name, str) or not full_name.strip():
        raise ValidationError("Patient name is required", field="full_name")

    if isinstance(age, bool):
        raise ValidationError("Age must be a whole number", field="age")
    if isinstance(age, str):
        if not _AGE_PATTERN.fullmatch(age.strip()):
            raise ValidationError("Age must be a whole number", field="age")
        age = int(age.strip())
    if not isinstance(age, int):
        raise ValidationError("Age must be a whole number", field="age")
    if not registration.min_age <= age <= registration.max_age:
        raise ValidationError(
            f"Age must be between {registration.min_age} and {registration.max_age}",
            field="age",
        )

    if gender not in GENDER_CHOICES:
        raise ValidationError(
            f"Gender must be one of: {', '.join(GENDER_CHOICES)}", field="gender"
        )

    return full_name.strip(), age, gender


class PatientIdentityResolver:
    """Registers and finds patients, and tracks the active one."""

    def __init__(
        self,
        session: AsyncSession,
        number_generator: PatientNumberGenerator | None = None,
        registration: RegistrationSettings | None = None,
        policy: PersistenceSettings | None = None,
    ):
        self.session = session
        self.registration = registration or settings.registration
        self.number_generator = number_generator or SequencePatientNumberGenerator(
            self.registration
        )
        self.policy = policy
        self._active: Patient | None = None
        self._listeners: list[PatientListener] = []

    @property
    def active_patient(self) -> Patient | None:
        return self._active

    def subscribe(self, listener: PatientListener) -> Callable[[], None]:
        """Call ``listener`` whenever the active patient changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def activate(self, patient: Patient | None) -> None:
        """Make ``patient`` the active context and notify subscribers.

        The patient is detached from the session first, so rollbacks of later
        saves on the same session cannot expire its attributes.
        """
        if patient is not None and patient in self.session:
            self.session.expunge(patient)
        self._active = patient
        for listener in list(self._listeners):
            listener(patient)

    def clear(self) -> None:
        self.activate(None)

    async def register_patient(self, full_name: Any, age: Any, gender: Any) -> Patient:
        """Create a patient with a freshly generated patient number.

        Raises:
            ValidationError: input rejected before any storage call
            PersistenceError: number generation or insert failed
        """
        full_name, age, gender = validate_registration(
            full_name, age, gender, self.registration
        )

        async def operation() -> Patient:
            patient_number = await self.number_generator.next_number(self.session)
            patient = Patient(
                id=generate_uuid(),
                patient_number=patient_number,
                full_name=full_name,
                age=age,
                gender=gender,
            )
            self.session.add(patient)
            await self.session.commit()
            await self.session.refresh(patient)
            return patient

        for attempt in range(1, REGISTRATION_ATTEMPTS + 1):
            try:
                patient = await call_storage(
                    self.session, operation, action="register_patient", policy=self.policy
                )
                break
            except IntegrityError as exc:
                logger.warning(
                    "patient_number_collision", attempt=attempt, error=describe_error(exc)
                )
                if attempt == REGISTRATION_ATTEMPTS:
                    raise PersistenceError(describe_error(exc)) from exc

        audit_logger.log_registration(patient.id, patient.patient_number)
        self.activate(patient)
        return patient

    async def find_patient_by_number(self, patient_number: Any) -> Patient | None:
        """Exact, case-sensitive lookup; ``None`` when nothing matches.

        Raises:
            ValidationError: blank search term
            PersistenceError: storage failure
        """
        if not isinstance(patient_number, str) or not patient_number.strip():
            raise ValidationError("Please enter a patient number", field="patient_number")
        patient_number = patient_number.strip()

        query = select(Patient).where(Patient.patient_number == patient_number)

        async def operation() -> Patient | None:
            result = await self.session.execute(query)
            return result.scalar_one_or_none()

        patient = await call_storage(
            self.session, operation, action="find_patient_by_number", policy=self.policy
        )
        audit_logger.log_access(
            resource_type="patient",
            resource_id=patient.id if patient else patient_number,
            action="SEARCH",
            success=patient is not None,
        )
        if patient is not None:
            self.activate(patient)
        return patient

    async def get_patient(self, patient_id: str) -> Patient | None:
        """Fetch by opaque id without changing the active patient."""

        async def operation() -> Patient | None:
            return await self.session.get(Patient, patient_id)

        return await call_storage(
            self.session, operation, action="get_patient", policy=self.policy
        )
