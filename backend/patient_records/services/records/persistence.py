"""Storage call wrapper: timeout, bounded retry, error translation.

Every read and write the record services issue goes through
``call_storage``. Transient transport failures are retried with
exponential backoff; anything else from SQLAlchemy becomes a
``PersistenceError`` carrying the driver's own message. Integrity
violations are re-raised untouched so callers can decide what a
uniqueness conflict means for them.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.core.config import PersistenceSettings, settings
from patient_records.core.errors import PersistenceError
from patient_records.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (OperationalError, InterfaceError, asyncio.TimeoutError)


def describe_error(exc: BaseException) -> str:
    """Driver message for ``exc`` without SQLAlchemy's statement dump."""
    orig = getattr(exc, "orig", None)
    if orig is not None:
        return str(orig)
    if isinstance(exc, asyncio.TimeoutError):
        return "Storage call timed out"
    return str(exc)


async def call_storage(
    session: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    action: str,
    policy: PersistenceSettings | None = None,
) -> T:
    """Run ``operation`` against ``session`` under the persistence policy.

    ``operation`` must be safe to run again from scratch: the session is
    rolled back before every retry.

    Raises:
        IntegrityError: constraint violation, session already rolled back
        PersistenceError: any other storage failure, after retries
    """
    policy = policy or settings.persistence
    attempt = 0
    while True:
        try:
            return await asyncio.wait_for(operation(), timeout=policy.timeout_seconds)
        except IntegrityError:
            await session.rollback()
            raise
        except TRANSIENT_ERRORS as exc:
            await session.rollback()
            if attempt >= policy.max_retries:
                logger.error(
                    "storage_call_failed",
                    action=action,
                    attempts=attempt + 1,
                    error=describe_error(exc),
                )
                raise PersistenceError(describe_error(exc)) from exc
            delay = policy.retry_backoff_seconds * (2**attempt)
            attempt += 1
            logger.warning(
                "storage_call_retry",
                action=action,
                attempt=attempt,
                delay_seconds=delay,
                error=describe_error(exc),
            )
            await asyncio.sleep(delay)
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error("storage_call_failed", action=action, error=describe_error(exc))
            raise PersistenceError(describe_error(exc)) from exc
