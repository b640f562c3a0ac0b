"""Client error reporting endpoint.

Record screens report save and load failures they showed the user, so the
server log has the client's view next to its own ``storage_call_failed``
entries. Reports must not carry record content.
"""

from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlsplit

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, ConfigDict, Field

from patient_records.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

MAX_MESSAGE_CHARS = 2000
MAX_STACK_CHARS = 5000


class ClientErrorReport(BaseModel):
    """Client-side error report payload (no PHI)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="Error message shown to the user")
    url: str = Field(..., description="Page URL; query and fragment are dropped")
    form: str | None = Field(None, description="Record form that was open")
    section: str | None = Field(None, description="History section that was open")
    stack: str | None = Field(None, description="Stack trace")
    user_agent: str | None = Field(None, alias="userAgent")
    timestamp: str | None = Field(None, description="Client timestamp (ISO 8601)")
    correlation_id: str | None = Field(None, alias="correlationId")


def _path_only(raw_url: str) -> str:
    """Patient ids and numbers can sit in query strings; keep the path."""
    try:
        return urlsplit(raw_url).path
    except ValueError:
        return raw_url.split("?", 1)[0].split("#", 1)[0]


@router.post("/health/client-error", status_code=status.HTTP_204_NO_CONTENT)
async def report_client_error(payload: ClientErrorReport, request: Request) -> None:
    """Receive client error reports for observability."""
    event: dict[str, Any] = {
        "message": payload.message[:MAX_MESSAGE_CHARS],
        "url": _path_only(payload.url),
        "form": payload.form,
        "section": payload.section,
        "user_agent": payload.user_agent,
        "client_timestamp": payload.timestamp or datetime.now(timezone.utc).isoformat(),
        "correlation_id": payload.correlation_id,
        "client_ip": request.client.host if request.client else "unknown",
    }
    if payload.stack:
        event["stack"] = payload.stack[:MAX_STACK_CHARS]

    logger.warning("client_error_reported", **event)
    return None


@router.get("/health/client-error", status_code=status.HTTP_204_NO_CONTENT)
async def client_error_healthcheck() -> None:
    return None
