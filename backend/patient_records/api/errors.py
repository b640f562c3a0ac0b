"""Mapping of record errors onto HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from patient_records.core.errors import (
    ConsistencyError,
    PersistenceError,
    RecordsError,
    SaveInProgressError,
    ValidationError,
)
from patient_records.core.logging import get_logger

logger = get_logger(__name__)

# Most specific first; the first isinstance match wins
STATUS_CODES: tuple[tuple[type[RecordsError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConsistencyError, status.HTTP_409_CONFLICT),
    (SaveInProgressError, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: RecordsError) -> int:
    for error_type, code in STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    if route and hasattr(route, "path"):
        return route.path
    return request.url.path


async def records_error_handler(request: Request, exc: RecordsError) -> JSONResponse:
    code = status_for(exc)
    content: dict[str, str] = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field

    log = logger.warning if code < 500 else logger.error
    log(
        "records_error",
        path=_route_path(request),
        method=request.method,
        error_type=type(exc).__name__,
        status_code=code,
    )
    return JSONResponse(status_code=code, content=content)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RecordsError, records_error_handler)
