"""Patient Records - registration and per-patient record forms.

Main FastAPI application entry point.
"""

import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram, make_asgi_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from patient_records.api.errors import install_exception_handlers
from patient_records.api.v1.router import api_router
from patient_records.core.config import settings
from patient_records.core.logging import get_logger, setup_logging

# Initialize logging
setup_logging(
    log_level="DEBUG" if settings.debug else "INFO",
    json_logs=settings.environment == "production",
)

logger = get_logger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "patient_records_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "patient_records_request_latency_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
)


def _safe_request_path(request: Request) -> str:
    """Return the route template so patient ids never reach logs or labels."""
    route = request.scope.get("route")
    if route and hasattr(route, "path"):
        return route.path
    return request.url.path


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info(
        "Starting Patient Records",
        version=settings.app_version,
        environment=settings.environment,
    )

    from patient_records.models.base import async_session_maker, create_tables, engine

    app.state.db_engine = engine
    app.state.db_session_maker = async_session_maker

    if settings.auto_create_tables:
        await create_tables()
        logger.info("Database tables ensured")

    # Optional demo data seeding (development only)
    if settings.enable_demo_data:
        try:
            from patient_records.services.demo_data import seed_demo_patients

            async with async_session_maker() as session:
                inserted = await seed_demo_patients(session)
                logger.warning("Demo data enabled", patients_seeded=inserted)
        except SQLAlchemyError as e:
            logger.warning("Could not seed demo data", error=str(e))

    from patient_records.services.images.storage import ImageStorageService

    image_storage = ImageStorageService(settings.storage)
    await image_storage.initialize()
    app.state.image_storage = image_storage

    logger.info("Patient Records started successfully")

    yield

    logger.info("Shutting down Patient Records")

    if hasattr(app.state, "db_engine"):
        await app.state.db_engine.dispose()
        logger.info("Database connections closed")

    logger.info("Patient Records shutdown complete")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="""
        Patient registration, lookup and per-patient record forms.

        ## Records

        - **Personal data**: demographics, address and next of kin
        - **History**: one entry per section, with image references
        - **Orientation**: ward orientation checklist
        - **Admission / discharge**: admission and discharge details
        """,
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming requests with timing."""
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        response = await call_next(request)
        process_time = time.time() - start_time
        safe_path = _safe_request_path(request)

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=safe_path,
            status=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=safe_path,
        ).observe(process_time)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        logger.info(
            "request_completed",
            request_id=request_id,
            method=request.method,
            path=safe_path,
            status_code=response.status_code,
            process_time=f"{process_time:.4f}s",
        )

        return response

    # Mount Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())

    app.include_router(api_router, prefix="/api/v1")
    install_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Liveness probe."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check(request: Request):
        """Readiness probe: database reachable and image storage initialized."""
        checks = {
            "database": False,
            "image_storage": False,
        }

        if hasattr(request.app.state, "db_session_maker"):
            try:
                async with request.app.state.db_session_maker() as session:
                    await session.execute(text("SELECT 1"))
                    checks["database"] = True
            except SQLAlchemyError as e:
                logger.warning("readiness_database_failed", error=str(e))

        if hasattr(request.app.state, "image_storage"):
            checks["image_storage"] = request.app.state.image_storage.is_ready()

        all_ready = all(checks.values())
        return JSONResponse(
            status_code=200 if all_ready else 503,
            content={
                "ready": all_ready,
                "checks": checks,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(
            "unhandled_exception",
            path=_safe_request_path(request),
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "message": str(exc) if settings.debug else "An unexpected error occurred",
            },
        )

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "patient_records.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers,
        log_level="debug" if settings.debug else "info",
    )
