"""API v1 Router - Aggregates all API endpoints."""

from fastapi import APIRouter

from patient_records.api.v1.endpoints import catalog, health, history, images, patients, records

api_router = APIRouter()

# Registration and lookup
api_router.include_router(
    patients.router,
    prefix="/patients",
    tags=["Patients"],
)

# Per-patient record forms
api_router.include_router(
    records.router,
    prefix="/patients",
    tags=["Records"],
)

api_router.include_router(
    history.router,
    prefix="/patients",
    tags=["History"],
)

# Stored history images
api_router.include_router(
    images.router,
    prefix="/images",
    tags=["Images"],
)

# Section and question catalogs
api_router.include_router(
    catalog.router,
    prefix="/catalog",
    tags=["Catalog"],
)

# Health / client error reporting
api_router.include_router(
    health.router,
    tags=["Health"],
)
