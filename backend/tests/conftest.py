"""Pytest configuration and shared fixtures for Patient Records backend tests.

Every test gets its own SQLite database file, created with the application
metadata, so tests never share rows.
"""

import os

# Must be set before patient_records is imported: the engine is built at import
os.environ.setdefault("DB_DSN", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")

from collections.abc import AsyncGenerator  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from patient_records.core.config import PersistenceSettings, StorageSettings  # noqa: E402
from patient_records.models.base import (  # noqa: E402
    Base,
    enable_sqlite_foreign_keys,
    get_db,
)
from patient_records.models.patient import Patient  # noqa: E402
from patient_records.services.images.storage import ImageStorageService  # noqa: E402
from patient_records.services.records.identity import PatientIdentityResolver  # noqa: E402


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    db_file = tmp_path / "records.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_file}", echo=False)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def fast_policy() -> PersistenceSettings:
    """Persistence policy without backoff delays."""
    return PersistenceSettings(timeout_seconds=5.0, max_retries=2, retry_backoff_seconds=0.0)


@pytest.fixture
async def patient(session: AsyncSession, fast_policy: PersistenceSettings) -> Patient:
    resolver = PatientIdentityResolver(session, policy=fast_policy)
    return await resolver.register_patient("Jane Doe", 34, "Female")


@pytest.fixture
def storage_settings(tmp_path: Path) -> StorageSettings:
    return StorageSettings(image_dir=tmp_path / "images", max_image_bytes=1024)


@pytest.fixture
async def image_storage(storage_settings: StorageSettings) -> ImageStorageService:
    storage = ImageStorageService(storage_settings)
    await storage.initialize()
    return storage


@pytest.fixture
async def app(
    session_maker: async_sessionmaker[AsyncSession],
    image_storage: ImageStorageService,
) -> FastAPI:
    """Full application bound to the per-test database and image directory."""
    from patient_records.main import create_application

    app = create_application()

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.db_session_maker = session_maker
    app.state.image_storage = image_storage
    return app
