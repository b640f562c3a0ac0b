"""Tests for history image storage."""

import hashlib

import pytest

from patient_records.core.errors import ValidationError
from patient_records.services.images.storage import ImageStorageService, is_inline

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.mark.asyncio
async def test_initialize_creates_root(storage_settings):
    storage = ImageStorageService(storage_settings)
    assert storage.is_ready() is False
    await storage.initialize()
    assert storage.is_ready() is True
    assert storage.storage_dir.is_dir()


@pytest.mark.asyncio
async def test_store_read_delete(image_storage):
    stored = await image_storage.store("patient-1", "examination", PNG, "image/png")

    assert stored.reference.startswith("patient-1/examination/")
    assert stored.reference.endswith(".png")
    assert stored.size == len(PNG)
    assert stored.checksum == hashlib.sha256(PNG).hexdigest()
    assert await image_storage.read(stored.reference) == PNG
    assert image_storage.content_type_for(stored.reference) == "image/png"

    assert await image_storage.delete(stored.reference) is True
    assert await image_storage.read(stored.reference) is None
    assert await image_storage.delete(stored.reference) is False


@pytest.mark.asyncio
async def test_every_upload_gets_its_own_reference(image_storage):
    first = await image_storage.store("patient-1", "lab_results", PNG, "image/png")
    second = await image_storage.store("patient-1", "lab_results", PNG, "image/png")
    assert first.reference != second.reference


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "data,content_type",
    [
        (b"", "image/png"),
        (b"x" * 2048, "image/png"),
        (PNG, "application/pdf"),
        (PNG, None),
    ],
)
async def test_rejected_uploads(image_storage, data, content_type):
    with pytest.raises(ValidationError):
        await image_storage.store("patient-1", "examination", data, content_type)


@pytest.mark.asyncio
@pytest.mark.parametrize("patient_id,section", [("../etc", "examination"), ("p1", "a/b"), ("", "x")])
async def test_path_segments_must_be_plain(image_storage, patient_id, section):
    with pytest.raises(ValidationError):
        await image_storage.store(patient_id, section, PNG, "image/png")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reference",
    ["../outside.png", "patient-1/../../outside.png", "", "data:image/png;base64,AAAA"],
)
async def test_resolve_rejects_escapes_and_inline(image_storage, reference):
    with pytest.raises(ValidationError):
        await image_storage.read(reference)


def test_inline_detection():
    assert is_inline("data:image/jpeg;base64,/9j/") is True
    assert is_inline("patient-1/examination/abc.jpg") is False
    assert ImageStorageService.content_type_for("a/b/c.unknown") == "application/octet-stream"
