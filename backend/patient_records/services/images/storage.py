"""Image Storage Service for history attachments.

History rows keep image references, never image bytes. Uploaded files live
on disk and are addressed by a reference relative to the storage root.
"""

import hashlib
import re
import uuid
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import aiofiles.os

from patient_records.core.config import StorageSettings, settings
from patient_records.core.errors import ValidationError
from patient_records.core.logging import get_logger

logger = get_logger(__name__)

EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}
CONTENT_TYPES = {ext: content_type for content_type, ext in EXTENSIONS.items()}
CONTENT_TYPES["jpeg"] = "image/jpeg"

_SEGMENT = re.compile(r"[A-Za-z0-9_-]+")


@dataclass(frozen=True)
class StoredImage:
    reference: str
    size: int
    checksum: str
    content_type: str


def is_inline(reference: str) -> bool:
    """Legacy rows embed images as ``data:`` URLs instead of references."""
    return reference.startswith("data:")


class ImageStorageService:
    """Service for managing uploaded history images.

    Organizes files in a hierarchical structure:
    image_dir/
        ├── {patient_id}/
        │   ├── {section}/
        │   │   ├── {uuid}.{ext}
        │   │   └── ...
        │   └── ...
        └── ...
    """

    def __init__(self, storage: StorageSettings | None = None):
        storage = storage or settings.storage
        self.storage_dir = Path(storage.image_dir).resolve()
        self.max_bytes = storage.max_image_bytes
        self.allowed_content_types = tuple(storage.allowed_content_types)
        self._ready = False

    async def initialize(self) -> None:
        """Create the storage root."""
        try:
            await aiofiles.os.makedirs(self.storage_dir, exist_ok=True)
            self._ready = True
            logger.info("image_storage_initialized", path=str(self.storage_dir))
        except OSError as e:
            logger.error("image_storage_init_failed", error=str(e))
            raise

    def is_ready(self) -> bool:
        return self._ready

    async def store(
        self, patient_id: str, section: str, data: bytes, content_type: str | None
    ) -> StoredImage:
        """Write ``data`` and return its reference.

        Raises:
            ValidationError: empty or oversized file, unsupported type, or a
                path segment that is not a plain identifier
        """
        for segment in (patient_id, section):
            if not _SEGMENT.fullmatch(segment or ""):
                raise ValidationError(f"Invalid storage path segment '{segment}'")
        if content_type not in self.allowed_content_types or content_type not in EXTENSIONS:
            raise ValidationError(
                f"Unsupported image type '{content_type}'", field="content_type"
            )
        if not data:
            raise ValidationError("Uploaded image is empty", field="file")
        if len(data) > self.max_bytes:
            raise ValidationError(
                f"Image exceeds the {self.max_bytes} byte limit", field="file"
            )

        reference = f"{patient_id}/{section}/{uuid.uuid4().hex}.{EXTENSIONS[content_type]}"
        path = self.storage_dir / reference
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)

        checksum = hashlib.sha256(data).hexdigest()
        logger.info("image_stored", reference=reference, size=len(data))
        return StoredImage(
            reference=reference,
            size=len(data),
            checksum=checksum,
            content_type=content_type,
        )

    def resolve(self, reference: str) -> Path:
        """Map a reference to its file, refusing anything outside the root."""
        if not reference or is_inline(reference):
            raise ValidationError("Not a stored image reference", field="reference")
        path = (self.storage_dir / reference).resolve()
        if not path.is_relative_to(self.storage_dir) or path == self.storage_dir:
            raise ValidationError("Image reference escapes the storage root", field="reference")
        return path

    async def read(self, reference: str) -> bytes | None:
        """Stored bytes, or ``None`` when the reference points at nothing."""
        path = self.resolve(reference)
        if not path.is_file():
            return None
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def delete(self, reference: str) -> bool:
        path = self.resolve(reference)
        if not path.is_file():
            return False
        await aiofiles.os.remove(path)
        logger.info("image_deleted", reference=reference)
        return True

    @staticmethod
    def content_type_for(reference: str) -> str:
        ext = reference.rsplit(".", 1)[-1].lower() if "." in reference else ""
        return CONTENT_TYPES.get(ext, "application/octet-stream")
