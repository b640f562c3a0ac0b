"""History image storage."""

from patient_records.services.images.storage import ImageStorageService, StoredImage

__all__ = ["ImageStorageService", "StoredImage"]
