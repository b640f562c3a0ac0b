"""Serving of stored history images."""

from fastapi import APIRouter, HTTPException, Response, status

from patient_records.api.v1.deps import ImageStorage

router = APIRouter()


@router.get("/{reference:path}")
async def get_image(reference: str, storage: ImageStorage) -> Response:
    data = await storage.read(reference)
    if data is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Image not found",
        )
    return Response(
        content=data,
        media_type=storage.content_type_for(reference),
        headers={"Cache-Control": "private, max-age=3600"},
    )
