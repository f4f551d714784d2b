"""Serving of uploaded images."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from src.api.dependencies import get_image_storage
from src.exceptions import NotFoundError
from src.services.storage import ImageStorage, content_type_for

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.get("/{image_path:path}")
def get_upload(
    image_path: str,
    storage: Annotated[ImageStorage, Depends(get_image_storage)],
):
    """Serve a stored image."""
    path = storage.resolve(image_path)
    if path is None:
        raise NotFoundError()

    return FileResponse(
        path,
        media_type=content_type_for(path.name),
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
