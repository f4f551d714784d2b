"""On-disk storage for uploaded images."""

import logging
import re
from pathlib import Path
from uuid import uuid4

import aiofiles

logger = logging.getLogger(__name__)

IMAGE_EXTENSION_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)

CONTENT_TYPES = {
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}

UPLOAD_URL_PREFIX = "/api/uploads"


def is_image_name(name: str) -> bool:
    """Check that a file name ends in a supported image extension."""
    return bool(IMAGE_EXTENSION_PATTERN.search(name))


def content_type_for(name: str) -> str:
    """Content type for an image file name, defaulting to JPEG."""
    extension = name.rsplit(".", 1)[-1].lower()
    return CONTENT_TYPES.get(extension, "image/jpeg")


class ImageStorage:
    """Writes uploads under a root directory and resolves them for serving."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    async def save(self, original_name: str, data: bytes) -> str:
        """Store image bytes and return the URL they are served from."""
        self.ensure_root()
        filename = f"{uuid4()}-{Path(original_name).name.replace(' ', '_')}"
        async with aiofiles.open(self.root / filename, "wb") as f:
            await f.write(data)
        logger.info(f"Stored upload {filename} ({len(data)} bytes)")
        return f"{UPLOAD_URL_PREFIX}/{filename}"

    def delete(self, url: str) -> None:
        """Remove a stored image given the URL returned by save()."""
        filename = url.rsplit("/", 1)[-1]
        (self.root / filename).unlink(missing_ok=True)
        logger.info(f"Removed upload {filename}")

    def resolve(self, relative_path: str) -> Path | None:
        """Map a request path to a stored image, or None if it is not servable."""
        if not relative_path or ".." in relative_path or not is_image_name(relative_path):
            return None
        if Path(relative_path).is_absolute():
            return None
        path = self.root / relative_path
        if not path.resolve().is_relative_to(self.root.resolve()):
            return None
        if not path.is_file():
            return None
        return path
