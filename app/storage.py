import logging
import uuid
from pathlib import Path
from typing import List, Optional

from fastapi import UploadFile

from .errors import BadRequestError

logger = logging.getLogger(__name__)


class LocalImageStorage:
    """Keeps uploaded product images on disk; they are served back under /images."""

    def __init__(self, directory: str, public_base_url: str, allowed_formats: List[str],
                 folder: str = "products"):
        self.root = Path(directory)
        self.folder = folder
        self.public_base_url = public_base_url.rstrip("/")
        self.allowed_formats = [f.lower() for f in allowed_formats]

    def _extension(self, filename: str) -> str:
        ext = Path(filename).suffix.lower().lstrip(".")
        if ext not in self.allowed_formats:
            raise BadRequestError(f"Only {', '.join(self.allowed_formats)} images are allowed")
        return ext

    async def save(self, upload: Optional[UploadFile]) -> str:
        if upload is None or not upload.filename:
            raise BadRequestError("No image uploaded")
        ext = self._extension(upload.filename)
        content = await upload.read()
        if not content:
            raise BadRequestError("No image uploaded")

        target = self.root / self.folder
        target.mkdir(parents=True, exist_ok=True)
        name = f"{uuid.uuid4().hex}.{ext}"
        (target / name).write_bytes(content)
        logger.info("Stored image %s (%d bytes)", name, len(content))
        return f"{self.public_base_url}/images/{self.folder}/{name}"
