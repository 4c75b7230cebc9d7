from pathlib import Path
from typing import Optional
from uuid import uuid4
import logging

import aiofiles
from fastapi import HTTPException, Request, UploadFile

logger = logging.getLogger(__name__)


class MediaStorage:
    """Files under `root`, served by the static mount at `base_url`."""

    def __init__(self, root: str, base_url: str = "/media"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    async def save(self, data: bytes, filename: str, folder: str = "albums") -> str:
        ext = Path(filename or "").suffix.lower() or ".jpg"
        rel_path = Path(folder) / f"{uuid4().hex}{ext}"
        abs_path = self.root / rel_path
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(abs_path, "wb") as out:
            await out.write(data)
        return f"{self.base_url}/{rel_path.as_posix()}"

    def path_for(self, url: str) -> Path | None:
        prefix = self.base_url + "/"
        if not url or not url.startswith(prefix):
            return None
        candidate = (self.root / url[len(prefix):]).resolve()
        if self.root.resolve() not in candidate.parents:
            return None
        return candidate

    async def delete(self, url: str) -> bool:
        path = self.path_for(url)
        if path is None or not path.exists():
            return False
        path.unlink()
        logger.info("Removed stored file %s", path)
        return True


ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}


async def read_image_upload(image: Optional[UploadFile], max_bytes: int) -> bytes:
    """Validates an uploaded image and returns its bytes (400 or 413 otherwise)."""
    if image is None or not image.filename:
        raise HTTPException(400, "Image file is required")
    if (image.content_type or "").lower() not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(400, "Only image files are allowed (JPG, PNG, GIF, WebP)")

    # one bounded read; anything past the ceiling means the file is too big
    data = await image.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise HTTPException(413, f"Image size must be less than {max_bytes // (1024 * 1024)}MB")
    return data


async def get_storage(request: Request) -> MediaStorage:
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(status_code=500, detail="Storage not configured")
    return storage
