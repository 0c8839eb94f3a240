"""Uploaded file storage (resumes, profile pictures, company logos)."""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from fastapi import HTTPException, UploadFile

from jobboard.config import settings

logger = logging.getLogger(__name__)

# Configuration
MAX_UPLOAD_SIZE_MB = 5
RESUME_EXTENSIONS = {".pdf", ".docx", ".doc"}
UPLOADS_ROUTE = "/uploads"


@dataclass(frozen=True)
class StoredBlob:
    key: str
    url: str


class BlobStore(Protocol):
    def upload(self, folder: str, filename: str, data: bytes) -> StoredBlob:
        ...

    def delete(self, key: str) -> None:
        ...


class LocalBlobStore:
    """Writes blobs under a root directory; they are served from /uploads."""

    def __init__(self, root: Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def upload(self, folder: str, filename: str, data: bytes) -> StoredBlob:
        key = f"{folder}/{uuid4().hex}{Path(filename or '').suffix.lower()}"
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"Stored blob {key} ({len(data)} bytes)")
        return StoredBlob(key=key, url=f"{self.base_url}{UPLOADS_ROUTE}/{key}")

    def delete(self, key: str) -> None:
        """Delete a blob; a missing file is not an error."""
        try:
            path = self.root / key
            if path.exists():
                os.remove(path)
        except Exception as e:
            logger.warning(f"Failed to delete blob {key}: {str(e)}")


def get_blob_store() -> BlobStore:
    """FastAPI dependency returning the configured blob store (overridden in tests)."""
    return LocalBlobStore(Path(settings.upload_dir), settings.public_base_url)


async def _read_limited(file: UploadFile) -> bytes:
    data = await file.read()
    if len(data) > MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {MAX_UPLOAD_SIZE_MB}MB"
        )
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return data


async def read_resume_file(file: UploadFile) -> bytes:
    """
    Validate and read a resume upload.

    Raises:
        HTTPException 400: If file is invalid
    """
    ext = Path(file.filename or "").suffix.lower()
    if ext not in RESUME_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Allowed: {', '.join(sorted(RESUME_EXTENSIONS))}"
        )
    return await _read_limited(file)


async def read_image_file(file: UploadFile) -> bytes:
    """Validate and read an image upload (any image/* content type)."""
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Please upload an image file")
    return await _read_limited(file)
