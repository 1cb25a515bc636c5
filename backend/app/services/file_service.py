"""
Shutterfeed Backend — Photo File Storage
=========================================

What:  Validates, stores, serves and removes uploaded image files.
Who:   PhotoService (upload, delete) and the /api/files route (serving).

Upload checks, cheapest first:
    1. Extension:  .jpg .jpeg .png .gif
    2. Size:       Content-Length header, then the real byte count
    3. Content:    libmagic (python-magic) reads the header bytes; a renamed
                   .exe is rejected even with a .jpg extension
    4. Store:      <storage_root>/YYYY/MM/DD/<uuid><ext>, no user input in
                   the stored name

The database only ever holds the relative path. Serving resolves it back
under the storage root and refuses anything that escapes it.
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
import magic

from app.config import settings
from app.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}

MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}


class FileService:
    """
    Directory layout:
        storage/
        └── 2026/
            └── 10/
                └── 18/
                    ├── 0b6f...e1.jpg
                    └── 9a2c...47.png
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override settings.storage_root (tests use a tmp dir)
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """Return the lowercase extension or raise ValidationError."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'none'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="photo",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Reject empty files and files over MAX_FILE_SIZE.

        The Content-Length check runs before the body is trusted; the actual
        size check catches clients that misreport it.
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty", field="photo")

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="photo",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="photo",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes) -> str:
        """
        Detect the real content type from the file's magic bytes.

        Raises:
            ValidationError: content is not JPEG, PNG or GIF
            FileStorageError: libmagic itself failed
        """
        try:
            mime_type = magic.from_buffer(file_content, mime=True)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a JPEG, PNG or GIF image."
                ),
                field="photo",
                context={"detected_mime": mime_type, "allowed": list(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """Return (absolute_path, relative_path) for a new YYYY/MM/DD/<uuid><ext> file."""
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        relative_path = f"{date_dir}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write already-validated bytes to disk.

        Raises:
            FileStorageError: directory creation or write failed
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("File stored: %s (%d bytes)", relative_path, len(content))
            return str(absolute_path), relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": relative_path, "os_error": str(e)},
            )

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Full upload pipeline: extension → size → content type → write.

        Returns:
            (absolute_path, relative_path); only the relative path is persisted
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content)
        return await self.store_file(content, ext)

    def resolve(self, relative_path: str) -> Path:
        """
        Map a stored relative path back to an existing file.

        Raises:
            ValidationError: the path escapes the storage root
            NotFoundError: no such file
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path", field="path")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=relative_path)
        return full_path

    @staticmethod
    def media_type(path: Path) -> str:
        return MEDIA_TYPES.get(path.suffix.lower(), "application/octet-stream")

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a stored file; `file_path` may be absolute or relative to
        the storage root.

        Best-effort: a missing file is fine, and any other failure is logged
        but not raised. Used after a failed upload and after photo deletion,
        when the database change has already been decided.
        """
        path = Path(file_path)
        if not path.is_absolute():
            path = self.storage_root / path
        try:
            if path.exists():
                os.remove(path)
                logger.info("Removed stored file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to remove file %s: %s", file_path, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
