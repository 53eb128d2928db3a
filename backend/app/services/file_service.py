"""
Storefront Backend — File Storage Service
===========================================

What:  Validates uploaded images and stores them on local disk.
How:   Checks extension, declared MIME type and size, then writes the bytes
       under <upload_root>/<folder>/ with a UUID filename.
Who:   Called by CatalogService (product images) and UserService
       (profile pictures); the uploads router serves the stored files.

Validation order:
    1. Extension check:  .jpeg .jpg .png .gif
    2. Declared type:    the client's content type must name one of the same formats
    3. Size check:       non-empty and at most max_upload_size (5MB)
    4. Content check:    libmagic reads the header bytes; they must be an image too
    5. Store:            only after every file in the batch passed 1-4

Public paths:
    A file stored at <upload_root>/products/3f2c....png is reachable at
    /uploads/products/3f2c....png; that path is what gets persisted.
"""

import logging
import os
import re
import uuid
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import aiofiles
import magic

from app.config import Settings
from app.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif"}

# Matches image/jpeg, image/png, image/gif (and the non-standard image/jpg)
ALLOWED_MIME_PATTERN = re.compile(r"jpeg|jpg|png|gif")

PUBLIC_PREFIX = "/uploads"

PRODUCT_FOLDER = "products"
PROFILE_PICTURE_FOLDER = "profile-pictures"


class FileService:
    """
    Manages upload validation and storage.

    Directory Structure:
        uploads/
        ├── products/
        │   ├── a1b2c3d4-....jpg
        │   └── e5f6g7h8-....png
        └── profile-pictures/
            └── 0f1e2d3c-....png
    """

    def __init__(self, settings: Settings):
        self.upload_root = Path(settings.upload_root).resolve()
        self.max_upload_size = settings.max_upload_size
        logger.info("FileService initialized with upload_root=%s", self.upload_root)

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if the extension is not an allowed image type.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    "Only images are allowed (jpeg, jpg, png, gif)."
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_mime_type(self, content_type: Optional[str], filename: str) -> None:
        if not content_type or not ALLOWED_MIME_PATTERN.search(content_type.lower()):
            raise ValidationError(
                message=(
                    f"Content type '{content_type}' of '{filename}' is not supported. "
                    "Only images are allowed (jpeg, jpg, png, gif)."
                ),
                field="file",
                context={"content_type": content_type},
            )

    def validate_size(self, size: int, filename: str) -> None:
        if size == 0:
            raise ValidationError(
                message=f"File '{filename}' is empty.",
                field="file",
            )
        if size > self.max_upload_size:
            max_mb = self.max_upload_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"File '{filename}' is too large ({size / (1024 * 1024):.1f}MB). "
                    f"Maximum is {max_mb:.0f}MB."
                ),
                field="file",
                context={"max_size": self.max_upload_size, "actual_size": size},
            )

    def detect_mime_type(self, content: bytes, filename: str) -> str:
        """
        Identify the file from its header bytes, ignoring name and declared type.

        Returns: Detected MIME type (e.g. "image/png").
        Raises:
            ValidationError: the bytes are not a jpeg, png or gif image
            FileStorageError: libmagic could not inspect the content
        """
        try:
            mime_type = magic.from_buffer(content[:2048], mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed for %s: %s", filename, str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if not mime_type.startswith("image/") or not ALLOWED_MIME_PATTERN.search(mime_type):
            raise ValidationError(
                message=(
                    f"Content of '{filename}' is not a supported image "
                    f"(detected '{mime_type}'). Only jpeg, jpg, png and gif are allowed."
                ),
                field="file",
                context={"detected_mime": mime_type},
            )
        return mime_type

    def validate(self, filename: str, content_type: Optional[str], content: bytes) -> str:
        """Run every check for one file and return its extension."""
        ext = self.validate_extension(filename)
        self.validate_mime_type(content_type, filename)
        self.validate_size(len(content), filename)
        self.detect_mime_type(content, filename)
        return ext

    def _generate_storage_path(self, folder: str, extension: str) -> Tuple[Path, str]:
        """
        Returns: Tuple of (absolute_path, public_path).

        The filename is a fresh UUID; nothing from the client's filename
        reaches the file system.
        """
        unique_name = f"{uuid.uuid4()}{extension}"
        absolute_path = self.upload_root / folder / unique_name
        public_path = f"{PUBLIC_PREFIX}/{folder}/{unique_name}"
        return absolute_path, public_path

    async def store_file(self, folder: str, content: bytes, extension: str) -> str:
        """
        Write already-validated content to disk.

        Returns: Public path of the stored file.
        Raises:  FileStorageError if the directory or file cannot be written.
        """
        absolute_path, public_path = self._generate_storage_path(folder, extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", public_path, len(content))
        return public_path

    async def validate_and_store_many(
        self,
        folder: str,
        files: Sequence[Tuple[str, Optional[str], bytes]],
    ) -> List[str]:
        """
        Validate a batch of (filename, content_type, content) and store it.

        Every file is validated before the first one is written, so a
        rejected file never leaves siblings behind on disk.

        Returns: Public paths, in upload order.
        """
        validated = [
            (self.validate(filename, content_type, content), content)
            for filename, content_type, content in files
        ]

        stored: List[str] = []
        try:
            for ext, content in validated:
                stored.append(await self.store_file(folder, content, ext))
        except FileStorageError:
            for public_path in stored:
                await self.cleanup_file(public_path)
            raise
        return stored

    async def validate_and_store(
        self,
        folder: str,
        filename: str,
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        paths = await self.validate_and_store_many(folder, [(filename, content_type, content)])
        return paths[0]

    def resolve_public_path(self, relative_path: str) -> Path:
        """
        Map the part after /uploads/ to a file on disk.

        Raises:
            ValidationError: the path escapes the upload root (../ tricks)
            NotFoundError: no such file
        """
        full_path = (self.upload_root / relative_path).resolve()
        if not full_path.is_relative_to(self.upload_root):
            raise ValidationError(message="Invalid file path", field="path")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=relative_path)
        return full_path

    async def cleanup_file(self, public_path: str) -> None:
        """
        Remove a stored file by its public path.

        Best-effort: a missing file is ignored and OS errors are logged, since
        the caller is already reporting a different failure.
        """
        relative = public_path.removeprefix(f"{PUBLIC_PREFIX}/")
        path = self.upload_root / relative
        try:
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", public_path, str(e))
