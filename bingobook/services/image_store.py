"""
BingoBook Backend — Image Store
=================================

What:  Saves uploaded entry images to disk and deletes them by reference.
How:   Validates extension and size, writes `<uuid><ext>` into a flat
       storage directory with async I/O, and hands back an opaque reference
       of the form `/uploads/<filename>` that is stored in Entry.images.
Who:   Called by EntryService (submit, add images, delete image).

Reference format:
    "/uploads/3f2b...e1.jpg"  → file  <storage_root>/3f2b...e1.jpg

    Only the basename of a reference is ever used to locate a file, so a
    reference (or a client-supplied imageName) cannot point outside
    storage_root.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from bingobook.config import settings
from bingobook.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Prefix of every reference handed out by the store
REFERENCE_PREFIX = "/uploads/"

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


class ImageStore:
    """
    Flat-directory image storage.

    Lifecycle of an uploaded image:
        1. EntryService validates every file in the request (validate())
        2. store() writes the bytes and returns "/uploads/<uuid>.<ext>"
        3. The reference is appended to Entry.images
        4. delete() removes the file when a client deletes the image;
           cleanup() removes it when the database write that should have
           referenced it failed
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                         If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("ImageStore initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """Return the normalized extension, or raise ValidationError."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="images",
                context={"filename": filename, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, filename: str, size: int) -> None:
        if size == 0:
            raise ValidationError(
                message=f"File '{filename}' is empty.",
                field="images",
                context={"filename": filename},
            )
        if size > settings.max_file_size:
            max_mb = settings.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"File '{filename}' ({size / (1024 * 1024):.1f}MB) exceeds "
                    f"the maximum of {max_mb:.0f}MB."
                ),
                field="images",
                context={"filename": filename, "size": size},
            )

    def validate(self, filename: str, content: bytes) -> str:
        """Run all checks for one upload; returns its extension."""
        ext = self.validate_extension(filename)
        self.validate_size(filename, len(content))
        return ext

    # ── Paths ─────────────────────────────────────────────────────────────

    def path_for(self, reference: str) -> Path:
        """Resolve a reference (or bare filename) to a path inside storage_root."""
        name = os.path.basename(reference.replace("\\", "/"))
        if not name or name in (".", ".."):
            raise ValidationError(
                message="Invalid image reference",
                field="imageName",
                context={"reference": reference},
            )
        return self.storage_root / name

    @staticmethod
    def reference_for(filename: str) -> str:
        return f"{REFERENCE_PREFIX}{filename}"

    # ── Operations ────────────────────────────────────────────────────────

    async def store(self, filename: str, content: bytes) -> str:
        """
        Validate and write one image; return its reference.

        Raises:
            ValidationError:  unsupported extension, empty or oversized file
            FileStorageError: the write failed (disk full, permissions, ...)
        """
        ext = self.validate(filename, content)
        stored_name = f"{uuid.uuid4()}{ext}"
        absolute_path = self.storage_root / stored_name

        try:
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes, from %s)", stored_name, len(content), filename)
        return self.reference_for(stored_name)

    async def delete(self, reference: str) -> None:
        """
        Delete the file behind a reference.

        Raises:
            NotFoundError:    no such file in the store
            FileStorageError: any other OS failure
        """
        path = self.path_for(reference)
        try:
            os.remove(path)
        except FileNotFoundError:
            raise NotFoundError(resource="image", resource_id=path.name)
        except OSError as e:
            logger.error("Failed to delete image %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to delete image",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.info("Image deleted: %s", path.name)

    async def cleanup(self, reference: str) -> None:
        """
        Best-effort removal of an image whose database write failed.

        Logs instead of raising; the original error is what the client sees.
        """
        try:
            path = self.path_for(reference)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up image: %s", path.name)
        except Exception as e:
            logger.warning("Failed to clean up image %s: %s", reference, str(e))


image_store = ImageStore()
