"""
BingoBook Backend — Entry Service
===================================

What:  Business logic for entries: submit, search, update, delete, and the
       image-list mutations (add images, delete image).
How:   Issues statements on the request's AsyncSession and translates
       failures into ValidationError / NotFoundError / StorageError.
       Every write operation commits before returning, so a failed commit
       is reported to the caller. The session dependency rolls back
       whatever an aborted operation left open.
Who:   Called by the entry route handlers.

File/database ordering:
    submit, add images:  write files → write row → commit. If the row write or
                         the commit fails the new files are removed again.
    delete image:        delete file → rewrite images list → commit. If the list
                         write fails the request is a 500 and the file stays
                         deleted.
    delete entry:        row only; image files are left in the store.
"""

import logging
import os
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import String, cast, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bingobook.config import settings
from bingobook.exceptions import (
    BingoBookError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from bingobook.models.entry import Entry
from bingobook.models.timesheet import TimesheetRow
from bingobook.schemas.entry import EntryFields, EntryResponse
from bingobook.services.image_store import ImageStore, image_store

logger = logging.getLogger(__name__)

# (original filename, bytes) as read from the multipart upload
UploadedImage = Tuple[str, bytes]


def _database_error(operation: str, error: Exception, **context) -> DatabaseError:
    logger.error("Database error during %s: %s", operation, str(error))
    return DatabaseError(
        context={"operation": operation, "engine_message": str(error), **context},
    )


def to_entry_response(entry: Entry) -> EntryResponse:
    return EntryResponse(
        id=entry.id,
        first_name=entry.first_name,
        last_name=entry.last_name,
        room_number=entry.room_number,
        additional_text=entry.additional_text,
        images=list(entry.images or []),
    )


class EntryService:
    """
    Business logic layer for entry operations.

    Error Handling Strategy:
        SQLAlchemy errors are wrapped in DatabaseError at the failing call.
        Application errors (ValidationError, NotFoundError, FileStorageError)
        propagate unchanged.
    """

    def __init__(self, store: Optional[ImageStore] = None):
        self.image_store = store or image_store

    # ── Helpers ───────────────────────────────────────────────────────────

    def _validate_uploads(self, images: Sequence[UploadedImage], minimum: int) -> None:
        limit = settings.max_images_per_upload
        if len(images) < minimum:
            raise ValidationError(
                message="No image files provided",
                field="images",
            )
        if len(images) > limit:
            raise ValidationError(
                message=f"Too many images: {len(images)} given, at most {limit} allowed",
                field="images",
                context={"count": len(images), "limit": limit},
            )
        # Reject the whole request before any file is written
        for filename, content in images:
            self.image_store.validate(filename, content)

    async def _store_all(self, images: Sequence[UploadedImage]) -> List[str]:
        references: List[str] = []
        try:
            for filename, content in images:
                references.append(await self.image_store.store(filename, content))
        except Exception:
            await self._cleanup(references)
            raise
        return references

    async def _cleanup(self, references: Sequence[str]) -> None:
        for reference in references:
            await self.image_store.cleanup(reference)

    async def _get_entry(self, db: AsyncSession, entry_id: int) -> Entry:
        try:
            result = await db.execute(select(Entry).where(Entry.id == entry_id))
            entry = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise _database_error("get_entry", e, entry_id=entry_id)
        if entry is None:
            raise NotFoundError(resource="entry", resource_id=entry_id)
        return entry

    # ── Operations ────────────────────────────────────────────────────────

    async def submit(
        self,
        db: AsyncSession,
        fields: EntryFields,
        images: Sequence[UploadedImage] = (),
    ) -> int:
        """
        Store the uploaded images and create the entry.

        Workflow:
            1. Validate image count (0..max) and every file
            2. Write each image to the store, collecting references
            3. INSERT the entry; the after_entry_insert trigger adds row zero
            4. Verify row zero exists in the same transaction
            5. Commit; on any failure the stored images are removed

        Returns:
            The new entry id.

        Raises:
            ValidationError:  too many images, bad file type/size
            FileStorageError: an image could not be written
            DatabaseError:    the insert or commit failed, or row zero is missing
        """
        self._validate_uploads(images, minimum=0)
        references = await self._store_all(images)

        try:
            entry = Entry(
                first_name=fields.first_name,
                last_name=fields.last_name,
                room_number=fields.room_number,
                additional_text=fields.additional_text,
                images=references,
            )
            db.add(entry)
            await db.flush()

            row_zero = await db.execute(
                select(func.count(TimesheetRow.id)).where(
                    TimesheetRow.entry_id == entry.id,
                    TimesheetRow.timesheet_row == 0,
                )
            )
            if not row_zero.scalar():
                raise DatabaseError(
                    message="Entry was created without its initial timesheet row",
                    context={"entry_id": entry.id},
                )
            entry_id = entry.id
            await db.commit()
        except BingoBookError:
            await self._cleanup(references)
            raise
        except SQLAlchemyError as e:
            await self._cleanup(references)
            raise _database_error("submit", e)

        logger.info("Entry %s created with %d image(s)", entry_id, len(references))
        return entry_id

    async def search(self, db: AsyncSession, query: Optional[str] = None) -> List[EntryResponse]:
        """
        List entries, optionally filtered by a case-insensitive substring.

        The query matches first name, last name, room number (as text) or
        additional text; any one match is enough.
        """
        stmt = select(Entry).order_by(Entry.id)
        if query:
            stmt = stmt.where(
                or_(
                    Entry.first_name.icontains(query, autoescape=True),
                    Entry.last_name.icontains(query, autoescape=True),
                    cast(Entry.room_number, String).icontains(query, autoescape=True),
                    Entry.additional_text.icontains(query, autoescape=True),
                )
            )

        try:
            result = await db.execute(stmt)
            entries = result.scalars().all()
        except SQLAlchemyError as e:
            raise _database_error("search", e, query=query)

        return [to_entry_response(entry) for entry in entries]

    async def update(
        self,
        db: AsyncSession,
        entry_id: Optional[int],
        fields: EntryFields,
    ) -> None:
        """Overwrite the four text fields; images are untouched."""
        if entry_id is None:
            raise ValidationError(message="ID is required", field="id")

        try:
            result = await db.execute(
                update(Entry)
                .where(Entry.id == entry_id)
                .values(
                    first_name=fields.first_name,
                    last_name=fields.last_name,
                    room_number=fields.room_number,
                    additional_text=fields.additional_text,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="entry", resource_id=entry_id)
            await db.commit()
        except SQLAlchemyError as e:
            raise _database_error("update", e, entry_id=entry_id)

        logger.info("Entry %s updated", entry_id)

    async def delete(self, db: AsyncSession, entry_id: Optional[int]) -> None:
        """Delete an entry; its timesheet rows go with it (ON DELETE CASCADE)."""
        if entry_id is None:
            raise ValidationError(message="Invalid ID provided", field="id")

        try:
            result = await db.execute(delete(Entry).where(Entry.id == entry_id))
            if result.rowcount == 0:
                raise NotFoundError(resource="entry", resource_id=entry_id)
            await db.commit()
        except SQLAlchemyError as e:
            raise _database_error("delete", e, entry_id=entry_id)

        logger.info("Entry %s deleted", entry_id)

    async def add_images(
        self,
        db: AsyncSession,
        entry_id: Optional[int],
        images: Sequence[UploadedImage],
    ) -> List[str]:
        """
        Append uploaded images to an entry's image list.

        Read-modify-write of Entry.images: two concurrent calls for the same
        entry can lose one call's references.

        Returns:
            The full image list after the append.
        """
        if entry_id is None:
            raise ValidationError(message="entryId is required", field="entryId")
        self._validate_uploads(images, minimum=1)

        entry = await self._get_entry(db, entry_id)
        references = await self._store_all(images)
        updated = list(entry.images or []) + references

        try:
            await db.execute(
                update(Entry).where(Entry.id == entry_id).values(images=updated)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await self._cleanup(references)
            raise _database_error("add_images", e, entry_id=entry_id)

        logger.info("Entry %s: added %d image(s)", entry_id, len(references))
        return updated

    async def delete_image(
        self,
        db: AsyncSession,
        entry_id: Optional[int],
        image_name: Optional[str],
    ) -> List[str]:
        """
        Delete one image file, then drop its reference from the entry.

        References are compared by basename, so clients may send either the
        full "/uploads/<name>" reference or just "<name>".

        Raises:
            NotFoundError:    the file is not in the store, or the entry is missing
            FileStorageError: the file could not be deleted
            DatabaseError:    the list rewrite failed (file already deleted)
        """
        if entry_id is None:
            raise ValidationError(message="entryId is required", field="entryId")
        if not image_name:
            raise ValidationError(message="imageName is required", field="imageName")

        await self.image_store.delete(image_name)

        entry = await self._get_entry(db, entry_id)
        filename = os.path.basename(image_name)
        remaining = [
            image for image in (entry.images or [])
            if os.path.basename(image) != filename
        ]

        try:
            await db.execute(
                update(Entry).where(Entry.id == entry_id).values(images=remaining)
            )
            await db.commit()
        except SQLAlchemyError as e:
            raise _database_error("delete_image", e, entry_id=entry_id, image=filename)

        logger.info("Entry %s: removed image %s", entry_id, filename)
        return remaining


entry_service = EntryService()
