"""
BingoBook Backend — Entry SQLAlchemy Model
============================================

What:  ORM model for the `entries` table: one person/room/note record with
       an ordered list of image references.
Who:   Used by EntryService for CRUD/search and by Alembic for the schema.

Column notes:
    - id: INTEGER autoincrement; what clients pass back as entryId
    - room_number: INTEGER, searched as text (CAST) by the search endpoint
    - images: JSON list of "/uploads/<name>" references in insertion order
"""

from typing import List

from sqlalchemy import JSON, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from bingobook.database import Base


class Entry(Base):
    """
    A stored record: person, room number, free text and images.

    Lifecycle:
        1. Inserted by POST /submit-data (the after_entry_insert trigger adds
           its row-zero timesheet in the same transaction)
        2. Text fields updated by POST /update-data
        3. images rewritten by POST /add-image and POST /delete-image
        4. Deleted by POST /delete-data; timesheets cascade
    """

    __tablename__ = "entries"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    room_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    additional_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    images: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered image references, e.g. [\"/uploads/ab12.jpg\"]",
    )

    def __repr__(self) -> str:
        return (
            f"<Entry(id={self.id}, first_name='{self.first_name}', "
            f"room_number={self.room_number}, images={len(self.images or [])})>"
        )
