"""
BingoBook Backend — Entry Request/Response Schemas
====================================================

What:  Pydantic models for the entry endpoints (submit, search, update,
       delete, add image, delete image).
Who:   Route handlers parse requests into these; EntryService returns them.

Identifiers are Optional on the request side: a missing id is a
ValidationError raised by the service (400), not a schema failure.
"""

from typing import List, Optional

from pydantic import Field, field_validator

from bingobook.schemas.common import CamelModel, blank_to_none


class EntryFields(CamelModel):
    """The four client-editable text fields of an entry. None are required."""
    first_name: Optional[str] = Field(default=None, description="First name")
    last_name: Optional[str] = Field(default=None, description="Last name")
    room_number: Optional[int] = Field(default=None, description="Room number")
    additional_text: Optional[str] = Field(default=None, description="Free-form notes")

    @field_validator("room_number", mode="before")
    @classmethod
    def parse_room_number(cls, v):
        return blank_to_none(v)


class EntryResponse(EntryFields):
    """Full representation of an entry, as returned by GET /get-data."""
    id: int = Field(description="Entry identifier")
    images: List[str] = Field(default_factory=list, description="Image references in upload order")


class EntryUpdateRequest(EntryFields):
    id: Optional[int] = Field(default=None, description="Entry to update")

    @field_validator("id", mode="before")
    @classmethod
    def parse_id(cls, v):
        return blank_to_none(v)


class EntryDeleteRequest(CamelModel):
    id: Optional[int] = Field(default=None, description="Entry to delete")

    @field_validator("id", mode="before")
    @classmethod
    def parse_id(cls, v):
        return blank_to_none(v)


class ImageDeleteRequest(CamelModel):
    entry_id: Optional[int] = Field(default=None, description="Entry owning the image")
    image_name: Optional[str] = Field(
        default=None,
        description="Image reference or bare filename; matched by basename",
    )


class SubmitResponse(CamelModel):
    message: str = Field(default="Entry added", description="Human-readable success message")
    id: int = Field(description="Identifier of the new entry")


class EntryMutationResponse(CamelModel):
    message: str
    id: Optional[int] = None


class ImageListResponse(CamelModel):
    """Returned by add-image and delete-image: the entry's image list after the change."""
    message: str
    images: List[str]
