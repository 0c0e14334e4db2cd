"""
BingoBook Backend — Timesheet Request/Response Schemas
========================================================

What:  Pydantic models for the /timesheets endpoints.

Every mutation is addressed by (entryId, timesheetRow); both are required,
so a request without them fails validation (400).
"""

from typing import Optional

from pydantic import Field, field_validator

from bingobook.schemas.common import CamelModel, blank_to_none


class TimesheetRowResponse(CamelModel):
    id: int
    entry_id: int
    timesheet_row: int
    room_number: Optional[int] = None
    sign_in: Optional[str] = None
    sign_out: Optional[str] = None


class TimesheetRowKey(CamelModel):
    entry_id: int = Field(description="Owning entry")
    timesheet_row: int = Field(description="Row index within the entry")


class NewRowRequest(TimesheetRowKey):
    pass


class SignInRequest(TimesheetRowKey):
    room_number: Optional[int] = None
    sign_in: Optional[str] = Field(default=None, description="Sign-in timestamp")

    @field_validator("room_number", mode="before")
    @classmethod
    def parse_room_number(cls, v):
        return blank_to_none(v)


class SignOutRequest(TimesheetRowKey):
    sign_out: Optional[str] = Field(default=None, description="Sign-out timestamp")


class UpdateRowRequest(TimesheetRowKey):
    room_number: Optional[int] = None
    sign_in: Optional[str] = None
    sign_out: Optional[str] = None

    @field_validator("room_number", mode="before")
    @classmethod
    def parse_room_number(cls, v):
        return blank_to_none(v)


class DeleteRowRequest(TimesheetRowKey):
    pass


class NewRowResponse(CamelModel):
    message: str = "Row created"
    timesheet_id: int


class TimesheetMessageResponse(CamelModel):
    message: str
