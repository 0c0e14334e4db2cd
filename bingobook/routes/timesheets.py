"""
BingoBook Backend — Timesheet Route Handlers
==============================================

What:  /timesheets endpoints: list rows, current row, new row, sign in,
       sign out, update row, delete row.
How:   JSON or form-encoded bodies keyed by (entryId, timesheetRow);
       delegates to TimesheetService.

Route order matters: /get-current-row/{entry_id} is declared before
/{entry_id}.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bingobook.database import get_db_session
from bingobook.routes.payload import payload_of
from bingobook.schemas.common import ErrorResponse
from bingobook.schemas.timesheet import (
    DeleteRowRequest,
    NewRowRequest,
    NewRowResponse,
    SignInRequest,
    SignOutRequest,
    TimesheetMessageResponse,
    TimesheetRowResponse,
    UpdateRowRequest,
)
from bingobook.services.timesheet_service import timesheet_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/timesheets", tags=["Timesheets"])


@router.get(
    "/get-current-row/{entry_id}",
    response_model=TimesheetRowResponse,
    responses={404: {"description": "Entry has no rows", "model": ErrorResponse}},
    summary="Get the entry's row with the highest index",
)
async def get_current_row(
    entry_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> TimesheetRowResponse:
    return await timesheet_service.latest_row(db=db, entry_id=entry_id)


@router.get(
    "/{entry_id}",
    response_model=List[TimesheetRowResponse],
    summary="List an entry's timesheet rows in row order",
)
async def list_timesheets(
    entry_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> List[TimesheetRowResponse]:
    return await timesheet_service.list_rows(db=db, entry_id=entry_id)


@router.post("/newRow", response_model=NewRowResponse, summary="Insert an empty row")
async def new_row(
    body: NewRowRequest = Depends(payload_of(NewRowRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> NewRowResponse:
    timesheet_id = await timesheet_service.new_row(
        db=db,
        entry_id=body.entry_id,
        timesheet_row=body.timesheet_row,
    )
    return NewRowResponse(message="Row created", timesheet_id=timesheet_id)


@router.post("/signIn", response_model=TimesheetMessageResponse, summary="Record a sign-in")
async def sign_in(
    body: SignInRequest = Depends(payload_of(SignInRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> TimesheetMessageResponse:
    await timesheet_service.sign_in(
        db=db,
        entry_id=body.entry_id,
        timesheet_row=body.timesheet_row,
        room_number=body.room_number,
        sign_in=body.sign_in,
    )
    return TimesheetMessageResponse(message="SignIn successful")


@router.post(
    "/signOut",
    response_model=TimesheetMessageResponse,
    responses={404: {"description": "No such row", "model": ErrorResponse}},
    summary="Record a sign-out",
)
async def sign_out(
    body: SignOutRequest = Depends(payload_of(SignOutRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> TimesheetMessageResponse:
    await timesheet_service.sign_out(
        db=db,
        entry_id=body.entry_id,
        timesheet_row=body.timesheet_row,
        sign_out=body.sign_out,
    )
    return TimesheetMessageResponse(message="Sign-out successful")


@router.post("/updateRow", response_model=TimesheetMessageResponse, summary="Overwrite a row")
async def update_row(
    body: UpdateRowRequest = Depends(payload_of(UpdateRowRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> TimesheetMessageResponse:
    await timesheet_service.update_row(
        db=db,
        entry_id=body.entry_id,
        timesheet_row=body.timesheet_row,
        room_number=body.room_number,
        sign_in=body.sign_in,
        sign_out=body.sign_out,
    )
    return TimesheetMessageResponse(message="Timesheet updated successfully")


@router.delete("/deleteRow", response_model=TimesheetMessageResponse, summary="Delete a row")
async def delete_row(
    body: DeleteRowRequest = Depends(payload_of(DeleteRowRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> TimesheetMessageResponse:
    await timesheet_service.delete_row(
        db=db,
        entry_id=body.entry_id,
        timesheet_row=body.timesheet_row,
    )
    return TimesheetMessageResponse(message="Row deleted successfully")
