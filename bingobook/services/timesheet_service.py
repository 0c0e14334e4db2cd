"""
BingoBook Backend — Timesheet Service
=======================================

What:  Sign-in/sign-out rows of an entry, addressed by (entry_id, timesheet_row).
How:   Plain SELECT/INSERT/UPDATE/DELETE statements on the request session.
       Each write commits before returning. Row zero is never created or
       restored here; the database triggers handle it (see
       bingobook.models.timesheet).

Existence checks:
    sign_out            → NotFoundError when no row matched
    sign_in, update_row → no check; a miss is still reported as success
    latest_row          → NotFoundError when the entry has no rows
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bingobook.exceptions import DatabaseError, NotFoundError
from bingobook.models.timesheet import TimesheetRow
from bingobook.schemas.timesheet import TimesheetRowResponse

logger = logging.getLogger(__name__)


def to_row_response(row: TimesheetRow) -> TimesheetRowResponse:
    return TimesheetRowResponse(
        id=row.id,
        entry_id=row.entry_id,
        timesheet_row=row.timesheet_row,
        room_number=row.room_number,
        sign_in=row.sign_in,
        sign_out=row.sign_out,
    )


def _row_key(entry_id: int, timesheet_row: int):
    return (
        TimesheetRow.entry_id == entry_id,
        TimesheetRow.timesheet_row == timesheet_row,
    )


class TimesheetService:
    """Business logic for timesheet rows. Stateless; every call gets its session."""

    async def _execute(self, db: AsyncSession, operation: str, stmt, **context):
        try:
            return await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Database error during %s: %s", operation, str(e))
            raise DatabaseError(
                context={"operation": operation, "engine_message": str(e), **context},
            )

    async def _commit(self, db: AsyncSession, operation: str, **context) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Commit failed during %s: %s", operation, str(e))
            raise DatabaseError(
                context={"operation": operation, "engine_message": str(e), **context},
            )

    async def list_rows(self, db: AsyncSession, entry_id: int) -> List[TimesheetRowResponse]:
        """All rows of an entry, ordered by timesheet_row ascending."""
        result = await self._execute(
            db,
            "list_rows",
            select(TimesheetRow)
            .where(TimesheetRow.entry_id == entry_id)
            .order_by(TimesheetRow.timesheet_row.asc()),
            entry_id=entry_id,
        )
        return [to_row_response(row) for row in result.scalars().all()]

    async def latest_row(self, db: AsyncSession, entry_id: int) -> TimesheetRowResponse:
        """The row with the highest timesheet_row: the entry's current slot."""
        result = await self._execute(
            db,
            "latest_row",
            select(TimesheetRow)
            .where(TimesheetRow.entry_id == entry_id)
            .order_by(TimesheetRow.timesheet_row.desc())
            .limit(1),
            entry_id=entry_id,
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(resource="timesheet row", context={"entry_id": entry_id})
        return to_row_response(row)

    async def new_row(self, db: AsyncSession, entry_id: int, timesheet_row: int) -> int:
        """
        Insert an empty row at the given index.

        The caller picks the index. A duplicate (entry_id, timesheet_row) or an
        unknown entry is rejected by the database and surfaces as DatabaseError.
        """
        row = TimesheetRow(entry_id=entry_id, timesheet_row=timesheet_row)
        db.add(row)
        try:
            await db.flush()
            timesheet_id = row.id
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error during new_row: %s", str(e))
            raise DatabaseError(
                context={
                    "operation": "new_row",
                    "engine_message": str(e),
                    "entry_id": entry_id,
                    "timesheet_row": timesheet_row,
                },
            )
        logger.info("Timesheet row %s/%s created (id=%s)", entry_id, timesheet_row, timesheet_id)
        return timesheet_id

    async def sign_in(
        self,
        db: AsyncSession,
        entry_id: int,
        timesheet_row: int,
        room_number: Optional[int],
        sign_in: Optional[str],
    ) -> None:
        result = await self._execute(
            db,
            "sign_in",
            update(TimesheetRow)
            .where(*_row_key(entry_id, timesheet_row))
            .values(room_number=room_number, sign_in=sign_in),
            entry_id=entry_id,
            timesheet_row=timesheet_row,
        )
        if result.rowcount == 0:
            # Reported as success to the client
            logger.warning("sign_in matched no row for %s/%s", entry_id, timesheet_row)
        await self._commit(db, "sign_in", entry_id=entry_id, timesheet_row=timesheet_row)

    async def sign_out(
        self,
        db: AsyncSession,
        entry_id: int,
        timesheet_row: int,
        sign_out: Optional[str],
    ) -> None:
        result = await self._execute(
            db,
            "sign_out",
            update(TimesheetRow)
            .where(*_row_key(entry_id, timesheet_row))
            .values(sign_out=sign_out),
            entry_id=entry_id,
            timesheet_row=timesheet_row,
        )
        if result.rowcount == 0:
            raise NotFoundError(
                resource="timesheet row",
                context={"entry_id": entry_id, "timesheet_row": timesheet_row},
            )
        await self._commit(db, "sign_out", entry_id=entry_id, timesheet_row=timesheet_row)

    async def update_row(
        self,
        db: AsyncSession,
        entry_id: int,
        timesheet_row: int,
        room_number: Optional[int],
        sign_in: Optional[str],
        sign_out: Optional[str],
    ) -> None:
        await self._execute(
            db,
            "update_row",
            update(TimesheetRow)
            .where(*_row_key(entry_id, timesheet_row))
            .values(room_number=room_number, sign_in=sign_in, sign_out=sign_out),
            entry_id=entry_id,
            timesheet_row=timesheet_row,
        )
        await self._commit(db, "update_row", entry_id=entry_id, timesheet_row=timesheet_row)

    async def delete_row(self, db: AsyncSession, entry_id: int, timesheet_row: int) -> None:
        """Delete one row. Deleting an entry's last row makes the database re-create row zero."""
        await self._execute(
            db,
            "delete_row",
            delete(TimesheetRow).where(*_row_key(entry_id, timesheet_row)),
            entry_id=entry_id,
            timesheet_row=timesheet_row,
        )
        await self._commit(db, "delete_row", entry_id=entry_id, timesheet_row=timesheet_row)
        logger.info("Timesheet row %s/%s deleted", entry_id, timesheet_row)


timesheet_service = TimesheetService()
