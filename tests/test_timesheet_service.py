"""
BingoBook Backend — Timesheet Service Tests
=============================================

What:  TimesheetService against a real SQLite database; commit failures
       against a mocked session.

What we test:
    ✅ A new entry starts with exactly row 0
    ✅ new row → sign in → sign out → current row round trip
    ✅ sign_out on a missing row → NotFoundError; sign_in/update_row do not check
    ✅ Duplicate or orphan rows are rejected as DatabaseError
    ✅ Deleting the last row brings back an empty row 0
    ✅ Row 0 keeps coming back on repeated deletes, with a fresh id each time
    ✅ A failing commit surfaces as DatabaseError
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from bingobook.exceptions import DatabaseError, NotFoundError
from bingobook.models import Entry
from bingobook.services.timesheet_service import TimesheetService


async def _new_entry(db) -> int:
    entry = Entry(first_name="Ada", images=[])
    db.add(entry)
    await db.flush()
    return entry.id


class TestTimesheetRows:

    def setup_method(self):
        self.service = TimesheetService()

    @pytest.mark.asyncio
    async def test_new_entry_has_row_zero(self, db_session):
        entry_id = await _new_entry(db_session)

        rows = await self.service.list_rows(db_session, entry_id)

        assert len(rows) == 1
        assert rows[0].timesheet_row == 0
        assert rows[0].entry_id == entry_id
        assert rows[0].sign_in is None

    @pytest.mark.asyncio
    async def test_list_rows_unknown_entry_is_empty(self, db_session):
        assert await self.service.list_rows(db_session, 999) == []

    @pytest.mark.asyncio
    async def test_sign_in_sign_out_round_trip(self, db_session):
        entry_id = await _new_entry(db_session)

        timesheet_id = await self.service.new_row(db_session, entry_id, 1)
        await self.service.sign_in(db_session, entry_id, 1, room_number=101, sign_in="2024-05-01T09:00")
        await self.service.sign_out(db_session, entry_id, 1, sign_out="2024-05-01T17:30")

        rows = await self.service.list_rows(db_session, entry_id)
        assert [r.timesheet_row for r in rows] == [0, 1]
        assert rows[0].sign_in is None

        current = await self.service.latest_row(db_session, entry_id)
        assert current.id == timesheet_id
        assert current.timesheet_row == 1
        assert current.room_number == 101
        assert current.sign_in == "2024-05-01T09:00"
        assert current.sign_out == "2024-05-01T17:30"

    @pytest.mark.asyncio
    async def test_latest_row_picks_highest_index(self, db_session):
        entry_id = await _new_entry(db_session)
        await self.service.new_row(db_session, entry_id, 5)
        await self.service.new_row(db_session, entry_id, 2)

        current = await self.service.latest_row(db_session, entry_id)
        assert current.timesheet_row == 5

    @pytest.mark.asyncio
    async def test_latest_row_unknown_entry(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.latest_row(db_session, 999)

    @pytest.mark.asyncio
    async def test_sign_out_missing_row(self, db_session):
        entry_id = await _new_entry(db_session)
        with pytest.raises(NotFoundError):
            await self.service.sign_out(db_session, entry_id, 7, sign_out="17:00")

    @pytest.mark.asyncio
    async def test_sign_in_missing_row_is_silent(self, db_session):
        entry_id = await _new_entry(db_session)
        await self.service.sign_in(db_session, entry_id, 7, room_number=1, sign_in="09:00")
        assert len(await self.service.list_rows(db_session, entry_id)) == 1

    @pytest.mark.asyncio
    async def test_update_row_overwrites_all_fields(self, db_session):
        entry_id = await _new_entry(db_session)
        await self.service.sign_in(db_session, entry_id, 0, room_number=3, sign_in="09:00")

        await self.service.update_row(
            db_session, entry_id, 0, room_number=4, sign_in=None, sign_out="18:00"
        )

        [row] = await self.service.list_rows(db_session, entry_id)
        assert row.room_number == 4
        assert row.sign_in is None
        assert row.sign_out == "18:00"

    @pytest.mark.asyncio
    async def test_new_row_duplicate_index(self, db_session):
        entry_id = await _new_entry(db_session)
        with pytest.raises(DatabaseError):
            await self.service.new_row(db_session, entry_id, 0)

    @pytest.mark.asyncio
    async def test_new_row_unknown_entry(self, db_session):
        with pytest.raises(DatabaseError) as exc_info:
            await self.service.new_row(db_session, 999, 1)
        assert exc_info.value.context["entry_id"] == 999

    @pytest.mark.asyncio
    async def test_delete_row_keeps_others(self, db_session):
        entry_id = await _new_entry(db_session)
        await self.service.new_row(db_session, entry_id, 1)

        await self.service.delete_row(db_session, entry_id, 1)

        rows = await self.service.list_rows(db_session, entry_id)
        assert [r.timesheet_row for r in rows] == [0]

    @pytest.mark.asyncio
    async def test_delete_last_row_restores_empty_row_zero(self, db_session):
        entry_id = await _new_entry(db_session)
        await self.service.sign_in(db_session, entry_id, 0, room_number=3, sign_in="09:00")
        [before] = await self.service.list_rows(db_session, entry_id)

        await self.service.delete_row(db_session, entry_id, 0)

        [after] = await self.service.list_rows(db_session, entry_id)
        assert after.id != before.id
        assert after.timesheet_row == 0
        assert after.room_number is None
        assert after.sign_in is None

    @pytest.mark.asyncio
    async def test_delete_missing_row_is_silent(self, db_session):
        entry_id = await _new_entry(db_session)
        await self.service.delete_row(db_session, entry_id, 42)
        assert len(await self.service.list_rows(db_session, entry_id)) == 1

    @pytest.mark.asyncio
    async def test_row_zero_comes_back_after_every_delete(self, db_session):
        entry_id = await _new_entry(db_session)
        seen_ids = set()

        for attempt in range(3):
            await self.service.sign_in(db_session, entry_id, 0, room_number=attempt, sign_in="09:00")
            await self.service.delete_row(db_session, entry_id, 0)

            rows = await self.service.list_rows(db_session, entry_id)
            assert len(rows) == 1
            assert rows[0].timesheet_row == 0
            assert rows[0].room_number is None
            assert rows[0].sign_in is None
            assert rows[0].sign_out is None
            seen_ids.add(rows[0].id)

        assert len(seen_ids) == 3

    @pytest.mark.asyncio
    async def test_commit_failure_is_database_error(self, mock_db_session):
        mock_db_session.commit = AsyncMock(
            side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))
        )

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.sign_in(mock_db_session, 1, 0, room_number=None, sign_in="09:00")

        assert exc_info.value.context["operation"] == "sign_in"
        assert "disk I/O error" in exc_info.value.context["engine_message"]

    @pytest.mark.asyncio
    async def test_new_row_commit_failure_is_database_error(self, mock_db_session):
        mock_db_session.commit = AsyncMock(
            side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))
        )

        with pytest.raises(DatabaseError):
            await self.service.new_row(mock_db_session, 1, 1)
