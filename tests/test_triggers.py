"""
BingoBook Backend — Row-Zero Trigger Tests
============================================

What:  Database-level behaviour of the entries/timesheets schema.
How:   Raw SQL and ORM statements against a real SQLite file, so the
       triggers and ON DELETE CASCADE run exactly as in production.

What we test:
    ✅ Inserting an entry creates row 0 with null fields
    ✅ Deleting an entry removes all its rows (no orphan row 0)
    ✅ Deleting the last remaining row re-creates row 0
    ✅ Deleting a row while others remain re-creates nothing
    ✅ Foreign keys are enforced on SQLite
    ✅ create_schema() backfills row 0 for entries missing it
    ✅ create_schema() re-creates triggers dropped from an existing database
"""

import pytest
from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError

from bingobook.models import Entry, TimesheetRow


async def _rows(db, entry_id):
    result = await db.execute(
        select(TimesheetRow)
        .where(TimesheetRow.entry_id == entry_id)
        .order_by(TimesheetRow.timesheet_row)
    )
    return result.scalars().all()


async def _raw_count(db, entry_id):
    result = await db.execute(
        text("SELECT COUNT(*) FROM timesheets WHERE entry_id = :entry_id"),
        {"entry_id": entry_id},
    )
    return result.scalar()


async def _new_entry(db, **fields) -> int:
    entry = Entry(images=[], **fields)
    db.add(entry)
    await db.flush()
    return entry.id


class TestEntryInsertTrigger:

    @pytest.mark.asyncio
    async def test_insert_creates_row_zero(self, db_session):
        entry_id = await _new_entry(db_session, first_name="Ada")

        rows = await _rows(db_session, entry_id)
        assert len(rows) == 1
        row = rows[0]
        assert row.timesheet_row == 0
        assert row.room_number is None
        assert row.sign_in is None
        assert row.sign_out is None

    @pytest.mark.asyncio
    async def test_raw_insert_creates_row_zero(self, db_session):
        await db_session.execute(
            text("INSERT INTO entries (first_name, images) VALUES ('Raw', '[]')")
        )
        entry_id = (await db_session.execute(text("SELECT MAX(id) FROM entries"))).scalar()
        assert await _raw_count(db_session, entry_id) == 1


class TestEntryDeleteCascade:

    @pytest.mark.asyncio
    async def test_delete_entry_removes_all_rows(self, db_session):
        entry_id = await _new_entry(db_session)
        db_session.add(TimesheetRow(entry_id=entry_id, timesheet_row=1))
        db_session.add(TimesheetRow(entry_id=entry_id, timesheet_row=2))
        await db_session.flush()
        assert await _raw_count(db_session, entry_id) == 3

        await db_session.execute(delete(Entry).where(Entry.id == entry_id))

        assert await _raw_count(db_session, entry_id) == 0

    @pytest.mark.asyncio
    async def test_raw_delete_entry_leaves_no_orphan_row_zero(self, db_session):
        entry_id = await _new_entry(db_session)
        await db_session.execute(text("DELETE FROM entries WHERE id = :id"), {"id": entry_id})
        assert await _raw_count(db_session, entry_id) == 0


class TestLastRowDeleteTrigger:

    @pytest.mark.asyncio
    async def test_deleting_only_row_recreates_row_zero(self, db_session):
        entry_id = await _new_entry(db_session)
        await db_session.execute(
            text(
                "UPDATE timesheets SET room_number = 12, sign_in = '09:00' "
                "WHERE entry_id = :id"
            ),
            {"id": entry_id},
        )
        old_id = (await _rows(db_session, entry_id))[0].id

        await db_session.execute(
            text("DELETE FROM timesheets WHERE entry_id = :id AND timesheet_row = 0"),
            {"id": entry_id},
        )

        result = await db_session.execute(
            text(
                "SELECT id, timesheet_row, room_number, sign_in, sign_out "
                "FROM timesheets WHERE entry_id = :id"
            ),
            {"id": entry_id},
        )
        rows = result.all()
        assert len(rows) == 1
        new_id, timesheet_row, room_number, sign_in, sign_out = rows[0]
        assert new_id != old_id
        assert (timesheet_row, room_number, sign_in, sign_out) == (0, None, None, None)

    @pytest.mark.asyncio
    async def test_deleting_row_zero_with_others_left(self, db_session):
        entry_id = await _new_entry(db_session)
        db_session.add(TimesheetRow(entry_id=entry_id, timesheet_row=1))
        await db_session.flush()

        await db_session.execute(
            text("DELETE FROM timesheets WHERE entry_id = :id AND timesheet_row = 0"),
            {"id": entry_id},
        )

        result = await db_session.execute(
            text("SELECT timesheet_row FROM timesheets WHERE entry_id = :id"),
            {"id": entry_id},
        )
        assert [r for (r,) in result.all()] == [1]

    @pytest.mark.asyncio
    async def test_deleting_all_rows_at_once_leaves_one_row_zero(self, db_session):
        entry_id = await _new_entry(db_session)
        db_session.add(TimesheetRow(entry_id=entry_id, timesheet_row=1))
        db_session.add(TimesheetRow(entry_id=entry_id, timesheet_row=2))
        await db_session.flush()

        await db_session.execute(
            text("DELETE FROM timesheets WHERE entry_id = :id"), {"id": entry_id}
        )

        assert await _raw_count(db_session, entry_id) == 1


class TestSchema:

    @pytest.mark.asyncio
    async def test_foreign_keys_enforced(self, db_session):
        db_session.add(TimesheetRow(entry_id=424242, timesheet_row=1))
        with pytest.raises(IntegrityError):
            await db_session.flush()

    @pytest.mark.asyncio
    async def test_duplicate_row_index_rejected(self, db_session):
        entry_id = await _new_entry(db_session)
        db_session.add(TimesheetRow(entry_id=entry_id, timesheet_row=0))
        with pytest.raises(IntegrityError):
            await db_session.flush()

    @pytest.mark.asyncio
    async def test_create_schema_backfills_row_zero(self, database):
        async with database.engine.begin() as conn:
            await conn.execute(text("DROP TRIGGER after_entry_insert"))
            await conn.execute(
                text("INSERT INTO entries (first_name, images) VALUES ('Legacy', '[]')")
            )

        inserted = await database.create_schema()
        assert inserted == 1

        async with database.engine.connect() as conn:
            result = await conn.execute(
                text(
                    "SELECT COUNT(*) FROM timesheets t JOIN entries e ON t.entry_id = e.id "
                    "WHERE e.first_name = 'Legacy' AND t.timesheet_row = 0"
                )
            )
            assert result.scalar() == 1

        # Idempotent: nothing left to backfill
        assert await database.create_schema() == 0

    @pytest.mark.asyncio
    async def test_create_schema_restores_dropped_triggers(self, database):
        async with database.engine.begin() as conn:
            await conn.execute(text("DROP TRIGGER after_entry_insert"))
            await conn.execute(text("DROP TRIGGER after_last_timesheet_row_delete"))

        await database.create_schema()

        async with database.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT name FROM sqlite_master WHERE type = 'trigger'")
            )
            names = set(result.scalars().all())
        assert {"after_entry_insert", "after_last_timesheet_row_delete"} <= names

        async with database.session_factory() as session:
            entry_id = await _new_entry(session, first_name="After restart")
            assert [r.timesheet_row for r in await _rows(session, entry_id)] == [0]

            await session.execute(delete(TimesheetRow).where(TimesheetRow.entry_id == entry_id))
            assert await _raw_count(session, entry_id) == 1

    @pytest.mark.asyncio
    async def test_create_schema_twice_keeps_one_trigger_each(self, database):
        await database.create_schema()

        async with database.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT name FROM sqlite_master WHERE type = 'trigger' ORDER BY name")
            )
            names = result.scalars().all()
        assert names == ["after_entry_insert", "after_last_timesheet_row_delete"]
