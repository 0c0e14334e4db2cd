"""
BingoBook Backend — TimesheetRow Model and Row-Zero Triggers
==============================================================

What:  ORM model for the `timesheets` table plus the database triggers that
       keep every entry's timesheet log non-empty.
How:   `install_triggers()` (re)creates the trigger DDL for SQLite and
       PostgreSQL. Every statement is idempotent; Database.create_schema()
       runs it on each startup and the initial Alembic migration runs it once.

Row-zero invariant:
    after_entry_insert               INSERT entry        → insert (entry_id, 0)
    ON DELETE CASCADE (foreign key)  DELETE entry        → delete its rows
    after_last_timesheet_row_delete  DELETE last row of  → insert (entry_id, 0)
                                     a still-existing entry

The EXISTS check on `entries` keeps the cascade from re-creating row zero
for the entry that is being deleted.
"""

from typing import Dict, List

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Mapped, mapped_column

from bingobook.database import Base


class TimesheetRow(Base):
    """
    One sign-in/sign-out slot of an entry.

    `timesheet_row` is the position within the entry (0, 1, 2, ...); the
    pair (entry_id, timesheet_row) identifies a row for every API call.
    """

    __tablename__ = "timesheets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    entry_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    timesheet_row: Mapped[int] = mapped_column(Integer, nullable=False)

    room_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sign_in: Mapped[str | None] = mapped_column(Text, nullable=True)
    sign_out: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("entry_id", "timesheet_row", name="uq_timesheets_entry_row"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<TimesheetRow(entry_id={self.entry_id}, row={self.timesheet_row}, "
            f"sign_in='{self.sign_in}', sign_out='{self.sign_out}')>"
        )


# ══════════════════════════════════════════════════════════════════════════
# Trigger DDL
# ══════════════════════════════════════════════════════════════════════════

SQLITE_TRIGGERS: List[str] = [
    """
    CREATE TRIGGER IF NOT EXISTS after_entry_insert
    AFTER INSERT ON entries
    FOR EACH ROW
    BEGIN
        INSERT INTO timesheets (entry_id, timesheet_row, room_number, sign_in, sign_out)
        VALUES (NEW.id, 0, NULL, NULL, NULL);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS after_last_timesheet_row_delete
    AFTER DELETE ON timesheets
    FOR EACH ROW
    WHEN NOT EXISTS (SELECT 1 FROM timesheets WHERE entry_id = OLD.entry_id)
         AND EXISTS (SELECT 1 FROM entries WHERE id = OLD.entry_id)
    BEGIN
        INSERT INTO timesheets (entry_id, timesheet_row, room_number, sign_in, sign_out)
        VALUES (OLD.entry_id, 0, NULL, NULL, NULL);
    END
    """,
]

POSTGRESQL_TRIGGERS: List[str] = [
    """
    CREATE OR REPLACE FUNCTION insert_row_zero_timesheet() RETURNS trigger AS $$
    BEGIN
        INSERT INTO timesheets (entry_id, timesheet_row, room_number, sign_in, sign_out)
        VALUES (NEW.id, 0, NULL, NULL, NULL);
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """,
    "DROP TRIGGER IF EXISTS after_entry_insert ON entries",
    """
    CREATE TRIGGER after_entry_insert
    AFTER INSERT ON entries
    FOR EACH ROW EXECUTE FUNCTION insert_row_zero_timesheet()
    """,
    """
    CREATE OR REPLACE FUNCTION restore_row_zero_timesheet() RETURNS trigger AS $$
    BEGIN
        IF NOT EXISTS (SELECT 1 FROM timesheets WHERE entry_id = OLD.entry_id)
           AND EXISTS (SELECT 1 FROM entries WHERE id = OLD.entry_id) THEN
            INSERT INTO timesheets (entry_id, timesheet_row, room_number, sign_in, sign_out)
            VALUES (OLD.entry_id, 0, NULL, NULL, NULL);
        END IF;
        RETURN NULL;
    END;
    $$ LANGUAGE plpgsql
    """,
    "DROP TRIGGER IF EXISTS after_last_timesheet_row_delete ON timesheets",
    """
    CREATE TRIGGER after_last_timesheet_row_delete
    AFTER DELETE ON timesheets
    FOR EACH ROW EXECUTE FUNCTION restore_row_zero_timesheet()
    """,
]

# Reverse order of creation; used by the Alembic downgrade
DROP_TRIGGERS: Dict[str, List[str]] = {
    "sqlite": [
        "DROP TRIGGER IF EXISTS after_last_timesheet_row_delete",
        "DROP TRIGGER IF EXISTS after_entry_insert",
    ],
    "postgresql": [
        "DROP TRIGGER IF EXISTS after_last_timesheet_row_delete ON timesheets",
        "DROP FUNCTION IF EXISTS restore_row_zero_timesheet()",
        "DROP TRIGGER IF EXISTS after_entry_insert ON entries",
        "DROP FUNCTION IF EXISTS insert_row_zero_timesheet()",
    ],
}

TRIGGERS: Dict[str, List[str]] = {
    "sqlite": SQLITE_TRIGGERS,
    "postgresql": POSTGRESQL_TRIGGERS,
}


def install_triggers(connection: Connection) -> int:
    """
    Create any missing row-zero triggers for the connection's dialect.

    SQLite uses CREATE TRIGGER IF NOT EXISTS; PostgreSQL replaces the
    functions and drops/recreates the triggers. Safe to run on every start.
    Both tables must already exist.

    Returns:
        Number of statements executed (0 for an unsupported dialect).
    """
    statements = TRIGGERS.get(connection.dialect.name, [])
    for statement in statements:
        connection.exec_driver_sql(statement)
    return len(statements)
