"""Create entries and timesheets tables with row-zero triggers

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates `entries`, `timesheets` (ON DELETE CASCADE to entries) and the
       two triggers that keep row zero present for every entry.
How:   Trigger DDL comes from bingobook.models.timesheet.install_triggers and
       is picked by the connection's dialect (sqlite or postgresql).

Rollback: downgrade() drops the triggers and both tables (all data lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from bingobook.models.timesheet import DROP_TRIGGERS, install_triggers

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column("room_number", sa.Integer(), nullable=True),
        sa.Column("additional_text", sa.Text(), nullable=True),
        sa.Column(
            "images",
            sa.JSON(),
            nullable=False,
            comment="Ordered list of image references (/uploads/<filename>)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "timesheets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entry_id", sa.Integer(), nullable=False),
        sa.Column("timesheet_row", sa.Integer(), nullable=False),
        sa.Column("room_number", sa.Integer(), nullable=True),
        sa.Column("sign_in", sa.Text(), nullable=True),
        sa.Column("sign_out", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["entry_id"], ["entries.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("entry_id", "timesheet_row", name="uq_timesheets_entry_row"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_timesheets_entry_id", "timesheets", ["entry_id"])

    install_triggers(op.get_bind())


def downgrade() -> None:
    for statement in DROP_TRIGGERS.get(op.get_bind().dialect.name, []):
        op.execute(statement)

    op.drop_index("ix_timesheets_entry_id", table_name="timesheets")
    op.drop_table("timesheets")
    op.drop_table("entries")
