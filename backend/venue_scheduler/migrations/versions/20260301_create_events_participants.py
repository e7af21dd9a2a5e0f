"""create events and participants tables

Revision ID: 20260301_events_participants
Revises:
Create Date: 2026-03-01
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20260301_events_participants"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_location_date", "events", ["location", "date"])
    # identical live slots are rejected by the store even if two admissions race
    op.create_index(
        "uq_events_live_slot",
        "events",
        ["location", "date", "start_time", "end_time"],
        unique=True,
        sqlite_where=sa.text("NOT is_deleted"),
        postgresql_where=sa.text("NOT is_deleted"),
    )

    op.create_table(
        "participants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_participants_id", "participants", ["id"])
    op.create_index("ix_participants_event_id", "participants", ["event_id"])


def downgrade() -> None:
    op.drop_index("ix_participants_event_id", table_name="participants")
    op.drop_index("ix_participants_id", table_name="participants")
    op.drop_table("participants")
    op.drop_index("uq_events_live_slot", table_name="events")
    op.drop_index("ix_events_location_date", table_name="events")
    op.drop_index("ix_events_id", table_name="events")
    op.drop_table("events")
