"""
Create calendars, time_slots, meetings and meeting_participants tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Create the scheduling tables.

    The unique constraint on ``meetings.time_slot_id`` is what rejects a
    second meeting on a slot when two bookings race.
    """
    op.create_table(
        "calendars",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "name", name="uq_calendars_user_id_name"),
    )
    op.create_index("ix_calendars_user_id", "calendars", ["user_id"])

    op.create_table(
        "time_slots",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column(
            "calendar_id",
            sa.Uuid(),
            sa.ForeignKey("calendars.id"),
            nullable=False,
        ),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="AVAILABLE"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("start_time < end_time", name="ck_time_slots_valid_range"),
    )
    op.create_index("ix_time_slots_calendar_start", "time_slots", ["calendar_id", "start_time"])
    op.create_index("ix_time_slots_status", "time_slots", ["status"])

    op.create_table(
        "meetings",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "time_slot_id",
            sa.Uuid(),
            sa.ForeignKey("time_slots.id"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("time_slot_id", name="uq_meetings_time_slot_id"),
    )
    op.create_index("ix_meetings_title", "meetings", ["title"])

    op.create_table(
        "meeting_participants",
        sa.Column("id", sa.Integer(), nullable=False, primary_key=True, autoincrement=True),
        sa.Column(
            "meeting_id",
            sa.Uuid(),
            sa.ForeignKey("meetings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("participant_id", sa.String(255), nullable=False),
        sa.UniqueConstraint("meeting_id", "participant_id", name="uq_meeting_participants"),
    )
    op.create_index(
        "ix_meeting_participants_participant_id",
        "meeting_participants",
        ["participant_id"],
    )


def downgrade() -> None:
    """Drop the scheduling tables, children first."""
    op.drop_index("ix_meeting_participants_participant_id", table_name="meeting_participants")
    op.drop_table("meeting_participants")
    op.drop_index("ix_meetings_title", table_name="meetings")
    op.drop_table("meetings")
    op.drop_index("ix_time_slots_status", table_name="time_slots")
    op.drop_index("ix_time_slots_calendar_start", table_name="time_slots")
    op.drop_table("time_slots")
    op.drop_index("ix_calendars_user_id", table_name="calendars")
    op.drop_table("calendars")
