"""Scheduling schema: coach_availability, blocked_slots, events, intake_call_configs.

Revision ID: 001_scheduling
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_scheduling"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "coach_availability",
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("coach_user_id", sa.String(), nullable=False, server_default=""),
        sa.Column("weekly_schedule", sa.JSON(), nullable=False),
        sa.Column("default_duration", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("buffer_between_calls", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("timezone", sa.String(), nullable=False, server_default="America/New_York"),
        sa.Column("advance_booking_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("min_notice_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("sync_external_busy", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("push_events_to_calendar", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("external_calendar_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("organization_id"),
    )

    op.create_table(
        "blocked_slots",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("start", sa.DateTime(), nullable=False),
        sa.Column("end", sa.DateTime(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["organization_id"], ["coach_availability.organization_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_blocked_slots_organization_id"), "blocked_slots", ["organization_id"], unique=False)
    op.create_index(op.f("ix_blocked_slots_end"), "blocked_slots", ["end"], unique=False)

    op.create_table(
        "events",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False, server_default=""),
        sa.Column("start_datetime", sa.DateTime(), nullable=False),
        sa.Column("end_datetime", sa.DateTime(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="confirmed"),
        sa.Column("event_type", sa.String(), nullable=False, server_default="coaching_1on1"),
        sa.Column("intake_call_config_id", sa.String(), nullable=True),
        sa.Column("prospect_name", sa.String(), nullable=True),
        sa.Column("prospect_email", sa.String(), nullable=True),
        sa.Column("prospect_timezone", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_events_organization_id"), "events", ["organization_id"], unique=False)
    op.create_index(op.f("ix_events_start_datetime"), "events", ["start_datetime"], unique=False)
    op.create_index(op.f("ix_events_status"), "events", ["status"], unique=False)
    op.create_index(op.f("ix_events_intake_call_config_id"), "events", ["intake_call_config_id"], unique=False)

    op.create_table(
        "intake_call_configs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("use_custom_availability", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("custom_weekly_schedule", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_intake_call_configs_organization_id"), "intake_call_configs", ["organization_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_intake_call_configs_organization_id"), table_name="intake_call_configs")
    op.drop_table("intake_call_configs")
    op.drop_index(op.f("ix_events_intake_call_config_id"), table_name="events")
    op.drop_index(op.f("ix_events_status"), table_name="events")
    op.drop_index(op.f("ix_events_start_datetime"), table_name="events")
    op.drop_index(op.f("ix_events_organization_id"), table_name="events")
    op.drop_table("events")
    op.drop_index(op.f("ix_blocked_slots_end"), table_name="blocked_slots")
    op.drop_index(op.f("ix_blocked_slots_organization_id"), table_name="blocked_slots")
    op.drop_table("blocked_slots")
    op.drop_table("coach_availability")
