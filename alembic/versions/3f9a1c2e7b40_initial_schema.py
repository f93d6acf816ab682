"""initial_schema

Revision ID: 3f9a1c2e7b40
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the six planner tables (users, fields, irrigation_schedules,
irrigation_logs, weather_cache, notifications), their three PostgreSQL
enum types and indexes.  Requires the uuid-ossp extension, which is
enabled here if missing.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2e7b40"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_SCHEDULE_STATUS = postgresql.ENUM(
    "pending", "completed", "skipped", name="schedule_status", create_type=False
)
ENUM_IRRIGATION_METHOD = postgresql.ENUM(
    "manual",
    "scheduled",
    "drip",
    "sprinkler",
    name="irrigation_method",
    create_type=False,
)
ENUM_NOTIFICATION_TYPE = postgresql.ENUM(
    "irrigation",
    "weather_warning",
    "irrigation_completed",
    name="notification_type",
    create_type=False,
)


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. Create enum types ────────────────────────────────────────────
    ENUM_SCHEDULE_STATUS.create(op.get_bind(), checkfirst=True)
    ENUM_IRRIGATION_METHOD.create(op.get_bind(), checkfirst=True)
    ENUM_NOTIFICATION_TYPE.create(op.get_bind(), checkfirst=True)

    # ── 2. Users and fields ─────────────────────────────────────────────

    # users
    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("hashed_password", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "is_active",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # fields
    op.create_table(
        "fields",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "location",
            sa.String(255),
            server_default=sa.text("''"),
            nullable=False,
        ),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column(
            "soil_type",
            sa.String(100),
            server_default=sa.text("'unknown'"),
            nullable=False,
        ),
        sa.Column("crop_type", sa.String(100), nullable=False),
        sa.Column("area", sa.Float(), nullable=True),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fields_user_id", "fields", ["user_id"])

    # ── 3. Irrigation ───────────────────────────────────────────────────

    # irrigation_schedules
    op.create_table(
        "irrigation_schedules",
        _id_column(),
        sa.Column("field_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("recommended_time", sa.String(11), nullable=False),
        sa.Column("water_amount", sa.Float(), nullable=False),
        sa.Column("weather_temp", sa.Float(), nullable=True),
        sa.Column("weather_humidity", sa.Float(), nullable=True),
        sa.Column("weather_condition", sa.String(255), nullable=True),
        sa.Column("note", sa.String(500), nullable=True),
        sa.Column(
            "status",
            ENUM_SCHEDULE_STATUS,
            server_default="pending",
            nullable=False,
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_water_used", sa.Float(), nullable=True),
        sa.Column("notes", sa.String(2048), nullable=True),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["field_id"], ["fields.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_irrigation_schedules_field_date",
        "irrigation_schedules",
        ["field_id", "date"],
    )
    op.create_index(
        "ix_irrigation_schedules_field_status",
        "irrigation_schedules",
        ["field_id", "status"],
    )

    # irrigation_logs
    op.create_table(
        "irrigation_logs",
        _id_column(),
        sa.Column("field_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "method",
            ENUM_IRRIGATION_METHOD,
            server_default="manual",
            nullable=False,
        ),
        sa.Column("scheduled_date", sa.Date(), nullable=True),
        sa.Column("water_used", sa.Float(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("notes", sa.String(2048), nullable=True),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["field_id"], ["fields.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_irrigation_logs_field_id", "irrigation_logs", ["field_id"])

    # ── 4. Weather cache and notifications ──────────────────────────────

    # weather_cache
    op.create_table(
        "weather_cache",
        _id_column(),
        sa.Column("location", sa.String(64), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("temperature", sa.Float(), nullable=True),
        sa.Column("humidity", sa.Float(), nullable=True),
        sa.Column("condition", sa.String(255), nullable=True),
        sa.Column(
            "precipitation",
            sa.Float(),
            server_default="0",
            nullable=False,
        ),
        sa.Column("forecast", postgresql.JSONB(), nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("location"),
    )

    # notifications
    op.create_table(
        "notifications",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", ENUM_NOTIFICATION_TYPE, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.String(2048), nullable=False),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "is_read",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_notifications_user_read", "notifications", ["user_id", "is_read"]
    )


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("notifications")
    op.drop_table("weather_cache")
    op.drop_table("irrigation_logs")
    op.drop_table("irrigation_schedules")
    op.drop_table("fields")
    op.drop_table("users")

    # ── Drop enum types ─────────────────────────────────────────────────
    ENUM_NOTIFICATION_TYPE.drop(op.get_bind(), checkfirst=True)
    ENUM_IRRIGATION_METHOD.drop(op.get_bind(), checkfirst=True)
    ENUM_SCHEDULE_STATUS.drop(op.get_bind(), checkfirst=True)
