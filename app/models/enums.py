"""PostgreSQL-backed enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.
These are separate from the Pydantic StrEnum in app/config.py —
config enums validate settings, ORM enums type database columns.
"""

from enum import StrEnum

# ── Irrigation enums ────────────────────────────────────────────────────────


class ScheduleStatusEnum(StrEnum):
    """Lifecycle of a single irrigation recommendation."""

    pending = "pending"
    completed = "completed"
    skipped = "skipped"


class IrrigationMethodEnum(StrEnum):
    """How a logged irrigation was carried out."""

    manual = "manual"
    scheduled = "scheduled"
    drip = "drip"
    sprinkler = "sprinkler"


# ── Notification enums ──────────────────────────────────────────────────────


class NotificationTypeEnum(StrEnum):
    """Notification categories emitted to field owners."""

    irrigation = "irrigation"
    weather_warning = "weather_warning"
    irrigation_completed = "irrigation_completed"


# ── Scheduling enums (not persisted) ────────────────────────────────────────


class GenerationTierEnum(StrEnum):
    """Which tier of the generation state machine produced a schedule."""

    ai_assisted = "ai_assisted"
    fallback = "fallback"
    empty = "empty"
