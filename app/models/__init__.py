"""ORM model registry — importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from app.models import Field, IrrigationSchedule, WeatherCache, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from app.models.base import (
    Base,
    FieldScopedMixin,
    TimestampMixin,
    UserOwnedMixin,
    UUIDPrimaryKeyMixin,
)

# ── Enums ───────────────────────────────────────────────────────────────────
from app.models.enums import (
    GenerationTierEnum,
    IrrigationMethodEnum,
    NotificationTypeEnum,
    ScheduleStatusEnum,
)

# ── Fields & irrigation ─────────────────────────────────────────────────────
from app.models.field import Field
from app.models.irrigation import IrrigationLog, IrrigationSchedule

# ── Notifications ───────────────────────────────────────────────────────────
from app.models.notifications import Notification

# ── Users ───────────────────────────────────────────────────────────────────
from app.models.user import User

# ── Weather cache ───────────────────────────────────────────────────────────
from app.models.weather import WeatherCache

__all__ = [
    # Base & mixins
    "Base",
    # Fields & irrigation
    "Field",
    "FieldScopedMixin",
    # Enums
    "GenerationTierEnum",
    "IrrigationLog",
    "IrrigationMethodEnum",
    "IrrigationSchedule",
    # Notifications
    "Notification",
    "NotificationTypeEnum",
    "ScheduleStatusEnum",
    "TimestampMixin",
    "UserOwnedMixin",
    "UUIDPrimaryKeyMixin",
    # Users
    "User",
    # Weather cache
    "WeatherCache",
]
