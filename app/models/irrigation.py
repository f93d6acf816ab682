"""Irrigation schedule and irrigation log ORM models.

``irrigation_schedules`` rows are written in bulk by the schedule
generator, one row per field per calendar day of a run, and are mutated
afterwards only through status transitions.  ``irrigation_logs`` record
what was actually applied, either from a completed schedule entry or from
a manual entry.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Enum, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, FieldScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.enums import IrrigationMethodEnum, ScheduleStatusEnum

if TYPE_CHECKING:
    from app.models.field import Field

# ═══════════════════════════════════════════════════════════════════════════
# IrrigationSchedule
# ═══════════════════════════════════════════════════════════════════════════


class IrrigationSchedule(Base, UUIDPrimaryKeyMixin, TimestampMixin, FieldScopedMixin):
    """One day's irrigation recommendation for one field."""

    __tablename__ = "irrigation_schedules"
    __table_args__ = (
        Index("ix_irrigation_schedules_field_date", "field_id", "date"),
        Index("ix_irrigation_schedules_field_status", "field_id", "status"),
    )

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    recommended_time: Mapped[str] = mapped_column(String(11), nullable=False)
    water_amount: Mapped[float] = mapped_column(Float, nullable=False)
    weather_temp: Mapped[float | None] = mapped_column(Float, nullable=True)
    weather_humidity: Mapped[float | None] = mapped_column(Float, nullable=True)
    weather_condition: Mapped[str | None] = mapped_column(String(255), nullable=True)
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[ScheduleStatusEnum] = mapped_column(
        Enum(
            ScheduleStatusEnum,
            name="schedule_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=ScheduleStatusEnum.pending,
        server_default=ScheduleStatusEnum.pending.value,
    )
    completed_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    actual_water_used: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    field: Mapped[Field] = relationship(back_populates="schedules")

    def __repr__(self) -> str:
        return (
            f"<IrrigationSchedule id={self.id} field={self.field_id} "
            f"date={self.date} status={self.status}>"
        )


# ═══════════════════════════════════════════════════════════════════════════
# IrrigationLog
# ═══════════════════════════════════════════════════════════════════════════


class IrrigationLog(Base, UUIDPrimaryKeyMixin, TimestampMixin, FieldScopedMixin):
    """Record of water actually applied to a field."""

    __tablename__ = "irrigation_logs"
    __table_args__ = (Index("ix_irrigation_logs_field_id", "field_id"),)

    method: Mapped[IrrigationMethodEnum] = mapped_column(
        Enum(
            IrrigationMethodEnum,
            name="irrigation_method",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=IrrigationMethodEnum.manual,
        server_default=IrrigationMethodEnum.manual.value,
    )
    scheduled_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    water_used: Mapped[float] = mapped_column(Float, nullable=False)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    field: Mapped[Field] = relationship(back_populates="logs")

    def __repr__(self) -> str:
        return (
            f"<IrrigationLog id={self.id} field={self.field_id} "
            f"water={self.water_used}>"
        )
