"""Field ORM model — the unit an irrigation schedule is generated for.

A field carries the three inputs of schedule generation (crop type, soil
type, coordinates) and owns its schedule entries and irrigation logs.
Crop and soil are stored exactly as the user typed them; lookups against
the reference tables normalize them at read time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Float, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UserOwnedMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.irrigation import IrrigationLog, IrrigationSchedule
    from app.models.user import User


class Field(Base, UUIDPrimaryKeyMixin, TimestampMixin, UserOwnedMixin):
    """An agricultural field owned by one user."""

    __tablename__ = "fields"
    __table_args__ = (Index("ix_fields_user_id", "user_id"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        server_default=text("''"),
    )
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    soil_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="unknown",
        server_default=text("'unknown'"),
    )
    crop_type: Mapped[str] = mapped_column(String(100), nullable=False)
    area: Mapped[float | None] = mapped_column(Float, nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    user: Mapped[User] = relationship(back_populates="fields")
    schedules: Mapped[list[IrrigationSchedule]] = relationship(
        back_populates="field",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )
    logs: Mapped[list[IrrigationLog]] = relationship(
        back_populates="field",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self) -> str:
        return f"<Field id={self.id} name={self.name!r} crop={self.crop_type!r}>"
