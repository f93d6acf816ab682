"""Notification ORM model — user-facing reminders and warnings."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UserOwnedMixin, UUIDPrimaryKeyMixin
from app.models.enums import NotificationTypeEnum


class Notification(Base, UUIDPrimaryKeyMixin, TimestampMixin, UserOwnedMixin):
	"""A message for one user, optionally tied to the day it is about."""

	__tablename__ = "notifications"
	__table_args__ = (
		Index("ix_notifications_user_read", "user_id", "is_read"),
	)

	type: Mapped[NotificationTypeEnum] = mapped_column(
		Enum(
			NotificationTypeEnum,
			name="notification_type",
			create_constraint=False,
			native_enum=True,
		),
		nullable=False,
	)
	title: Mapped[str] = mapped_column(String(255), nullable=False)
	message: Mapped[str] = mapped_column(String(2048), nullable=False)
	scheduled_for: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
	is_read: Mapped[bool] = mapped_column(
		default=False,
		server_default=text("false"),
		nullable=False,
	)

	def __repr__(self) -> str:
		return f"<Notification id={self.id} user={self.user_id} type={self.type}>"
