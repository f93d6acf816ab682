"""Notification emit / list / mark-read service."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, time

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import NotificationTypeEnum
from app.models.notifications import Notification

logger = structlog.get_logger("planner.notifications")


class NotificationService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def emit(
		self,
		user_id: uuid.UUID,
		category: NotificationTypeEnum,
		title: str,
		body: str,
		scheduled_for: date | datetime | None = None,
	) -> Notification | None:
		"""Fire-and-forget: a failed write is logged and rolled back to a savepoint."""
		if isinstance(scheduled_for, date) and not isinstance(scheduled_for, datetime):
			scheduled_for = datetime.combine(scheduled_for, time.min, tzinfo=UTC)

		notification = Notification(
			user_id=user_id,
			type=category,
			title=title,
			message=body,
			scheduled_for=scheduled_for,
			is_read=False,
		)
		try:
			async with self.db.begin_nested():
				self.db.add(notification)
				await self.db.flush()
		except Exception as exc:
			logger.warning(
				"notification_emit_failed",
				user_id=str(user_id),
				category=category.value,
				error=str(exc),
			)
			return None
		return notification

	async def list_notifications(self, user_id: uuid.UUID, *, unread_only: bool = False) -> list[Notification]:
		stmt = select(Notification).where(Notification.user_id == user_id)
		if unread_only:
			stmt = stmt.where(Notification.is_read.is_(False))
		rows = await self.db.execute(stmt.order_by(Notification.created_at.desc()))
		return list(rows.scalars().all())

	async def mark_read(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
		row = await self.db.execute(select(Notification).where(Notification.id == notification_id))
		notification = row.scalar_one_or_none()
		if notification is None:
			raise LookupError(f"Notification {notification_id} not found")
		if notification.user_id != user_id:
			raise PermissionError("notification belongs to another user")
		notification.is_read = True
		await self.db.flush()
		return notification

	async def mark_all_read(self, user_id: uuid.UUID) -> int:
		notifications = await self.list_notifications(user_id, unread_only=True)
		for notification in notifications:
			notification.is_read = True
		await self.db.flush()
		return len(notifications)
