"""Pydantic schemas for notification endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import NotificationTypeEnum


class NotificationRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	type: NotificationTypeEnum
	title: str
	message: str
	scheduled_for: datetime | None = None
	is_read: bool
	created_at: datetime


class NotificationListResponse(BaseModel):
	items: list[NotificationRead] = Field(default_factory=list)
	unread: int = 0


class MarkAllReadResponse(BaseModel):
	updated: int
