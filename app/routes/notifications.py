"""Notification inbox routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.notification import MarkAllReadResponse, NotificationListResponse, NotificationRead
from app.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, PermissionError):
		return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="notification failure")


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
	unread_only: bool = Query(default=False),
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> NotificationListResponse:
	service = NotificationService(db)
	try:
		items = await service.list_notifications(user.id, unread_only=unread_only)
	except Exception as exc:
		raise _map_error(exc) from exc
	return NotificationListResponse(
		items=[NotificationRead.model_validate(item) for item in items],
		unread=sum(1 for item in items if not item.is_read),
	)


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
	notification_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> NotificationRead:
	service = NotificationService(db)
	try:
		notification = await service.mark_read(user.id, notification_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return NotificationRead.model_validate(notification)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> MarkAllReadResponse:
	service = NotificationService(db)
	try:
		updated = await service.mark_all_read(user.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return MarkAllReadResponse(updated=updated)
