"""Irrigation schedule listing, status updates and manual logs."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.enums import ScheduleStatusEnum
from app.models.irrigation import IrrigationSchedule
from app.models.user import User
from app.schemas.irrigation import (
	IrrigationLogCreate,
	IrrigationLogRead,
	IrrigationScheduleRead,
	ScheduleListResponse,
	ScheduleStatusUpdate,
)
from app.services.irrigation_service import IrrigationService

router = APIRouter(prefix="/irrigation", tags=["irrigation"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, PermissionError):
		return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="irrigation failure")


def _to_schedule_read(schedule: IrrigationSchedule, field_name: str) -> IrrigationScheduleRead:
	return IrrigationScheduleRead(
		id=schedule.id,
		field_id=schedule.field_id,
		field_name=field_name,
		date=schedule.date,
		recommended_time=schedule.recommended_time,
		water_amount=schedule.water_amount,
		weather_temp=schedule.weather_temp,
		weather_humidity=schedule.weather_humidity,
		weather_condition=schedule.weather_condition,
		note=schedule.note,
		status=schedule.status,
		completed_at=schedule.completed_at,
		actual_water_used=schedule.actual_water_used,
		notes=schedule.notes,
		created_at=schedule.created_at,
	)


@router.get("/schedules", response_model=ScheduleListResponse)
async def list_schedules(
	request: Request,
	start_date: date | None = Query(default=None),
	end_date: date | None = Query(default=None),
	field_id: uuid.UUID | None = Query(default=None),
	schedule_status: ScheduleStatusEnum | None = Query(default=None, alias="status"),
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> ScheduleListResponse:
	service = IrrigationService(db, getattr(request.app.state, "redis", None))
	try:
		if (start_date is None) != (end_date is None):
			raise ValueError("start_date and end_date must be given together")
		if start_date is not None and end_date is not None and start_date > end_date:
			raise ValueError("start_date must not be after end_date")
		rows = await service.list_schedules(
			user.id,
			start_date=start_date,
			end_date=end_date,
			field_id=field_id,
			status=schedule_status,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ScheduleListResponse(items=[_to_schedule_read(schedule, name) for schedule, name in rows])


@router.patch("/schedules/{schedule_id}", response_model=IrrigationScheduleRead)
async def update_schedule_status(
	schedule_id: uuid.UUID,
	payload: ScheduleStatusUpdate,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> IrrigationScheduleRead:
	service = IrrigationService(db, getattr(request.app.state, "redis", None))
	try:
		schedule, field_name = await service.update_status(
			user.id,
			schedule_id,
			payload.status,
			actual_water_used=payload.actual_water_used,
			notes=payload.notes,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_schedule_read(schedule, field_name)


@router.post("/log", response_model=IrrigationLogRead, status_code=status.HTTP_201_CREATED)
async def create_irrigation_log(
	payload: IrrigationLogCreate,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> IrrigationLogRead:
	service = IrrigationService(db, getattr(request.app.state, "redis", None))
	try:
		log = await service.create_log(
			user.id,
			payload.field_id,
			water_used=payload.water_used,
			method=payload.method,
			duration_minutes=payload.duration_minutes,
			notes=payload.notes,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return IrrigationLogRead.model_validate(log)
