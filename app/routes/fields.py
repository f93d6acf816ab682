"""Field CRUD and schedule calculation routes."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.field import FieldCreate, FieldListRead, FieldRead, FieldUpdate
from app.schemas.irrigation import ScheduleEntryRead, ScheduleRunResponse
from app.services.field_service import FieldService
from app.services.irrigation_service import ScheduleGenerationInProgress

router = APIRouter(prefix="/fields", tags=["fields"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, PermissionError):
		return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, ScheduleGenerationInProgress):
		return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected field service failure",
	)


def _service(request: Request, db: AsyncSession) -> FieldService:
	return FieldService(db, getattr(request.app.state, "redis", None))


@router.post("", response_model=FieldRead, status_code=status.HTTP_201_CREATED)
async def create_field(
	payload: FieldCreate,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldRead:
	service = _service(request, db)
	try:
		field_obj = await service.create_field(user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FieldRead.model_validate(field_obj)


@router.get("", response_model=FieldListRead)
async def list_fields(
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldListRead:
	service = _service(request, db)
	try:
		fields = await service.list_fields(user.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FieldListRead(items=[FieldRead.model_validate(item) for item in fields])


@router.get("/{field_id}", response_model=FieldRead)
async def get_field(
	field_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldRead:
	service = _service(request, db)
	try:
		field_obj = await service.get_field(user.id, field_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FieldRead.model_validate(field_obj)


@router.put("/{field_id}", response_model=FieldRead)
async def update_field(
	field_id: uuid.UUID,
	payload: FieldUpdate,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldRead:
	service = _service(request, db)
	try:
		field_obj = await service.update_field(user.id, field_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FieldRead.model_validate(field_obj)


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_field(
	field_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> Response:
	service = _service(request, db)
	try:
		await service.delete_field(user.id, field_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{field_id}/calculate-irrigation-schedule", response_model=ScheduleRunResponse)
async def calculate_irrigation_schedule(
	field_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> ScheduleRunResponse:
	service = _service(request, db)
	try:
		run = await service.calculate_schedule(user.id, field_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	request.state.schedule_tier = run.tier.value
	return ScheduleRunResponse(
		field_id=field_id,
		tier=run.tier,
		generated_at=datetime.now(UTC),
		items=[ScheduleEntryRead.model_validate(entry) for entry in run.entries],
	)
