"""Field CRUD service — keeps each field's pending schedule in sync with its inputs."""

from __future__ import annotations

import uuid

from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.field import Field
from app.schemas.field import FieldCreate, FieldUpdate
from app.services.irrigation_service import IrrigationService, ScheduleRun

# Changing any of these invalidates the pending schedule.
_SCHEDULE_INPUTS = ("crop_type", "soil_type", "latitude", "longitude")


class FieldService:
	"""Service for field CRUD and schedule (re)generation triggers."""

	def __init__(
		self,
		db: AsyncSession,
		redis_client: Redis | None = None,
		irrigation: IrrigationService | None = None,
	):
		self.db = db
		self.irrigation = irrigation or IrrigationService(db, redis_client)

	async def create_field(self, user_id: uuid.UUID, payload: FieldCreate) -> Field:
		field_obj = Field(
			user_id=user_id,
			name=payload.name,
			location=payload.location,
			latitude=payload.latitude,
			longitude=payload.longitude,
			soil_type=payload.soil_type,
			crop_type=payload.crop_type,
			area=payload.area,
		)
		self.db.add(field_obj)
		await self.db.flush()
		await self.db.refresh(field_obj)

		if field_obj.has_coordinates:
			await self.irrigation.regenerate(field_obj)
		return field_obj

	async def list_fields(self, user_id: uuid.UUID) -> list[Field]:
		rows = await self.db.execute(
			select(Field).where(Field.user_id == user_id).order_by(Field.created_at.desc())
		)
		return list(rows.scalars().all())

	async def get_field(self, user_id: uuid.UUID, field_id: uuid.UUID) -> Field:
		row = await self.db.execute(select(Field).where(Field.id == field_id))
		field_obj = row.scalar_one_or_none()
		if field_obj is None:
			raise LookupError(f"Field {field_id} not found")
		if field_obj.user_id != user_id:
			raise PermissionError("field belongs to another user")
		return field_obj

	async def update_field(self, user_id: uuid.UUID, field_id: uuid.UUID, payload: FieldUpdate) -> Field:
		field_obj = await self.get_field(user_id, field_id)
		changes = payload.model_dump(exclude_unset=True)
		previous = {name: getattr(field_obj, name) for name in _SCHEDULE_INPUTS}

		for name, value in changes.items():
			setattr(field_obj, name, value)
		await self.db.flush()

		inputs_changed = any(getattr(field_obj, name) != previous[name] for name in _SCHEDULE_INPUTS)
		if inputs_changed and field_obj.has_coordinates:
			await self.irrigation.regenerate(field_obj)
		return field_obj

	async def delete_field(self, user_id: uuid.UUID, field_id: uuid.UUID) -> None:
		field_obj = await self.get_field(user_id, field_id)
		await self.db.delete(field_obj)
		await self.db.flush()

	async def calculate_schedule(self, user_id: uuid.UUID, field_id: uuid.UUID) -> ScheduleRun:
		field_obj = await self.get_field(user_id, field_id)
		return await self.irrigation.regenerate(field_obj)
