"""Pydantic schemas for irrigation schedule and log endpoints."""

from __future__ import annotations

import datetime as dt
import uuid

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import GenerationTierEnum, IrrigationMethodEnum, ScheduleStatusEnum


class ScheduleEntryRead(BaseModel):
	"""One generated recommendation, as returned by a calculation run."""

	model_config = ConfigDict(from_attributes=True)

	field_id: uuid.UUID
	date: dt.date
	recommended_time: str
	water_amount: float = Field(ge=0)
	weather_temp: float | None = None
	weather_humidity: float | None = None
	weather_condition: str | None = None
	note: str | None = None
	status: ScheduleStatusEnum = ScheduleStatusEnum.pending


class ScheduleRunResponse(BaseModel):
	field_id: uuid.UUID
	tier: GenerationTierEnum
	generated_at: dt.datetime
	items: list[ScheduleEntryRead] = Field(default_factory=list)


class IrrigationScheduleRead(ScheduleEntryRead):
	id: uuid.UUID
	field_name: str
	completed_at: dt.datetime | None = None
	actual_water_used: float | None = None
	notes: str | None = None
	created_at: dt.datetime


class ScheduleListResponse(BaseModel):
	items: list[IrrigationScheduleRead] = Field(default_factory=list)


class ScheduleStatusUpdate(BaseModel):
	status: ScheduleStatusEnum
	actual_water_used: float | None = Field(default=None, ge=0)
	notes: str | None = Field(default=None, max_length=2048)


class IrrigationLogCreate(BaseModel):
	field_id: uuid.UUID
	method: IrrigationMethodEnum = IrrigationMethodEnum.manual
	water_used: float = Field(ge=0)
	duration_minutes: int | None = Field(default=None, ge=0)
	notes: str | None = Field(default=None, max_length=2048)


class IrrigationLogRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	field_id: uuid.UUID
	method: IrrigationMethodEnum
	scheduled_date: dt.date | None = None
	water_used: float
	duration_minutes: int | None = None
	notes: str | None = None
	created_at: dt.datetime
