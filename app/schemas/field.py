"""Pydantic request/response schemas for field objects."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FieldCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	location: str = Field(default="", max_length=255)
	latitude: float | None = Field(default=None, ge=-90, le=90)
	longitude: float | None = Field(default=None, ge=-180, le=180)
	soil_type: str = Field(default="unknown", min_length=1, max_length=100)
	crop_type: str = Field(min_length=1, max_length=100)
	area: float | None = Field(default=None, gt=0)


class FieldUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	location: str | None = Field(default=None, max_length=255)
	latitude: float | None = Field(default=None, ge=-90, le=90)
	longitude: float | None = Field(default=None, ge=-180, le=180)
	soil_type: str | None = Field(default=None, min_length=1, max_length=100)
	crop_type: str | None = Field(default=None, min_length=1, max_length=100)
	area: float | None = Field(default=None, gt=0)


class FieldRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	user_id: uuid.UUID
	name: str
	location: str
	latitude: float | None = None
	longitude: float | None = None
	soil_type: str
	crop_type: str
	area: float | None = None
	created_at: datetime
	updated_at: datetime


class FieldListRead(BaseModel):
	items: list[FieldRead]
