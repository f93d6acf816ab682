"""Pydantic schemas for weather endpoints."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CurrentWeatherResponse(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	location: str
	latitude: float
	longitude: float
	temperature: float | None = None
	humidity: float | None = None
	condition: str | None = None
	precipitation: float = 0.0
	forecast: list[dict[str, Any]] = Field(default_factory=list)
	updated_at: dt.datetime


class DailyForecast(BaseModel):
	date: dt.date
	avg_temp: float
	avg_humidity: float
	total_rain: float
	condition: str


class DailyForecastResponse(BaseModel):
	generated_at: dt.datetime
	days: list[DailyForecast] = Field(default_factory=list)
