"""Weather routes — cached current conditions and daily forecast."""

from __future__ import annotations

from datetime import UTC, datetime

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.weather import CurrentWeatherResponse, DailyForecast, DailyForecastResponse
from app.services.weather_service import WeatherService

router = APIRouter(prefix="/weather", tags=["weather"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, httpx.HTTPError):
		return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="weather provider unavailable")
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="weather failure")


@router.get("/current", response_model=CurrentWeatherResponse)
async def get_current_weather(
	lat: float = Query(ge=-90, le=90),
	lon: float = Query(ge=-180, le=180),
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(get_current_user),
) -> CurrentWeatherResponse:
	service = WeatherService(db)
	try:
		entry = await service.get_current_weather(lat, lon)
	except Exception as exc:
		raise _map_error(exc) from exc
	return CurrentWeatherResponse.model_validate(entry)


@router.get("/forecast", response_model=DailyForecastResponse)
async def get_forecast(
	lat: float = Query(ge=-90, le=90),
	lon: float = Query(ge=-180, le=180),
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(get_current_user),
) -> DailyForecastResponse:
	service = WeatherService(db)
	try:
		days = await service.get_daily_forecast(lat, lon)
	except Exception as exc:
		raise _map_error(exc) from exc
	return DailyForecastResponse(
		generated_at=datetime.now(UTC),
		days=[
			DailyForecast(
				date=day.day,
				avg_temp=day.avg_temp,
				avg_humidity=day.avg_humidity,
				total_rain=day.total_rain,
				condition=day.condition,
			)
			for day in days
		],
	)
