"""Weather provider client and weather cache access."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.models.weather import WeatherCache
from app.services.forecast import DailyWeather, group_by_day, parse_forecast
from app.services.outcome import Available, Outcome, Unavailable

logger = structlog.get_logger("planner.weather")

FORECAST_SAMPLE_LIMIT = 40


def _format_coordinate(value: float) -> str:
	number = float(value)
	return str(int(number)) if number.is_integer() else repr(number)


def location_key(latitude: float, longitude: float) -> str:
	"""Cache key ``"lat,lon"``; integral coordinates are written without ``.0``."""
	return f"{_format_coordinate(latitude)},{_format_coordinate(longitude)}"


def parse_location_key(location: str | None) -> tuple[float, float] | None:
	if not location:
		return None
	parts = [part.strip() for part in location.split(",")]
	if len(parts) < 2 or not parts[0] or not parts[1]:
		return None
	try:
		return float(parts[0]), float(parts[1])
	except ValueError:
		return None


class WeatherService:
	def __init__(
		self,
		db: AsyncSession,
		settings: Settings | None = None,
		transport: httpx.AsyncBaseTransport | None = None,
	):
		self.db = db
		self.settings = settings or get_settings()
		self.transport = transport

	# ── Provider ──────────────────────────────────────────────────────────

	async def _get(self, resource: str, latitude: float, longitude: float) -> dict[str, Any]:
		params = {
			"lat": latitude,
			"lon": longitude,
			"appid": self.settings.openweather_api_key.get_secret_value(),
			"units": "metric",
		}
		async with httpx.AsyncClient(
			timeout=self.settings.openweather_timeout_seconds,
			transport=self.transport,
		) as client:
			response = await client.get(f"{self.settings.openweather_base_url}/{resource}", params=params)
			response.raise_for_status()
			payload = response.json()
		if not isinstance(payload, dict):
			raise ValueError(f"unexpected {resource} payload")
		return payload

	async def fetch_forecast(self, latitude: float, longitude: float) -> list[dict[str, Any]]:
		"""Raw 3-hour samples for the next five days. Provider errors propagate."""
		payload = await self._get("forecast", latitude, longitude)
		items = payload.get("list") or []
		if not isinstance(items, list):
			raise ValueError("forecast payload has no sample list")
		return items

	async def fetch_current(self, latitude: float, longitude: float) -> dict[str, Any]:
		return await self._get("weather", latitude, longitude)

	# ── Cache ─────────────────────────────────────────────────────────────

	async def get_cached_weather(
		self,
		location: str | None,
		*,
		now: datetime | None = None,
	) -> Outcome[WeatherCache]:
		"""Cached bundle for ``location`` if refreshed within the cache TTL.

		Stale rows, missing rows, malformed keys and lookup errors all come
		back as ``Unavailable``.
		"""
		if parse_location_key(location) is None:
			return Unavailable("malformed_location")

		try:
			row = await self.db.execute(select(WeatherCache).where(WeatherCache.location == location))
			cached = row.scalar_one_or_none()
		except Exception as exc:
			logger.warning("weather_cache_lookup_failed", location=location, error=str(exc))
			return Unavailable("lookup_error")

		if cached is None:
			return Unavailable("miss")

		current = now or datetime.now(UTC)
		max_age = timedelta(seconds=self.settings.weather_cache_ttl_seconds)
		if current - cached.updated_at >= max_age:
			return Unavailable("stale")
		return Available(cached)

	async def get_current_weather(self, latitude: float, longitude: float) -> WeatherCache:
		"""Fresh cache hit, or fetch current + forecast and upsert the cache row."""
		key = location_key(latitude, longitude)
		cached = await self.get_cached_weather(key)
		if isinstance(cached, Available):
			return cached.value

		current = await self.fetch_current(latitude, longitude)
		forecast = await self.fetch_forecast(latitude, longitude)

		main = current.get("main") or {}
		weather = current.get("weather") or [{}]
		rain = current.get("rain") or {}
		values = {
			"latitude": float(latitude),
			"longitude": float(longitude),
			"temperature": main.get("temp"),
			"humidity": main.get("humidity"),
			"condition": weather[0].get("description") if weather else None,
			"precipitation": float(rain.get("1h") or 0.0),
			"forecast": forecast[:FORECAST_SAMPLE_LIMIT],
		}

		row = await self.db.execute(select(WeatherCache).where(WeatherCache.location == key))
		entry = row.scalar_one_or_none()
		if entry is None:
			entry = WeatherCache(location=key, **values)
			self.db.add(entry)
		else:
			for name, value in values.items():
				setattr(entry, name, value)
			entry.updated_at = datetime.now(UTC)
		await self.db.flush()
		await self.db.refresh(entry)
		logger.info("weather_cache_refreshed", location=key)
		return entry

	async def get_daily_forecast(self, latitude: float, longitude: float) -> list[DailyWeather]:
		items = await self.fetch_forecast(latitude, longitude)
		return group_by_day(parse_forecast(items))
