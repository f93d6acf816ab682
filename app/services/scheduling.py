"""Irrigation schedule formulas — pure functions, no I/O.

Two planners live here:

* :func:`plan_primary_schedule` — 14-day horizon, entries spaced by the
  crop's irrigation interval, water derived from the (optionally
  AI-refined) crop profile and per-day forecast slices.
* :func:`plan_fallback_schedule` — 7 daily entries from a flat base need
  and the cached raw forecast, used when the primary tier fails.

``IrrigationService`` owns fetching inputs, persistence and notifications.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import StrEnum
from typing import Any

from app.models.enums import ScheduleStatusEnum
from app.services import reference_tables
from app.services.advisor_service import AIWaterProfile
from app.services.forecast import ForecastSample, weather_for_day

PRIMARY_HORIZON_DAYS = 14
FALLBACK_HORIZON_DAYS = 7
FALLBACK_SAMPLES_PER_DAY = 8

PRIMARY_DEFAULT_CONDITION = "clear"
FALLBACK_DEFAULT_TEMP = 25.0
FALLBACK_DEFAULT_HUMIDITY = 50.0
FALLBACK_DEFAULT_CONDITION = "unknown"
FALLBACK_RAIN_NOTE = "Rain expected, irrigation not needed."


class NoteKind(StrEnum):
	rain_skip = "rain_skip"
	rain_reduced = "rain_reduced"
	high_temperature = "high_temperature"
	low_humidity = "low_humidity"
	low_temperature = "low_temperature"


@dataclass(frozen=True, slots=True)
class ScheduleEntry:
	field_id: uuid.UUID
	date: date
	recommended_time: str
	water_amount: float
	weather_temp: float
	weather_humidity: float
	weather_condition: str
	note: str | None = None
	note_kind: NoteKind | None = None
	status: ScheduleStatusEnum = ScheduleStatusEnum.pending


def round_tenth(value: float) -> float:
	"""Round half-up to one decimal."""
	return math.floor(value * 10 + 0.5) / 10


# ── Adjustment factors ──────────────────────────────────────────────────────


def temperature_factor(temp: float, optimal: float) -> float:
	"""Hot days raise water need faster than cold days lower it."""
	diff = abs(temp - optimal)
	if temp > optimal:
		return 1 + min(diff / 10, 0.5)
	if temp < optimal:
		return 1 - min(diff / 20, 0.3)
	return 1.0


def humidity_factor(humidity: float, optimal: float) -> float:
	if humidity < optimal:
		return 1 + min((optimal - humidity) / 100, 0.4)
	return 1 - min((humidity - optimal) / 150, 0.2)


def rain_factor(total_rain: float) -> float:
	if total_rain > 15:
		return 0.0
	if total_rain > 10:
		return 0.2
	if total_rain > 5:
		return 0.5
	if total_rain > 2:
		return 0.7
	return 1.0


def season_factor(month: int) -> float:
	if 6 <= month <= 9:
		return 1.2
	if month == 12 or month <= 3:
		return 0.8
	return 1.0


def recommended_window(temp: float) -> str:
	"""Earlier morning windows on hotter days."""
	if temp > 30:
		return "04:30-06:30"
	if temp > 28:
		return "05:00-07:00"
	if temp > 24:
		return "06:00-08:00"
	if temp > 18:
		return "07:00-09:00"
	if temp < 12:
		return "10:00-12:00"
	return "08:00-10:00"


def describe_adjustment(
	*,
	water_amount: float,
	total_rain: float,
	temp: float,
	humidity: float,
	profile: reference_tables.CropProfile,
) -> tuple[NoteKind | None, str | None]:
	"""First matching explanation for the day's amount, or ``(None, None)``."""
	if water_amount == 0:
		return NoteKind.rain_skip, f"No irrigation needed: heavy rain expected ({total_rain:.1f}mm)."
	if total_rain > 5:
		return NoteKind.rain_reduced, f"Rain expected ({total_rain:.1f}mm). Irrigation amount reduced."
	if temp > profile.temp_optimal + 5:
		return NoteKind.high_temperature, f"High temperature ({temp:.1f}°C), more water may be needed."
	if humidity < profile.humidity_optimal - 20:
		return NoteKind.low_humidity, f"Low humidity ({math.floor(humidity + 0.5)}%). Water need increased."
	if temp < profile.temp_optimal - 8:
		return NoteKind.low_temperature, f"Low temperature ({temp:.1f}°C). Water need reduced."
	return None, None


# ── Primary planner ─────────────────────────────────────────────────────────


def effective_profile(
	profile: reference_tables.CropProfile,
	advice: AIWaterProfile | None,
) -> reference_tables.CropProfile:
	if advice is None:
		return profile
	return replace(profile, water_min=advice.water_min, water_max=advice.water_max)


def plan_primary_schedule(
	*,
	field_id: uuid.UUID,
	crop_type: str,
	soil_type: str,
	samples: Sequence[ForecastSample],
	start: date,
	advice: AIWaterProfile | None = None,
) -> list[ScheduleEntry]:
	base_profile = reference_tables.crop_profile(crop_type)
	profile = effective_profile(base_profile, advice)
	soil = reference_tables.soil_multiplier(soil_type)
	interval = advice.interval_days if advice is not None else reference_tables.irrigation_interval(crop_type)

	entries: list[ScheduleEntry] = []
	for offset in range(0, PRIMARY_HORIZON_DAYS, interval):
		day = start + timedelta(days=offset)
		weather = weather_for_day(
			samples,
			day,
			default_temp=base_profile.temp_optimal,
			default_humidity=base_profile.humidity_optimal,
			default_condition=PRIMARY_DEFAULT_CONDITION,
		)

		base_water = (profile.water_min + profile.water_max) / 2
		water = (
			base_water
			* temperature_factor(weather.avg_temp, profile.temp_optimal)
			* humidity_factor(weather.avg_humidity, profile.humidity_optimal)
			* soil
		)
		water *= rain_factor(weather.total_rain)
		water *= season_factor(day.month)
		water = round_tenth(max(0.0, water))

		if advice is not None and advice.recommended_time_range:
			window = advice.recommended_time_range
		else:
			window = recommended_window(weather.avg_temp)

		note_kind, note = describe_adjustment(
			water_amount=water,
			total_rain=weather.total_rain,
			temp=weather.avg_temp,
			humidity=weather.avg_humidity,
			profile=profile,
		)

		entries.append(
			ScheduleEntry(
				field_id=field_id,
				date=day,
				recommended_time=window,
				water_amount=water,
				weather_temp=round_tenth(weather.avg_temp),
				weather_humidity=float(math.floor(weather.avg_humidity + 0.5)),
				weather_condition=weather.condition,
				note=note,
				note_kind=note_kind,
			)
		)
	return entries


# ── Fallback planner ────────────────────────────────────────────────────────


def _number(value: Any, default: float) -> float:
	if isinstance(value, bool) or value is None:
		return default
	try:
		return float(value)
	except (TypeError, ValueError):
		return default


def _fallback_sample(items: Sequence[Mapping[str, Any]], index: int) -> tuple[float, float, float, str]:
	"""Temperature, humidity, rain and condition of raw cached item ``index``."""
	item = items[index] if index < len(items) and isinstance(items[index], Mapping) else {}
	main = item.get("main") if isinstance(item.get("main"), Mapping) else {}
	rain = item.get("rain") if isinstance(item.get("rain"), Mapping) else {}
	weather = item.get("weather")
	condition = FALLBACK_DEFAULT_CONDITION
	if isinstance(weather, list) and weather and isinstance(weather[0], Mapping):
		condition = str(weather[0].get("description") or FALLBACK_DEFAULT_CONDITION)
	return (
		_number(main.get("temp"), FALLBACK_DEFAULT_TEMP),
		_number(main.get("humidity"), FALLBACK_DEFAULT_HUMIDITY),
		_number(rain.get("3h"), 0.0),
		condition,
	)


def plan_fallback_schedule(
	*,
	field_id: uuid.UUID,
	crop_type: str,
	soil_type: str,
	forecast_items: Sequence[Mapping[str, Any]],
	start: date,
) -> list[ScheduleEntry]:
	"""Seven daily entries; item ``i * 8`` approximates the same hour on day ``i``."""
	base_water = reference_tables.base_water_need(crop_type)
	soil_key = reference_tables.resolve_key(soil_type)

	entries: list[ScheduleEntry] = []
	for offset in range(FALLBACK_HORIZON_DAYS):
		temp, humidity, rain, condition = _fallback_sample(forecast_items, offset * FALLBACK_SAMPLES_PER_DAY)

		water = base_water
		if temp > 30:
			water *= 1.3
		elif temp > 25:
			water *= 1.1
		elif temp < 15:
			water *= 0.8

		if humidity < 40:
			water *= 1.2
		elif humidity > 70:
			water *= 0.8

		if soil_key == reference_tables.SANDY:
			water *= 1.2
		elif soil_key == reference_tables.CLAY:
			water *= 0.9

		rained_out = rain > 5
		if rained_out:
			water = 0.0

		entries.append(
			ScheduleEntry(
				field_id=field_id,
				date=start + timedelta(days=offset),
				recommended_time="06:00-08:00" if temp > 28 else "07:00-09:00",
				water_amount=round_tenth(water),
				weather_temp=temp,
				weather_humidity=humidity,
				weather_condition=condition,
				note=FALLBACK_RAIN_NOTE if rained_out else None,
				note_kind=NoteKind.rain_skip if rained_out else None,
			)
		)
	return entries
