"""Forecast parsing and aggregation — provider samples → summaries and day slices."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

DEFAULT_SUMMARY_TEMP = 20.0
DEFAULT_SUMMARY_HUMIDITY = 50.0
UNKNOWN_CONDITION = "unknown"


@dataclass(frozen=True, slots=True)
class ForecastSample:
	timestamp: datetime
	temperature: float
	humidity: float
	rain_3h: float = 0.0
	condition: str | None = None

	@property
	def day(self) -> date:
		return self.timestamp.date()

	@classmethod
	def from_provider(cls, item: Mapping[str, Any]) -> ForecastSample:
		"""Parse one element of the provider's ``list`` array.

		Raises ``ValueError`` when timestamp, temperature or humidity is missing.
		Rain and condition are optional in the provider payload.
		"""
		try:
			main = item["main"]
			timestamp = datetime.fromtimestamp(int(item["dt"]), tz=UTC)
			temperature = float(main["temp"])
			humidity = float(main["humidity"])
		except (KeyError, TypeError, ValueError) as exc:
			raise ValueError(f"malformed forecast sample: {exc}") from exc

		rain = item.get("rain")
		rain_3h = float(rain.get("3h") or 0.0) if isinstance(rain, Mapping) else 0.0

		condition: str | None = None
		weather = item.get("weather")
		if isinstance(weather, list) and weather and isinstance(weather[0], Mapping):
			condition = str(weather[0].get("description") or "") or None

		return cls(
			timestamp=timestamp,
			temperature=temperature,
			humidity=humidity,
			rain_3h=rain_3h,
			condition=condition,
		)


@dataclass(frozen=True, slots=True)
class ForecastSummary:
	avg_temp: float
	avg_humidity: float
	total_rain: float


@dataclass(frozen=True, slots=True)
class DailyWeather:
	day: date
	avg_temp: float
	avg_humidity: float
	total_rain: float
	condition: str
	samples: tuple[ForecastSample, ...] = field(default=())


def parse_forecast(items: Iterable[Mapping[str, Any]]) -> list[ForecastSample]:
	return [ForecastSample.from_provider(item) for item in items]


def summarize(samples: Sequence[ForecastSample]) -> ForecastSummary:
	"""Aggregate the whole window; an empty window yields 20°C / 50% / 0mm."""
	if not samples:
		return ForecastSummary(
			avg_temp=DEFAULT_SUMMARY_TEMP,
			avg_humidity=DEFAULT_SUMMARY_HUMIDITY,
			total_rain=0.0,
		)
	count = len(samples)
	return ForecastSummary(
		avg_temp=sum(sample.temperature for sample in samples) / count,
		avg_humidity=sum(sample.humidity for sample in samples) / count,
		total_rain=sum(sample.rain_3h for sample in samples),
	)


def samples_on(samples: Iterable[ForecastSample], day: date) -> list[ForecastSample]:
	return [sample for sample in samples if sample.day == day]


def weather_for_day(
	samples: Iterable[ForecastSample],
	day: date,
	*,
	default_temp: float,
	default_humidity: float,
	default_condition: str,
) -> DailyWeather:
	"""Average the samples falling on ``day``; use the defaults when there are none."""
	todays = samples_on(samples, day)
	if not todays:
		return DailyWeather(
			day=day,
			avg_temp=default_temp,
			avg_humidity=default_humidity,
			total_rain=0.0,
			condition=default_condition,
		)
	summary = summarize(todays)
	return DailyWeather(
		day=day,
		avg_temp=summary.avg_temp,
		avg_humidity=summary.avg_humidity,
		total_rain=summary.total_rain,
		condition=todays[0].condition or UNKNOWN_CONDITION,
		samples=tuple(todays),
	)


def group_by_day(samples: Iterable[ForecastSample]) -> list[DailyWeather]:
	"""One ``DailyWeather`` per UTC calendar day present in ``samples``, in order."""
	buckets: dict[date, list[ForecastSample]] = {}
	for sample in samples:
		buckets.setdefault(sample.day, []).append(sample)

	days: list[DailyWeather] = []
	for day, items in sorted(buckets.items()):
		summary = summarize(items)
		days.append(
			DailyWeather(
				day=day,
				avg_temp=summary.avg_temp,
				avg_humidity=summary.avg_humidity,
				total_rain=summary.total_rain,
				condition=items[0].condition or UNKNOWN_CONDITION,
				samples=tuple(items),
			)
		)
	return days
