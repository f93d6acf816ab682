"""AI water-profile advisor — prompt, provider call, tolerant parsing, safety clamps."""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from app.config import Settings, get_settings
from app.services.forecast import ForecastSummary
from app.services.outcome import Available, Outcome, Unavailable

logger = structlog.get_logger("planner.advisor")

WATER_MIN_BOUNDS = (0.5, 12.0)
WATER_MAX_BOUNDS = (0.8, 15.0)
INTERVAL_BOUNDS = (1, 10)

TIME_RANGE_PATTERN = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d-(?:[01]\d|2[0-3]):[0-5]\d$")


@dataclass(frozen=True, slots=True)
class AIWaterProfile:
	water_min: float
	water_max: float
	interval_days: int
	recommended_time_range: str | None = None


def extract_json_object(text: str) -> Outcome[dict[str, Any]]:
	"""Return the first JSON object embedded anywhere in ``text``.

	Model replies often wrap the object in prose or a fenced code block, so
	every ``{`` is tried as a decode start until one yields an object.
	"""
	decoder = json.JSONDecoder()
	for match in re.finditer(r"\{", text):
		try:
			value, _ = decoder.raw_decode(text, match.start())
		except json.JSONDecodeError:
			continue
		except RecursionError:
			return Unavailable("malformed")
		if isinstance(value, dict):
			return Available(value)
	return Unavailable("malformed")


def _finite(value: Any) -> float | None:
	if isinstance(value, bool):
		return None
	try:
		number = float(value)
	except (TypeError, ValueError):
		return None
	return number if math.isfinite(number) else None


def _clamp(value: float, bounds: tuple[float, float]) -> float:
	low, high = bounds
	return max(low, min(value, high))


def clamp_profile(payload: Mapping[str, Any]) -> Outcome[AIWaterProfile]:
	"""Validate the advisor payload and force it into the safety bounds."""
	water_min = _finite(payload.get("waterMin"))
	water_max = _finite(payload.get("waterMax"))
	interval = _finite(payload.get("intervalDays"))
	if water_min is None or water_max is None or interval is None:
		return Unavailable("non_finite")

	time_range = payload.get("recommendedTimeRange")
	if not isinstance(time_range, str) or not TIME_RANGE_PATTERN.match(time_range.strip()):
		time_range = None
	else:
		time_range = time_range.strip()

	return Available(
		AIWaterProfile(
			water_min=_clamp(water_min, WATER_MIN_BOUNDS),
			water_max=_clamp(water_max, WATER_MAX_BOUNDS),
			interval_days=int(_clamp(math.floor(interval + 0.5), INTERVAL_BOUNDS)),
			recommended_time_range=time_range,
		)
	)


class AdvisorService:
	def __init__(
		self,
		settings: Settings | None = None,
		transport: httpx.AsyncBaseTransport | None = None,
	):
		self.settings = settings or get_settings()
		self.transport = transport

	async def get_water_profile(
		self,
		*,
		crop_type: str,
		soil_type: str,
		latitude: float,
		longitude: float,
		month: int,
		summary: ForecastSummary,
	) -> Outcome[AIWaterProfile]:
		if not self.settings.advisor_configured:
			return Unavailable("no_credential")

		prompt = self.build_prompt(
			crop_type=crop_type,
			soil_type=soil_type,
			latitude=latitude,
			longitude=longitude,
			month=month,
			summary=summary,
		)
		try:
			text = await self.call_llm(prompt)
		except (httpx.HTTPError, ValueError) as exc:
			logger.warning("advisor_request_failed", crop_type=crop_type, error=str(exc))
			return Unavailable("transport_error")

		parsed = extract_json_object(text)
		if isinstance(parsed, Unavailable):
			logger.info("advisor_reply_malformed", crop_type=crop_type)
			return parsed

		profile = clamp_profile(parsed.value)
		if isinstance(profile, Unavailable):
			logger.info("advisor_reply_rejected", crop_type=crop_type, reason=profile.reason)
		return profile

	@staticmethod
	def build_prompt(
		*,
		crop_type: str,
		soil_type: str,
		latitude: float,
		longitude: float,
		month: int,
		summary: ForecastSummary,
	) -> str:
		return (
			"You are an agronomy assistant. Return JSON only.\n"
			f"Crop: {crop_type}\n"
			f"Soil: {soil_type}\n"
			f"Location: lat {latitude}, lon {longitude}\n"
			f"Month: {month}\n"
			"Forecast summary (next ~5 days): "
			f"avgTemp={summary.avg_temp:.1f}°C, "
			f"avgHumidity={round(summary.avg_humidity)}%, "
			f"totalRain={summary.total_rain:.1f}mm.\n\n"
			"Return a JSON object with:\n"
			"{\n"
			'  "waterMin": number,\n'
			'  "waterMax": number,\n'
			'  "intervalDays": number,\n'
			'  "recommendedTimeRange": "HH:MM-HH:MM"\n'
			"}\n\n"
			"Water amounts are litres per square metre per day. "
			"Be conservative, realistic for field irrigation."
		)

	async def call_llm(self, prompt: str) -> str:
		headers = {
			"x-api-key": self.settings.anthropic_api_key.get_secret_value(),
			"anthropic-version": "2023-06-01",
			"content-type": "application/json",
		}
		body = {
			"model": self.settings.anthropic_model,
			"max_tokens": 200,
			"messages": [{"role": "user", "content": prompt}],
		}

		async with httpx.AsyncClient(
			timeout=self.settings.anthropic_timeout_seconds,
			transport=self.transport,
		) as client:
			response = await client.post(self.settings.anthropic_base_url, headers=headers, json=body)
			response.raise_for_status()
			payload = response.json()

		content = payload.get("content") if isinstance(payload, dict) else None
		if not isinstance(content, list) or not content or not isinstance(content[0], dict):
			return ""
		return str(content[0].get("text") or "").strip()
