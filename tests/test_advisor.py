from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from app.config import Settings
from app.services.advisor_service import (
    AdvisorService,
    AIWaterProfile,
    clamp_profile,
    extract_json_object,
)
from app.services.forecast import ForecastSummary
from app.services.outcome import Available, Unavailable

SUMMARY = ForecastSummary(avg_temp=27.4, avg_humidity=48.6, total_rain=3.0)


def _reply(text: str) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})

    return httpx.MockTransport(handler)


async def _ask(service: AdvisorService) -> Any:
    return await service.get_water_profile(
        crop_type="tomato",
        soil_type="sandy",
        latitude=39.93,
        longitude=32.85,
        month=6,
        summary=SUMMARY,
    )


def test_extract_json_object_from_prose_and_fences() -> None:
    text = 'Sure! Here it is:\n```json\n{"waterMin": 4, "waterMax": 6}\n```\nGood luck.'
    assert extract_json_object(text) == Available({"waterMin": 4, "waterMax": 6})


def test_extract_json_object_skips_broken_braces() -> None:
    assert extract_json_object('{not json} then {"a": 1}') == Available({"a": 1})


@pytest.mark.parametrize("text", ["", "no object here", "[1, 2, 3]", "{unterminated"])
def test_extract_json_object_malformed(text: str) -> None:
    assert extract_json_object(text) == Unavailable("malformed")


def test_clamp_profile_forces_safety_bounds() -> None:
    result = clamp_profile({"waterMin": 50, "waterMax": 60, "intervalDays": 1})
    assert result == Available(AIWaterProfile(water_min=12.0, water_max=15.0, interval_days=1))

    low = clamp_profile({"waterMin": 0.1, "waterMax": 0.2, "intervalDays": 0.4})
    assert isinstance(low, Available)
    assert (low.value.water_min, low.value.water_max, low.value.interval_days) == (0.5, 0.8, 1)


def test_clamp_profile_rounds_interval_half_up() -> None:
    result = clamp_profile({"waterMin": 3, "waterMax": 5, "intervalDays": 2.5})
    assert isinstance(result, Available)
    assert result.value.interval_days == 3


def test_clamp_profile_keeps_only_well_formed_time_range() -> None:
    good = clamp_profile({"waterMin": 3, "waterMax": 5, "intervalDays": 2, "recommendedTimeRange": " 05:30-07:30 "})
    bad = clamp_profile({"waterMin": 3, "waterMax": 5, "intervalDays": 2, "recommendedTimeRange": "25:00-07:00"})
    assert isinstance(good, Available) and good.value.recommended_time_range == "05:30-07:30"
    assert isinstance(bad, Available) and bad.value.recommended_time_range is None


@pytest.mark.parametrize(
    "payload",
    [
        {"waterMax": 5, "intervalDays": 2},
        {"waterMin": "lots", "waterMax": 5, "intervalDays": 2},
        {"waterMin": float("nan"), "waterMax": 5, "intervalDays": 2},
        {"waterMin": 3, "waterMax": float("inf"), "intervalDays": 2},
        {"waterMin": 3, "waterMax": 5, "intervalDays": True},
    ],
)
def test_clamp_profile_rejects_non_finite(payload: dict[str, Any]) -> None:
    assert clamp_profile(payload) == Unavailable("non_finite")


@pytest.mark.asyncio
async def test_advisor_without_credential_skips_provider() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    service = AdvisorService(Settings(anthropic_api_key=""), transport=httpx.MockTransport(handler))
    assert await _ask(service) == Unavailable("no_credential")
    assert calls == []


@pytest.mark.asyncio
async def test_advisor_clamps_provider_reply(settings: Settings) -> None:
    service = AdvisorService(
        settings,
        transport=_reply('{"waterMin": 50, "waterMax": 60, "intervalDays": 1, "recommendedTimeRange": "05:00-07:00"}'),
    )
    result = await _ask(service)
    assert result == Available(
        AIWaterProfile(water_min=12.0, water_max=15.0, interval_days=1, recommended_time_range="05:00-07:00")
    )


@pytest.mark.asyncio
async def test_advisor_sends_prompt_with_summary(settings: Settings) -> None:
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"content": [{"type": "text", "text": "{}"}]})

    service = AdvisorService(settings, transport=httpx.MockTransport(handler))
    assert await _ask(service) == Unavailable("non_finite")

    assert seen["headers"]["x-api-key"] == "test-anthropic-key"
    assert seen["body"]["max_tokens"] == 200
    prompt = seen["body"]["messages"][0]["content"]
    assert "Crop: tomato" in prompt
    assert "Month: 6" in prompt
    assert "avgTemp=27.4°C" in prompt
    assert "avgHumidity=49%" in prompt
    assert "totalRain=3.0mm" in prompt


@pytest.mark.asyncio
async def test_advisor_transport_failure_is_unavailable(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(529, json={"error": "overloaded"})

    service = AdvisorService(settings, transport=httpx.MockTransport(handler))
    assert await _ask(service) == Unavailable("transport_error")


@pytest.mark.asyncio
async def test_advisor_malformed_reply(settings: Settings) -> None:
    service = AdvisorService(settings, transport=_reply("I would water moderately."))
    assert await _ask(service) == Unavailable("malformed")


def test_extract_json_object_deeply_nested_is_malformed() -> None:
    assert extract_json_object('{"waterMin": ' + "[" * 100_000) == Unavailable("malformed")


@pytest.mark.asyncio
async def test_advisor_deeply_nested_reply_is_unavailable(settings: Settings) -> None:
    service = AdvisorService(settings, transport=_reply('Sure: {"waterMin": ' + "[" * 100_000))
    assert await _ask(service) == Unavailable("malformed")
