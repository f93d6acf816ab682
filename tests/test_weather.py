from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
from httpx import AsyncClient

from app.config import Settings
from app.models.weather import WeatherCache
from app.services.forecast import DailyWeather
from app.services.outcome import Available, Unavailable
from app.services.weather_service import WeatherService, location_key, parse_location_key


def _cache_result(entry: Any) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = entry
    return result


def test_location_key_formats_coordinates() -> None:
    assert location_key(39.93, 32.85) == "39.93,32.85"
    assert location_key(39.0, 32.0) == "39,32"
    assert location_key(-12.5, 0) == "-12.5,0"


@pytest.mark.parametrize("raw", [None, "", "39.9", "abc,32", "39.9,", ",32"])
def test_parse_location_key_rejects_malformed(raw: str | None) -> None:
    assert parse_location_key(raw) is None


def test_parse_location_key_round_trips() -> None:
    assert parse_location_key(location_key(39.93, 32.85)) == (39.93, 32.85)


@pytest.mark.asyncio
async def test_cached_weather_fresh_hit(fake_db_session: Any, settings: Settings, now_utc: datetime) -> None:
    entry = SimpleNamespace(location="39.93,32.85", updated_at=now_utc - timedelta(minutes=10), forecast=[])
    fake_db_session.execute.return_value = _cache_result(entry)

    result = await WeatherService(fake_db_session, settings).get_cached_weather("39.93,32.85", now=now_utc)

    assert result == Available(entry)


@pytest.mark.asyncio
async def test_cached_weather_expires_after_ttl(fake_db_session: Any, settings: Settings, now_utc: datetime) -> None:
    entry = SimpleNamespace(location="39.93,32.85", updated_at=now_utc - timedelta(minutes=30), forecast=[])
    fake_db_session.execute.return_value = _cache_result(entry)

    result = await WeatherService(fake_db_session, settings).get_cached_weather("39.93,32.85", now=now_utc)

    assert result == Unavailable("stale")


@pytest.mark.asyncio
async def test_cached_weather_miss_and_malformed(fake_db_session: Any, settings: Settings) -> None:
    fake_db_session.execute.return_value = _cache_result(None)
    service = WeatherService(fake_db_session, settings)

    assert await service.get_cached_weather("39.93,32.85") == Unavailable("miss")
    assert await service.get_cached_weather("nowhere") == Unavailable("malformed_location")
    assert fake_db_session.execute.await_count == 1


@pytest.mark.asyncio
async def test_cached_weather_lookup_error_is_unavailable(fake_db_session: Any, settings: Settings) -> None:
    fake_db_session.execute.side_effect = RuntimeError("relation does not exist")

    result = await WeatherService(fake_db_session, settings).get_cached_weather("1,2")

    assert result == Unavailable("lookup_error")


@pytest.mark.asyncio
async def test_fetch_forecast_sends_metric_request(fake_db_session: Any, settings: Settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"list": [{"dt": 1, "main": {"temp": 1, "humidity": 2}}]})

    service = WeatherService(fake_db_session, settings, transport=httpx.MockTransport(handler))
    items = await service.fetch_forecast(39.93, 32.85)

    assert items == [{"dt": 1, "main": {"temp": 1, "humidity": 2}}]
    assert seen[0].url.path.endswith("/forecast")
    assert seen[0].url.params["units"] == "metric"
    assert seen[0].url.params["appid"] == "test-openweather-key"


@pytest.mark.asyncio
async def test_fetch_forecast_propagates_provider_errors(fake_db_session: Any, settings: Settings) -> None:
    service = WeatherService(
        fake_db_session,
        settings,
        transport=httpx.MockTransport(lambda request: httpx.Response(401, json={"message": "Invalid API key"})),
    )
    with pytest.raises(httpx.HTTPStatusError):
        await service.fetch_forecast(39.93, 32.85)


@pytest.mark.asyncio
async def test_current_weather_refreshes_cache_row(fake_db_session: Any, settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/weather"):
            return httpx.Response(
                200,
                json={
                    "main": {"temp": 28.4, "humidity": 41},
                    "weather": [{"description": "scattered clouds"}],
                    "rain": {"1h": 0.4},
                },
            )
        return httpx.Response(200, json={"list": [{"dt": index} for index in range(50)]})

    fake_db_session.execute.return_value = _cache_result(None)
    service = WeatherService(fake_db_session, settings, transport=httpx.MockTransport(handler))

    entry = await service.get_current_weather(39.93, 32.85)

    assert isinstance(entry, WeatherCache)
    assert fake_db_session.added == [entry]
    assert entry.location == "39.93,32.85"
    assert entry.temperature == 28.4
    assert entry.condition == "scattered clouds"
    assert entry.precipitation == 0.4
    assert len(entry.forecast) == 40


@pytest.mark.asyncio
async def test_forecast_route_returns_daily_aggregates(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_daily(self: WeatherService, latitude: float, longitude: float) -> list[DailyWeather]:
        return [
            DailyWeather(day=date(2026, 6, 1), avg_temp=24.5, avg_humidity=55.0, total_rain=1.5, condition="light rain"),
        ]

    monkeypatch.setattr(WeatherService, "get_daily_forecast", fake_daily)

    response = await client.get("/api/v1/weather/forecast", params={"lat": 39.93, "lon": 32.85})

    assert response.status_code == 200
    days = response.json()["days"]
    assert days == [
        {"date": "2026-06-01", "avg_temp": 24.5, "avg_humidity": 55.0, "total_rain": 1.5, "condition": "light rain"}
    ]


@pytest.mark.asyncio
async def test_current_weather_route_maps_provider_failure(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def failing(self: WeatherService, latitude: float, longitude: float) -> Any:
        raise httpx.ConnectError("provider down")

    monkeypatch.setattr(WeatherService, "get_current_weather", failing)

    response = await client.get("/api/v1/weather/current", params={"lat": 39.93, "lon": 32.85})

    assert response.status_code == 502


@pytest.mark.asyncio
async def test_current_weather_route_validates_coordinates(client: AsyncClient) -> None:
    response = await client.get("/api/v1/weather/current", params={"lat": 120, "lon": 32.85})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_current_weather_route_serializes_cache(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def cached(self: WeatherService, latitude: float, longitude: float) -> Any:
        return SimpleNamespace(
            location="39.93,32.85",
            latitude=latitude,
            longitude=longitude,
            temperature=21.0,
            humidity=60.0,
            condition="clear sky",
            precipitation=0.0,
            forecast=[],
            updated_at=datetime(2026, 6, 1, 9, tzinfo=UTC),
        )

    monkeypatch.setattr(WeatherService, "get_current_weather", cached)

    response = await client.get("/api/v1/weather/current", params={"lat": 39.93, "lon": 32.85})

    assert response.status_code == 200
    body = response.json()
    assert body["location"] == "39.93,32.85"
    assert body["condition"] == "clear sky"
