"""Shared pytest fixtures — async test client, fake session, fake Redis, provider payloads."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime, time, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.auth.dependencies import get_current_user
from app.auth.jwt import create_access_token
from app.config import Settings
from app.database import get_db
from app.main import app
from app.models.user import User


class FakeAsyncSession:
	"""Async-session stub; ``begin_nested`` discards objects added inside a failed block."""

	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()
		self.flush = AsyncMock()
		self.refresh = AsyncMock()
		self.delete = AsyncMock()
		self.added: list[Any] = []
		self.savepoints = 0
		self.savepoint_rollbacks = 0

	def add(self, obj: Any) -> None:
		self.added.append(obj)

	def add_all(self, objs: list[Any]) -> None:
		self.added.extend(objs)

	@asynccontextmanager
	async def begin_nested(self) -> AsyncIterator[FakeAsyncSession]:
		mark = len(self.added)
		self.savepoints += 1
		try:
			yield self
		except Exception:
			del self.added[mark:]
			self.savepoint_rollbacks += 1
			raise


class FakeRedis:
	def __init__(self) -> None:
		self.store: dict[str, Any] = {}
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value

	async def set(self, key: str, value: Any, nx: bool = False, ex: int | None = None) -> bool | None:
		if nx and key in self.store:
			return None
		self.store[key] = value
		return True

	async def get(self, key: str) -> Any:
		return self.store.get(key)

	async def delete(self, key: str) -> int:
		return 1 if self.store.pop(key, None) is not None else 0


def _forecast_item(
	moment: datetime,
	*,
	temp: float = 20.0,
	humidity: float = 50.0,
	rain_3h: float | None = None,
	description: str = "clear sky",
) -> dict[str, Any]:
	"""One element of the provider's 3-hour forecast ``list``."""
	item: dict[str, Any] = {
		"dt": int(moment.timestamp()),
		"main": {"temp": temp, "humidity": humidity},
		"weather": [{"description": description}],
	}
	if rain_3h is not None:
		item["rain"] = {"3h": rain_3h}
	return item


def _day_items(day: date, **kwargs: Any) -> list[dict[str, Any]]:
	"""Eight 3-hourly samples covering one UTC day."""
	midnight = datetime.combine(day, time.min, tzinfo=UTC)
	return [_forecast_item(midnight + timedelta(hours=3 * step), **kwargs) for step in range(8)]


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides and service tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def forecast_item() -> Any:
	return _forecast_item


@pytest.fixture
def day_items() -> Any:
	return _day_items


@pytest.fixture
def settings() -> Settings:
	return Settings(
		anthropic_api_key="test-anthropic-key",
		openweather_api_key="test-openweather-key",
		weather_cache_ttl_seconds=1800,
		schedule_lock_ttl_seconds=60,
	)


@pytest.fixture
def user_id() -> uuid.UUID:
	return uuid.UUID("22222222-2222-2222-2222-222222222222")


@asynccontextmanager
async def _serve(fake_db_session: FakeAsyncSession, current_user: User | None) -> AsyncIterator[AsyncClient]:
	"""Point the app at the fake session (and optionally a fixed user); Redis starts disabled."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	if current_user is not None:
		app.dependency_overrides[get_current_user] = lambda: current_user
	app.state.redis = None
	try:
		async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
			yield test_client
	finally:
		app.state.redis = None
		app.dependency_overrides.clear()


@pytest.fixture
def grower(user_id: uuid.UUID) -> User:
	return User(id=user_id, email="grower@test.local", name="Grower", hashed_password="x", is_active=True)


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession, grower: User) -> AsyncGenerator[AsyncClient, None]:
	async with _serve(fake_db_session, grower) as test_client:
		yield test_client


@pytest.fixture
async def auth_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""Real bearer-token resolution against the fake session."""
	async with _serve(fake_db_session, None) as test_client:
		yield test_client


@pytest.fixture
def access_token(user_id: uuid.UUID) -> str:
	return create_access_token(user_id, expires_minutes=30)


@pytest.fixture
def now_utc() -> datetime:
	return datetime.now(UTC)
