from __future__ import annotations

import uuid
from datetime import date, timedelta
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.config import Settings
from app.models.enums import (
    GenerationTierEnum,
    IrrigationMethodEnum,
    NotificationTypeEnum,
    ScheduleStatusEnum,
)
from app.models.irrigation import IrrigationLog, IrrigationSchedule
from app.services.advisor_service import AIWaterProfile
from app.services.irrigation_service import IrrigationService, ScheduleGenerationInProgress
from app.services.outcome import Available, Unavailable

FIELD_ID = uuid.UUID("44444444-4444-4444-4444-444444444444")
START = date(2026, 6, 1)


def _owner_result(user_id: uuid.UUID, name: str = "North Field") -> MagicMock:
    result = MagicMock()
    result.one_or_none.return_value = (user_id, name)
    return result


def _collaborators(
    *,
    forecast: list[dict[str, Any]] | Exception,
    advice: Any = Unavailable("no_credential"),
    cached: Any = Unavailable("miss"),
) -> SimpleNamespace:
    fetch = AsyncMock(side_effect=forecast) if isinstance(forecast, Exception) else AsyncMock(return_value=forecast)
    return SimpleNamespace(
        weather=SimpleNamespace(fetch_forecast=fetch, get_cached_weather=AsyncMock(return_value=cached)),
        advisor=SimpleNamespace(get_water_profile=AsyncMock(return_value=advice)),
        notifier=SimpleNamespace(emit=AsyncMock(return_value=None)),
    )


def _service(db: Any, settings: Settings, parts: SimpleNamespace, redis: Any = None) -> IrrigationService:
    return IrrigationService(
        db,
        redis,
        settings=settings,
        weather=parts.weather,  # type: ignore[arg-type]
        advisor=parts.advisor,  # type: ignore[arg-type]
        notifier=parts.notifier,  # type: ignore[arg-type]
    )


async def _generate(service: IrrigationService, crop: str = "tomato", soil: str = "sandy") -> Any:
    return await service.generate_schedule(FIELD_ID, crop, soil, 39.93, 32.85, today=START)


@pytest.mark.asyncio
async def test_ai_tier_persists_and_notifies(
    fake_db_session: Any, settings: Settings, user_id: uuid.UUID, day_items: Any
) -> None:
    parts = _collaborators(forecast=day_items(START, temp=35, humidity=60))
    fake_db_session.execute.return_value = _owner_result(user_id)

    run = await _generate(_service(fake_db_session, settings, parts))

    assert run.tier is GenerationTierEnum.ai_assisted
    assert len(run.entries) == 7
    assert run.entries[0].water_amount == 15.2
    rows = [obj for obj in fake_db_session.added if isinstance(obj, IrrigationSchedule)]
    assert [row.date for row in rows] == [entry.date for entry in run.entries]
    assert all(row.status is ScheduleStatusEnum.pending for row in rows)

    advisor_kwargs = parts.advisor.get_water_profile.await_args.kwargs
    assert advisor_kwargs["month"] == 6
    assert advisor_kwargs["summary"].avg_temp == pytest.approx(35.0)

    reminders = parts.notifier.emit.await_args_list
    assert len(reminders) == 3
    assert {call.args[1] for call in reminders} == {NotificationTypeEnum.irrigation}
    assert reminders[0].args[0] == user_id
    assert reminders[0].args[2] == "Irrigation time - North Field"
    assert reminders[0].args[4] == START


@pytest.mark.asyncio
async def test_ai_tier_uses_advice(fake_db_session: Any, settings: Settings, user_id: uuid.UUID) -> None:
    advice = Available(AIWaterProfile(water_min=2.0, water_max=4.0, interval_days=7, recommended_time_range="05:30-07:30"))
    parts = _collaborators(forecast=[], advice=advice)
    fake_db_session.execute.return_value = _owner_result(user_id)

    run = await _generate(_service(fake_db_session, settings, parts))

    assert run.tier is GenerationTierEnum.ai_assisted
    assert [entry.date.day for entry in run.entries] == [1, 8]
    assert {entry.recommended_time for entry in run.entries} == {"05:30-07:30"}


@pytest.mark.asyncio
async def test_rain_skip_emits_weather_warning(
    fake_db_session: Any, settings: Settings, user_id: uuid.UUID, day_items: Any
) -> None:
    parts = _collaborators(forecast=day_items(START, temp=22, humidity=70, rain_3h=2.5))
    fake_db_session.execute.return_value = _owner_result(user_id)

    run = await _generate(_service(fake_db_session, settings, parts))

    assert run.entries[0].water_amount == 0.0
    categories = [call.args[1] for call in parts.notifier.emit.await_args_list]
    # Reminders for the two watered entries among the first three, then the warning.
    assert categories == [
        NotificationTypeEnum.irrigation,
        NotificationTypeEnum.irrigation,
        NotificationTypeEnum.weather_warning,
    ]
    warning = parts.notifier.emit.await_args_list[-1]
    assert warning.args[2] == "Rain warning - North Field"
    assert warning.args[4] == START


@pytest.mark.asyncio
async def test_provider_failure_falls_back_to_cached_forecast(
    fake_db_session: Any, settings: Settings, day_items: Any
) -> None:
    cached = Available(SimpleNamespace(forecast=day_items(START, temp=20, humidity=50) * 5))
    parts = _collaborators(forecast=httpx.ConnectError("provider down"), cached=cached)

    run = await _generate(_service(fake_db_session, settings, parts), crop="wheat", soil="loam")

    assert run.tier is GenerationTierEnum.fallback
    assert len(run.entries) == 7
    assert {entry.water_amount for entry in run.entries} == {4.0}
    assert len(fake_db_session.added) == 7
    parts.weather.get_cached_weather.assert_awaited_once_with("39.93,32.85")
    parts.notifier.emit.assert_not_awaited()
    parts.advisor.get_water_profile.assert_not_awaited()


@pytest.mark.asyncio
async def test_fallback_without_cache_uses_default_weather(fake_db_session: Any, settings: Settings) -> None:
    parts = _collaborators(forecast=ValueError("malformed forecast sample"), cached=Unavailable("stale"))

    run = await _generate(_service(fake_db_session, settings, parts), crop="wheat", soil="loam")

    assert run.tier is GenerationTierEnum.fallback
    assert {entry.weather_condition for entry in run.entries} == {"unknown"}


@pytest.mark.asyncio
async def test_failed_ai_write_leaves_no_partial_rows(
    fake_db_session: Any, settings: Settings, day_items: Any
) -> None:
    parts = _collaborators(forecast=day_items(START))
    fake_db_session.flush = AsyncMock(side_effect=[RuntimeError("connection reset"), None])

    run = await _generate(_service(fake_db_session, settings, parts))

    assert run.tier is GenerationTierEnum.fallback
    assert fake_db_session.savepoint_rollbacks == 1
    assert len(fake_db_session.added) == 7
    assert [row.date for row in fake_db_session.added] == [entry.date for entry in run.entries]


@pytest.mark.asyncio
async def test_both_tiers_failing_yields_empty(fake_db_session: Any, settings: Settings) -> None:
    parts = _collaborators(forecast=httpx.ReadTimeout("slow"))
    fake_db_session.flush = AsyncMock(side_effect=RuntimeError("database unavailable"))

    run = await _generate(_service(fake_db_session, settings, parts))

    assert run.tier is GenerationTierEnum.empty
    assert run.entries == []
    assert fake_db_session.added == []


@pytest.mark.asyncio
async def test_regenerate_requires_coordinates(fake_db_session: Any, settings: Settings) -> None:
    parts = _collaborators(forecast=[])
    field_obj = SimpleNamespace(id=FIELD_ID, crop_type="tomato", soil_type="loam", latitude=None, longitude=None, has_coordinates=False)

    with pytest.raises(ValueError):
        await _service(fake_db_session, settings, parts).regenerate(field_obj)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_regenerate_rejects_concurrent_run(fake_db_session: Any, settings: Settings, fake_redis: Any) -> None:
    parts = _collaborators(forecast=[])
    fake_redis.store[f"field:{FIELD_ID}:schedule:lock"] = "other-worker"
    field_obj = SimpleNamespace(id=FIELD_ID, crop_type="tomato", soil_type="loam", latitude=1.0, longitude=2.0, has_coordinates=True)

    with pytest.raises(ScheduleGenerationInProgress):
        await _service(fake_db_session, settings, parts, fake_redis).regenerate(field_obj)  # type: ignore[arg-type]

    fake_db_session.execute.assert_not_awaited()
    assert fake_redis.store[f"field:{FIELD_ID}:schedule:lock"] == "other-worker"


@pytest.mark.asyncio
async def test_regenerate_replaces_pending_and_releases_lock(
    fake_db_session: Any, settings: Settings, fake_redis: Any, user_id: uuid.UUID
) -> None:
    parts = _collaborators(forecast=[])
    fake_db_session.execute.return_value = _owner_result(user_id)
    field_obj = SimpleNamespace(id=FIELD_ID, crop_type="wheat", soil_type="loam", latitude=1.0, longitude=2.0, has_coordinates=True)

    run = await _service(fake_db_session, settings, parts, fake_redis).regenerate(field_obj, today=START)  # type: ignore[arg-type]

    assert run.tier is GenerationTierEnum.ai_assisted
    delete_stmt = fake_db_session.execute.await_args_list[0].args[0]
    assert "DELETE FROM irrigation_schedules" in str(delete_stmt)
    assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_complete_schedule_writes_log_and_notification(
    fake_db_session: Any, settings: Settings, user_id: uuid.UUID
) -> None:
    parts = _collaborators(forecast=[])
    schedule = IrrigationSchedule(
        id=uuid.uuid4(),
        field_id=FIELD_ID,
        date=START,
        recommended_time="06:00-08:00",
        water_amount=6.5,
        status=ScheduleStatusEnum.pending,
    )
    field_obj = SimpleNamespace(id=FIELD_ID, user_id=user_id, name="North Field")
    result = MagicMock()
    result.one_or_none.return_value = (schedule, field_obj)
    fake_db_session.execute.return_value = result

    updated, field_name = await _service(fake_db_session, settings, parts).update_status(
        user_id, schedule.id, ScheduleStatusEnum.completed, actual_water_used=5.0
    )

    assert field_name == "North Field"
    assert updated.status is ScheduleStatusEnum.completed
    assert updated.completed_at is not None
    assert updated.actual_water_used == 5.0
    logs = [obj for obj in fake_db_session.added if isinstance(obj, IrrigationLog)]
    assert len(logs) == 1
    assert logs[0].method is IrrigationMethodEnum.scheduled
    assert logs[0].water_used == 5.0
    assert logs[0].scheduled_date == START
    category = parts.notifier.emit.await_args.args[1]
    assert category is NotificationTypeEnum.irrigation_completed


@pytest.mark.asyncio
async def test_update_status_of_foreign_schedule_is_forbidden(fake_db_session: Any, settings: Settings) -> None:
    parts = _collaborators(forecast=[])
    result = MagicMock()
    result.one_or_none.return_value = (
        SimpleNamespace(field_id=FIELD_ID),
        SimpleNamespace(user_id=uuid.uuid4(), name="Someone else's"),
    )
    fake_db_session.execute.return_value = result

    with pytest.raises(PermissionError):
        await _service(fake_db_session, settings, parts).update_status(
            uuid.uuid4(), uuid.uuid4(), ScheduleStatusEnum.skipped
        )


@pytest.mark.asyncio
@pytest.mark.parametrize(("today", "expected"), [(date(2026, 4, 6), 3.9), (date(2026, 1, 10), 3.1)])
async def test_wheat_on_loam_without_advice(
    fake_db_session: Any,
    settings: Settings,
    user_id: uuid.UUID,
    day_items: Any,
    today: date,
    expected: float,
) -> None:
    forecast = [item for offset in range(14) for item in day_items(today + timedelta(days=offset))]
    parts = _collaborators(forecast=forecast)
    fake_db_session.execute.return_value = _owner_result(user_id)

    run = await _service(fake_db_session, settings, parts).generate_schedule(
        FIELD_ID, "wheat", "loam", 39.93, 32.85, today=today
    )

    # 4 L/m² × temp 1.0 × humidity (1 - 5/150) × soil 1.0 × season (1.0 in April, 0.8 in January)
    assert run.tier is GenerationTierEnum.ai_assisted
    assert [entry.date for entry in run.entries] == [today + timedelta(days=offset) for offset in (0, 4, 8, 12)]
    assert {entry.water_amount for entry in run.entries} == {expected}
    assert {entry.weather_humidity for entry in run.entries} == {50.0}
    assert all(entry.note is None for entry in run.entries)
