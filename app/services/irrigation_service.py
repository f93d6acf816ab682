"""Irrigation schedule generation, persistence and lifecycle.

Generation runs as a three-tier state machine:

    ai_assisted ──(any exception)──▶ fallback ──(any exception)──▶ empty

The AI-assisted tier fetches a live forecast, asks the advisor for a
refined profile, plans 14 days, writes the entries and notifies the field
owner.  The fallback tier plans 7 days from the weather cache only and
writes the entries silently.  ``empty`` means no schedule could be
produced; it is a result, not an error.  No tier keeps partial state: each
tier's writes happen inside one SAVEPOINT that is rolled back if the tier
fails.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import structlog
from redis.asyncio import Redis
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.models.enums import (
	GenerationTierEnum,
	IrrigationMethodEnum,
	NotificationTypeEnum,
	ScheduleStatusEnum,
)
from app.models.field import Field
from app.models.irrigation import IrrigationLog, IrrigationSchedule
from app.services.advisor_service import AdvisorService
from app.services.forecast import parse_forecast, summarize
from app.services.notification_service import NotificationService
from app.services.outcome import Available
from app.services.scheduling import (
	NoteKind,
	ScheduleEntry,
	plan_fallback_schedule,
	plan_primary_schedule,
)
from app.services.weather_service import WeatherService, location_key

logger = structlog.get_logger("planner.irrigation")

REMINDER_CANDIDATES = 3


class ScheduleGenerationInProgress(RuntimeError):
	"""Another generation for the same field holds the lock."""


@dataclass(frozen=True, slots=True)
class ScheduleRun:
	tier: GenerationTierEnum
	entries: list[ScheduleEntry] = field(default_factory=list)


class IrrigationService:
	def __init__(
		self,
		db: AsyncSession,
		redis_client: Redis | None = None,
		*,
		settings: Settings | None = None,
		weather: WeatherService | None = None,
		advisor: AdvisorService | None = None,
		notifier: NotificationService | None = None,
	):
		self.db = db
		self.redis_client = redis_client
		self.settings = settings or get_settings()
		self.weather = weather or WeatherService(db, self.settings)
		self.advisor = advisor or AdvisorService(self.settings)
		self.notifier = notifier or NotificationService(db)

	# ── Generation state machine ─────────────────────────────────────────

	async def generate_schedule(
		self,
		field_id: uuid.UUID,
		crop_type: str,
		soil_type: str,
		latitude: float,
		longitude: float,
		*,
		today: date | None = None,
	) -> ScheduleRun:
		start = today or datetime.now(UTC).date()
		log = logger.bind(field_id=str(field_id), crop_type=crop_type)

		try:
			entries = await self.create_ai_schedule(field_id, crop_type, soil_type, latitude, longitude, start)
			log.info("schedule_generated", tier=GenerationTierEnum.ai_assisted.value, entries=len(entries))
			return ScheduleRun(GenerationTierEnum.ai_assisted, entries)
		except Exception as exc:
			log.warning("schedule_tier_failed", tier=GenerationTierEnum.ai_assisted.value, error=str(exc))

		try:
			entries = await self.create_fallback_schedule(field_id, crop_type, soil_type, latitude, longitude, start)
			log.info("schedule_generated", tier=GenerationTierEnum.fallback.value, entries=len(entries))
			return ScheduleRun(GenerationTierEnum.fallback, entries)
		except Exception as exc:
			log.error("schedule_tier_failed", tier=GenerationTierEnum.fallback.value, error=str(exc))

		return ScheduleRun(GenerationTierEnum.empty, [])

	async def create_ai_schedule(
		self,
		field_id: uuid.UUID,
		crop_type: str,
		soil_type: str,
		latitude: float,
		longitude: float,
		start: date,
	) -> list[ScheduleEntry]:
		samples = parse_forecast(await self.weather.fetch_forecast(latitude, longitude))
		summary = summarize(samples)

		advice = await self.advisor.get_water_profile(
			crop_type=crop_type,
			soil_type=soil_type,
			latitude=latitude,
			longitude=longitude,
			month=start.month,
			summary=summary,
		)
		entries = plan_primary_schedule(
			field_id=field_id,
			crop_type=crop_type,
			soil_type=soil_type,
			samples=samples,
			start=start,
			advice=advice.value if isinstance(advice, Available) else None,
		)

		async with self.db.begin_nested():
			await self._persist(entries)
			await self._notify_owner(field_id, entries)
		return entries

	async def create_fallback_schedule(
		self,
		field_id: uuid.UUID,
		crop_type: str,
		soil_type: str,
		latitude: float,
		longitude: float,
		start: date,
	) -> list[ScheduleEntry]:
		cached = await self.weather.get_cached_weather(location_key(latitude, longitude))
		forecast_items = cached.value.forecast if isinstance(cached, Available) else []

		entries = plan_fallback_schedule(
			field_id=field_id,
			crop_type=crop_type,
			soil_type=soil_type,
			forecast_items=forecast_items or [],
			start=start,
		)
		async with self.db.begin_nested():
			await self._persist(entries)
		return entries

	async def _persist(self, entries: list[ScheduleEntry]) -> None:
		if not entries:
			return
		self.db.add_all([self._to_row(entry) for entry in entries])
		await self.db.flush()

	async def _notify_owner(self, field_id: uuid.UUID, entries: list[ScheduleEntry]) -> None:
		if not entries:
			return
		row = await self.db.execute(select(Field.user_id, Field.name).where(Field.id == field_id))
		owner = row.one_or_none()
		if owner is None:
			return
		user_id, field_name = owner

		for entry in entries[:REMINDER_CANDIDATES]:
			if entry.water_amount <= 0:
				continue
			await self.notifier.emit(
				user_id,
				NotificationTypeEnum.irrigation,
				f"Irrigation time - {field_name}",
				f"{entry.date:%b %d} {entry.recommended_time}: "
				f"{entry.water_amount} L/m² of water recommended.",
				entry.date,
			)

		heavy_rain = next((entry for entry in entries if entry.note_kind is NoteKind.rain_skip), None)
		if heavy_rain is not None:
			await self.notifier.emit(
				user_id,
				NotificationTypeEnum.weather_warning,
				f"Rain warning - {field_name}",
				f"Heavy rain expected on {heavy_rain.date:%A, %b %d}. Irrigation may not be needed.",
				heavy_rain.date,
			)

	@staticmethod
	def _to_row(entry: ScheduleEntry) -> IrrigationSchedule:
		return IrrigationSchedule(
			field_id=entry.field_id,
			date=entry.date,
			recommended_time=entry.recommended_time,
			water_amount=entry.water_amount,
			weather_temp=entry.weather_temp,
			weather_humidity=entry.weather_humidity,
			weather_condition=entry.weather_condition,
			note=entry.note,
			status=entry.status,
		)

	# ── Per-field guard & regeneration ───────────────────────────────────

	@asynccontextmanager
	async def generation_guard(self, field_id: uuid.UUID) -> AsyncIterator[None]:
		"""Hold ``field:{id}:schedule:lock`` for the duration of one generation."""
		if self.redis_client is None:
			yield
			return

		key = f"field:{field_id}:schedule:lock"
		token = uuid.uuid4().hex
		acquired = await self.redis_client.set(key, token, nx=True, ex=self.settings.schedule_lock_ttl_seconds)
		if not acquired:
			raise ScheduleGenerationInProgress(f"Schedule generation already running for field {field_id}")
		try:
			yield
		finally:
			if await self.redis_client.get(key) == token:
				await self.redis_client.delete(key)

	async def regenerate(self, field_obj: Field, *, today: date | None = None) -> ScheduleRun:
		"""Replace the field's pending entries with a freshly generated schedule."""
		if not field_obj.has_coordinates:
			raise ValueError("field location must be set before calculating a schedule")

		async with self.generation_guard(field_obj.id):
			await self.db.execute(
				delete(IrrigationSchedule).where(
					IrrigationSchedule.field_id == field_obj.id,
					IrrigationSchedule.status == ScheduleStatusEnum.pending,
				)
			)
			return await self.generate_schedule(
				field_obj.id,
				field_obj.crop_type,
				field_obj.soil_type,
				field_obj.latitude,  # type: ignore[arg-type]
				field_obj.longitude,  # type: ignore[arg-type]
				today=today,
			)

	# ── Lifecycle ─────────────────────────────────────────────────────────

	async def list_schedules(
		self,
		user_id: uuid.UUID,
		*,
		start_date: date | None = None,
		end_date: date | None = None,
		field_id: uuid.UUID | None = None,
		status: ScheduleStatusEnum | None = None,
	) -> list[tuple[IrrigationSchedule, str]]:
		stmt = (
			select(IrrigationSchedule, Field.name)
			.join(Field, Field.id == IrrigationSchedule.field_id)
			.where(Field.user_id == user_id)
		)
		if start_date is not None and end_date is not None:
			stmt = stmt.where(IrrigationSchedule.date >= start_date, IrrigationSchedule.date <= end_date)
		if field_id is not None:
			stmt = stmt.where(IrrigationSchedule.field_id == field_id)
		if status is not None:
			stmt = stmt.where(IrrigationSchedule.status == status)

		rows = await self.db.execute(stmt.order_by(IrrigationSchedule.date.asc()))
		return [(schedule, name) for schedule, name in rows.all()]

	async def update_status(
		self,
		user_id: uuid.UUID,
		schedule_id: uuid.UUID,
		status: ScheduleStatusEnum,
		*,
		actual_water_used: float | None = None,
		notes: str | None = None,
	) -> tuple[IrrigationSchedule, str]:
		row = await self.db.execute(
			select(IrrigationSchedule, Field)
			.join(Field, Field.id == IrrigationSchedule.field_id)
			.where(IrrigationSchedule.id == schedule_id)
		)
		found = row.one_or_none()
		if found is None:
			raise LookupError(f"Schedule {schedule_id} not found")
		schedule, field_obj = found
		if field_obj.user_id != user_id:
			raise PermissionError("schedule belongs to another user's field")

		schedule.status = status
		if status == ScheduleStatusEnum.completed:
			schedule.completed_at = datetime.now(UTC)
			if actual_water_used is not None:
				schedule.actual_water_used = actual_water_used
			if notes:
				schedule.notes = notes

			self.db.add(
				IrrigationLog(
					field_id=schedule.field_id,
					method=IrrigationMethodEnum.scheduled,
					scheduled_date=schedule.date,
					water_used=actual_water_used if actual_water_used is not None else schedule.water_amount,
					notes=notes or "Scheduled irrigation completed",
				)
			)
			await self.notifier.emit(
				user_id,
				NotificationTypeEnum.irrigation_completed,
				f"Irrigation completed - {field_obj.name}",
				f"{schedule.water_amount} L/m² irrigation completed.",
				datetime.now(UTC),
			)

		await self.db.flush()
		return schedule, field_obj.name

	async def create_log(
		self,
		user_id: uuid.UUID,
		field_id: uuid.UUID,
		*,
		water_used: float,
		method: IrrigationMethodEnum = IrrigationMethodEnum.manual,
		duration_minutes: int | None = None,
		notes: str | None = None,
	) -> IrrigationLog:
		row = await self.db.execute(select(Field).where(Field.id == field_id, Field.user_id == user_id))
		if row.scalar_one_or_none() is None:
			raise LookupError(f"Field {field_id} not found")

		log = IrrigationLog(
			field_id=field_id,
			method=method,
			water_used=water_used,
			duration_minutes=duration_minutes,
			notes=notes,
		)
		self.db.add(log)
		await self.db.flush()
		await self.db.refresh(log)
		return log
