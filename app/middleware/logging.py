"""structlog setup and the per-request access log.

Each request gets an ``x-request-id`` (echoed back on the response) and,
when the path targets a field, a ``field_id`` bound into the structlog
context so every service log line of that request carries both.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.auth.dependencies import extract_request_field_id
from app.config import LogFormat, Settings, get_settings

_QUIET_PATHS = ("/health", "/docs", "/redoc", "/openapi")
_SECRET_KEYS = frozenset({"appid", "api_key", "x-api-key", "authorization", "password"})
_SECRET_QUERY = re.compile(r"(appid|api_key)=[^&\s'\"]+", re.IGNORECASE)

_configured = False


def _redact_credentials(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
	"""Mask provider keys that leak into log fields or error strings."""
	for key, value in event_dict.items():
		if key.lower() in _SECRET_KEYS:
			event_dict[key] = "***"
		elif isinstance(value, str) and "=" in value:
			event_dict[key] = _SECRET_QUERY.sub(r"\1=***", value)
	return event_dict


def configure_structured_logging(settings: Settings | None = None) -> None:
	global _configured
	if _configured:
		return

	settings = settings or get_settings()
	level = logging.getLevelName(settings.log_level.upper())
	if not isinstance(level, int):
		level = logging.INFO

	if settings.log_format == LogFormat.json:
		logging.basicConfig(level=level, format="%(message)s")
		renderer: Any = structlog.processors.JSONRenderer()
	else:
		logging.basicConfig(level=level)
		renderer = structlog.dev.ConsoleRenderer()

	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			_redact_credentials,
			structlog.processors.format_exc_info,
			renderer,
		],
		wrapper_class=structlog.make_filtering_bound_logger(level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request/field context and log one line per request."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
		request.state.request_id = request_id

		context: dict[str, str] = {"request_id": request_id}
		field_id = extract_request_field_id(request)
		if field_id is not None:
			context["field_id"] = str(field_id)
		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(**context)

		logger = structlog.get_logger("planner.request")
		started = time.perf_counter()
		try:
			response = await call_next(request)
		except Exception:
			logger.exception(
				"request_failed",
				method=request.method,
				path=request.url.path,
				elapsed_ms=round((time.perf_counter() - started) * 1000.0, 2),
			)
			raise

		response.headers["x-request-id"] = request_id
		if request.url.path.startswith(_QUIET_PATHS):
			return response

		extra: dict[str, Any] = {}
		tier = getattr(request.state, "schedule_tier", None)
		if tier is not None:
			extra["schedule_tier"] = tier
		logger.info(
			"request_completed",
			method=request.method,
			path=request.url.path,
			status_code=response.status_code,
			elapsed_ms=round((time.perf_counter() - started) * 1000.0, 2),
			**extra,
		)
		return response
