"""Per-field request quotas kept in Redis.

Only ``/api/v1/fields/<uuid>...`` requests are counted.  Schedule
generation (which may call the AI advisor and the weather provider) has
its own, smaller budget.  Without a Redis connection nothing is limited.
"""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.auth.dependencies import extract_identity_hint, extract_request_field_id
from app.config import get_settings

logger = structlog.get_logger("planner.rate_limit")

_WINDOW_SECONDS = 60


def _is_generation(request: Request) -> bool:
	return request.method == "POST" and request.url.path.endswith("/calculate-irrigation-schedule")


class RateLimitMiddleware(BaseHTTPMiddleware):
	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		redis_client = getattr(request.app.state, "redis", None)
		field_id = extract_request_field_id(request)
		if redis_client is None or field_id is None:
			return await call_next(request)

		settings = get_settings()
		if _is_generation(request):
			bucket, quota = "generate", settings.rate_limit_schedule_per_minute
		else:
			bucket, quota = "field", settings.rate_limit_user_per_minute

		now = datetime.now(UTC)
		identity = extract_identity_hint(request)
		key = f"ratelimit:{bucket}:{field_id}:{identity}:{now:%Y%m%d%H%M}"
		count = await redis_client.incr(key)
		if count == 1:
			await redis_client.expire(key, _WINDOW_SECONDS + 5)

		if count <= quota:
			return await call_next(request)

		logger.warning("field_quota_exceeded", bucket=bucket, identity=identity, quota=quota)
		return JSONResponse(
			status_code=429,
			headers={"Retry-After": str(_WINDOW_SECONDS - now.second)},
			content={
				"detail": {
					"error": "rate_limited",
					"message": "Field quota exceeded",
					"field_id": str(field_id),
					"quota": quota,
				}
			},
		)
