"""WeatherCache ORM model — last fetched provider bundle per location.

``location`` is the ``"lat,lon"`` key built by
``app.services.weather_service.location_key``.  ``forecast`` keeps the raw
provider samples (5 days × 8 three-hour steps) so the fallback schedule
generator can read them without calling the provider again.  Freshness is
judged from ``updated_at``.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Float, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class WeatherCache(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Cached current conditions + forecast for one coordinate pair."""

    __tablename__ = "weather_cache"

    location: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    humidity: Mapped[float | None] = mapped_column(Float, nullable=True)
    condition: Mapped[str | None] = mapped_column(String(255), nullable=True)
    precipitation: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default="0"
    )
    forecast: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )

    def __repr__(self) -> str:
        return f"<WeatherCache location={self.location!r} updated={self.updated_at}>"
