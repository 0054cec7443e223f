"""Daily min/max temperature forecast with a synthetic fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from models.records import ForecastDay, ForecastSample

logger = logging.getLogger(__name__)

FORECAST_DAYS = 5
DEMO_BASE_TEMPERATURE = 22.0
DEMO_DAILY_RISE = 1.5
DEMO_HALF_BAND = 3.0


class _MainReading(BaseModel):
    temp_min: float
    temp_max: float


class _ForecastEntry(BaseModel):
    dt: int
    main: _MainReading


class ForecastResponse(BaseModel):
    """Subset of the 5-day/3-hour forecast payload the dashboard reads."""

    entries: List[_ForecastEntry] = Field(default_factory=list, alias="list")

    def samples(self) -> List[ForecastSample]:
        return [
            ForecastSample(
                timestamp=entry.dt,
                temp_min=entry.main.temp_min,
                temp_max=entry.main.temp_max,
            )
            for entry in self.entries
        ]


@dataclass(frozen=True)
class ForecastResult:
    days: List[ForecastDay]
    source: str  # "live" or "demo"


def day_label(day: date) -> str:
    return day.strftime("%d %b")


def aggregate_forecast(
    samples: Iterable[ForecastSample], tz: tzinfo, limit: int = FORECAST_DAYS
) -> List[ForecastDay]:
    """Bucket samples by calendar day and keep each day's extremes."""
    buckets: Dict[date, tuple[float, float]] = {}
    for sample in samples:
        day = datetime.fromtimestamp(sample.timestamp, tz).date()
        if day in buckets:
            low, high = buckets[day]
            buckets[day] = (min(low, sample.temp_min), max(high, sample.temp_max))
        else:
            buckets[day] = (sample.temp_min, sample.temp_max)

    return [
        ForecastDay(day=day, label=day_label(day), min=low, max=high)
        for day, (low, high) in sorted(buckets.items())[:limit]
    ]


def demo_forecast(today: date, days: int = FORECAST_DAYS) -> List[ForecastDay]:
    """Smooth rising baseline, +/- 3 degrees, starting today."""
    result: List[ForecastDay] = []
    for offset in range(days):
        day = today + timedelta(days=offset)
        base = DEMO_BASE_TEMPERATURE + offset * DEMO_DAILY_RISE
        result.append(
            ForecastDay(
                day=day,
                label=day_label(day),
                min=base - DEMO_HALF_BAND,
                max=base + DEMO_HALF_BAND,
            )
        )
    return result


class WeatherClient:
    """Thin async client for the forecast endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_samples(self, city: str) -> List[ForecastSample]:
        response = await self._client.get(
            "/forecast",
            params={"q": city, "appid": self._api_key, "units": "metric"},
        )
        response.raise_for_status()
        return ForecastResponse.model_validate(response.json()).samples()


class ForecastService:
    """Loads the forecast once, degrading to demo data on any failure."""

    def __init__(
        self,
        client: Optional[WeatherClient],
        city: str,
        tz: tzinfo,
        today: Optional[date] = None,
    ) -> None:
        self.client = client
        self.city = city
        self.tz = tz
        self._today = today

    def _demo(self) -> ForecastResult:
        today = self._today or datetime.now(self.tz).date()
        return ForecastResult(days=demo_forecast(today), source="demo")

    async def load(self) -> ForecastResult:
        if self.client is None:
            logger.warning(
                "No weather API key configured, using demo forecast",
                extra={"city": self.city, "source": "demo"},
            )
            return self._demo()

        try:
            samples = await self.client.fetch_samples(self.city)
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            logger.error(
                "Weather fetch failed, using demo forecast: %s",
                exc,
                extra={"city": self.city, "source": "demo"},
            )
            return self._demo()

        try:
            days = aggregate_forecast(samples, self.tz)
        except (ValueError, OverflowError, OSError) as exc:
            logger.error(
                "Weather response could not be bucketed, using demo forecast: %s",
                exc,
                extra={"city": self.city, "source": "demo"},
            )
            return self._demo()

        if not days:
            logger.error(
                "Weather response had no entries, using demo forecast",
                extra={"city": self.city, "source": "demo"},
            )
            return self._demo()

        logger.info(
            "Loaded %d forecast days", len(days), extra={"city": self.city, "source": "live"}
        )
        return ForecastResult(days=days, source="live")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
