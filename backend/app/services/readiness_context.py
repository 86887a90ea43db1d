"""Gather the readiness context bundle: metrics, weekly load, profile, weather."""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone

from app.config import settings
from app.schemas.readiness import ActivityLoadSample, ReadinessContext, WeatherBundle, WeatherSnapshot
from app.services.readiness_store import ReadinessRepository
from app.services.weather import WeatherProvider

logger = logging.getLogger(__name__)


def latest_geolocated_activity(activities: list[ActivityLoadSample]) -> ActivityLoadSample | None:
    located = [a for a in activities if a.has_coordinates]
    if not located:
        return None
    return max(located, key=lambda a: a.start)


async def _safe_weather(coro, what: str) -> WeatherSnapshot | None:
    try:
        return await coro
    except Exception as e:
        logger.warning("Weather %s lookup failed: %s", what, e)
        return None


async def gather_weather(weather: WeatherProvider, activities: list[ActivityLoadSample]) -> WeatherBundle:
    """Current and last-run conditions at the latest geolocated activity. Empty bundle when none."""
    anchor = latest_geolocated_activity(activities)
    if anchor is None:
        return WeatherBundle()
    current, last_run = await asyncio.gather(
        _safe_weather(weather.current_conditions(anchor.lat, anchor.lon), "current"),
        _safe_weather(weather.historical_conditions(anchor.lat, anchor.lon, anchor.start), "historical"),
    )
    return WeatherBundle(current=current, last_run=last_run)


async def gather_context(
    store: ReadinessRepository,
    weather: WeatherProvider,
    athlete_id: str,
    target_date: date,
    *,
    now: datetime | None = None,
) -> ReadinessContext:
    """
    Metrics are the latest N days up to target_date; activity load is the trailing
    week from wall-clock now, not from target_date.
    """
    now = now or datetime.now(timezone.utc)
    # One AsyncSession cannot run statements concurrently; DB reads go in sequence.
    metrics = await store.find_recent_metrics(athlete_id, target_date, settings.metrics_window_days)
    activities = await store.find_activity_load(athlete_id, now - timedelta(days=settings.load_window_days))
    profile = await store.find_profile(athlete_id)
    bundle = await gather_weather(weather, activities)
    logger.debug(
        "Context for %s on %s: %d metrics, %d activities, profile=%s, weather=%s",
        athlete_id,
        target_date,
        len(metrics),
        len(activities),
        profile is not None,
        bundle.current is not None or bundle.last_run is not None,
    )
    return ReadinessContext(
        athlete_id=athlete_id,
        target_date=target_date,
        profile=profile,
        metrics=metrics,
        activities=activities,
        weather=bundle,
    )
