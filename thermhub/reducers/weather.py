"""Weather reducer: weather.gov periods into hourly and daily conditions."""

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, date, datetime

from thermhub.errors import DecodeError
from thermhub.models.common import as_utc
from thermhub.models.weather import (
    DailyCondition,
    Forecast,
    HourlyCondition,
    WeatherPeriod,
)

logger = logging.getLogger(__name__)

NIGHT_START_HOUR = 12


def extract_periods(payload: dict) -> list[WeatherPeriod]:
    """Extract the ordered forecast periods from a weather.gov response.

    Raises DecodeError when the payload is not a forecast document.
    """
    try:
        raw_periods = payload["properties"]["periods"]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"forecast payload has no properties.periods: {e}") from e
    if not isinstance(raw_periods, list):
        raise DecodeError("forecast properties.periods is not a list")

    return [_extract_period(i, p) for i, p in enumerate(raw_periods)]


def _extract_period(index: int, raw: dict) -> WeatherPeriod:
    try:
        start_time = as_utc(datetime.fromisoformat(raw["startTime"]))
        temperature = raw["temperature"]
        # Newer weather.gov responses wrap values as {"unitCode": ..., "value": ...}
        if isinstance(temperature, dict):
            temperature = temperature["value"]
        description = raw.get("shortForecast") or raw.get("detailedForecast") or ""
        return WeatherPeriod(
            start_time=start_time,
            temperature=float(temperature),
            description=str(description),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"forecast period {index} is malformed: {e}") from e


def scale_temperature(value: float) -> int:
    """Keep one decimal digit as an integer count of tenths."""
    return int(round(value * 10))


def reduce_hourly(
    periods: Sequence[WeatherPeriod], now: datetime
) -> Forecast[HourlyCondition]:
    """Map each period to one HourlyCondition. Always considered freshly fetched."""
    conditions = tuple(
        HourlyCondition(
            time=p.start_time,
            condition=p.description,
            temperature=scale_temperature(p.temperature),
        )
        for p in periods
    )
    return Forecast(stale_time=now, conditions=conditions)


def reduce_daily(periods: Sequence[WeatherPeriod]) -> Forecast[DailyCondition]:
    """Group periods by UTC calendar date into day and night halves.

    A period starting before noon sets the day temperature, any later one
    sets the night temperature; the last period seen for a half wins. The
    description is taken from the first period seen for the date.
    """
    by_date: dict[date, DailyCondition] = {}
    stale_time: datetime | None = None

    for p in periods:
        start = as_utc(p.start_time)
        if stale_time is None or start > stale_time:
            stale_time = start

        key = start.date()
        current = by_date.get(key)
        if current is None:
            current = DailyCondition(date=key, condition=p.description)

        temperature = scale_temperature(p.temperature)
        if start.hour < NIGHT_START_HOUR:
            by_date[key] = replace(current, day_temperature=temperature)
        else:
            by_date[key] = replace(current, night_temperature=temperature)

    if stale_time is None:
        logger.warning("Daily forecast contained no periods")
        stale_time = datetime.min.replace(tzinfo=UTC)

    conditions = tuple(by_date[d] for d in sorted(by_date))
    return Forecast(stale_time=stale_time, conditions=conditions)


def most_applicable(
    conditions: Sequence[HourlyCondition], now: datetime
) -> HourlyCondition | None:
    """Return the condition closest in time to now; first seen wins ties."""
    best: HourlyCondition | None = None
    best_distance: float | None = None
    for condition in conditions:
        distance = abs((as_utc(condition.time) - now).total_seconds())
        if best_distance is None or distance < best_distance:
            best = condition
            best_distance = distance
    return best
