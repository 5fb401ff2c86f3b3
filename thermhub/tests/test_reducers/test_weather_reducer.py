"""Tests for the weather reducer."""

import itertools
from datetime import UTC, date, datetime, timedelta

import pytest

from thermhub.errors import DecodeError
from thermhub.models.weather import HALF_DAY_UNSET, HourlyCondition, WeatherPeriod
from thermhub.reducers.weather import (
    extract_periods,
    most_applicable,
    reduce_daily,
    reduce_hourly,
    scale_temperature,
)


def _period(iso: str, temperature: float, description: str = "Sunny") -> WeatherPeriod:
    return WeatherPeriod(
        start_time=datetime.fromisoformat(iso),
        temperature=temperature,
        description=description,
    )


def _hourly(t: datetime, temperature: int = 700) -> HourlyCondition:
    return HourlyCondition(time=t, condition="Clear", temperature=temperature)


class TestExtractPeriods:
    def test_hourly_fixture_normalized_to_utc(self, hourly_payload: dict):
        periods = extract_periods(hourly_payload)
        assert len(periods) == 3
        assert periods[0].start_time == datetime(2026, 2, 11, 11, 0, tzinfo=UTC)
        assert periods[0].temperature == 31
        assert periods[2].description == "Partly Sunny"

    def test_falls_back_to_detailed_forecast(self):
        payload = {
            "properties": {
                "periods": [
                    {
                        "startTime": "2026-02-11T08:00:00+00:00",
                        "temperature": 40,
                        "detailedForecast": "Cloudy all day.",
                    }
                ]
            }
        }
        assert extract_periods(payload)[0].description == "Cloudy all day."

    def test_quantitative_temperature(self):
        payload = {
            "properties": {
                "periods": [
                    {
                        "startTime": "2026-02-11T08:00:00+00:00",
                        "temperature": {"unitCode": "wmoUnit:degF", "value": 40.5},
                        "shortForecast": "Fog",
                    }
                ]
            }
        }
        assert extract_periods(payload)[0].temperature == 40.5

    def test_missing_properties(self):
        with pytest.raises(DecodeError):
            extract_periods({"status": 503, "detail": "Unexpected Problem"})

    def test_periods_not_a_list(self):
        with pytest.raises(DecodeError):
            extract_periods({"properties": {"periods": "none"}})

    def test_bad_start_time(self):
        payload = {"properties": {"periods": [{"startTime": "soon", "temperature": 1}]}}
        with pytest.raises(DecodeError):
            extract_periods(payload)

    def test_missing_temperature(self):
        payload = {"properties": {"periods": [{"startTime": "2026-02-11T08:00:00+00:00"}]}}
        with pytest.raises(DecodeError):
            extract_periods(payload)


class TestScaleTemperature:
    def test_integer(self):
        assert scale_temperature(72) == 720

    def test_one_decimal(self):
        assert scale_temperature(40.5) == 405

    def test_negative(self):
        assert scale_temperature(-3.2) == -32


class TestReduceHourly:
    def test_one_to_one(self, hourly_payload: dict, now: datetime):
        forecast = reduce_hourly(extract_periods(hourly_payload), now)
        assert len(forecast.conditions) == 3
        assert [c.temperature for c in forecast.conditions] == [310, 320, 340]
        assert forecast.conditions[0].condition == "Mostly Cloudy"

    def test_stale_time_is_now(self, hourly_payload: dict, now: datetime):
        forecast = reduce_hourly(extract_periods(hourly_payload), now)
        assert forecast.stale_time == now

    def test_empty(self, now: datetime):
        assert reduce_hourly([], now).conditions == ()


class TestReduceDaily:
    def test_day_and_night_combine(self):
        forecast = reduce_daily([
            _period("2026-02-11T08:00:00+00:00", 38, "Partly Sunny"),
            _period("2026-02-11T20:00:00+00:00", 27, "Mostly Cloudy"),
        ])
        assert len(forecast.conditions) == 1
        condition = forecast.conditions[0]
        assert condition.date == date(2026, 2, 11)
        assert condition.day_temperature == 380
        assert condition.night_temperature == 270
        assert condition.condition == "Partly Sunny"

    def test_fixture(self, daily_payload: dict):
        forecast = reduce_daily(extract_periods(daily_payload))
        assert [c.date for c in forecast.conditions] == [
            date(2026, 2, 11), date(2026, 2, 12), date(2026, 2, 13),
        ]
        assert forecast.conditions[1].day_temperature == 410
        assert forecast.conditions[1].night_temperature == 300
        assert forecast.conditions[2].night_temperature == HALF_DAY_UNSET

    def test_stale_time_is_latest_period(self, daily_payload: dict):
        forecast = reduce_daily(extract_periods(daily_payload))
        assert forecast.stale_time == datetime(2026, 2, 13, 8, 0, tzinfo=UTC)

    def test_night_only_keeps_day_sentinel(self):
        forecast = reduce_daily([_period("2026-02-11T18:00:00+00:00", 30)])
        assert forecast.conditions[0].day_temperature == HALF_DAY_UNSET
        assert forecast.conditions[0].night_temperature == 300

    def test_last_writer_wins_within_half(self):
        forecast = reduce_daily([
            _period("2026-02-11T06:00:00+00:00", 30),
            _period("2026-02-11T09:00:00+00:00", 35),
        ])
        assert forecast.conditions[0].day_temperature == 350

    def test_noon_is_night(self):
        forecast = reduce_daily([_period("2026-02-11T12:00:00+00:00", 40)])
        assert forecast.conditions[0].night_temperature == 400
        assert forecast.conditions[0].day_temperature == HALF_DAY_UNSET

    def test_grouped_by_utc_date(self):
        # 20:00 at -05:00 is 01:00 UTC the next day
        forecast = reduce_daily([
            _period("2026-02-11T20:00:00-05:00", 25),
        ])
        assert forecast.conditions[0].date == date(2026, 2, 12)
        assert forecast.conditions[0].day_temperature == 250

    def test_at_most_one_condition_per_date(self):
        periods = [
            _period(f"2026-02-{day:02d}T{hour:02d}:00:00+00:00", 30 + hour)
            for day in (11, 12, 13)
            for hour in (3, 8, 14, 20, 23)
        ]
        forecast = reduce_daily(periods)
        dates = [c.date for c in forecast.conditions]
        assert len(dates) == len(set(dates)) == 3


class TestMostApplicable:
    def test_closest_past_entry(self, now: datetime):
        conditions = [
            _hourly(now - timedelta(seconds=100), 1),
            _hourly(now - timedelta(seconds=5), 2),
            _hourly(now + timedelta(seconds=50), 3),
        ]
        for ordering in itertools.permutations(conditions):
            assert most_applicable(list(ordering), now).temperature == 2

    def test_first_seen_wins_ties(self, now: datetime):
        before = _hourly(now - timedelta(seconds=30), 1)
        after = _hourly(now + timedelta(seconds=30), 2)
        assert most_applicable([before, after], now) is before
        assert most_applicable([after, before], now) is after

    def test_empty(self, now: datetime):
        assert most_applicable([], now) is None

    def test_single(self, now: datetime):
        only = _hourly(now + timedelta(days=2))
        assert most_applicable([only], now) is only
