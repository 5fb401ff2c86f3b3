"""Weather forecast data models."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Generic, TypeVar

HALF_DAY_UNSET = -1000

T = TypeVar("T")


@dataclass(frozen=True)
class WeatherPeriod:
    """One raw forecast period as reported by weather.gov."""

    start_time: datetime
    temperature: float
    description: str


@dataclass(frozen=True)
class HourlyCondition:
    time: datetime
    condition: str
    temperature: int  # tenths of a degree

    def to_dict(self) -> dict:
        return {
            "date": self.time.isoformat(),
            "condition": self.condition,
            "temperature": self.temperature,
        }


@dataclass(frozen=True)
class DailyCondition:
    date: date
    condition: str
    day_temperature: int = HALF_DAY_UNSET
    night_temperature: int = HALF_DAY_UNSET

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "condition": self.condition,
            "day_temp": self.day_temperature,
            "night_temp": self.night_temperature,
        }


@dataclass(frozen=True)
class Forecast(Generic[T]):
    stale_time: datetime
    conditions: tuple[T, ...]
