"""Published snapshot model and its partial-update constructor."""

import dataclasses
import json
from dataclasses import dataclass
from enum import StrEnum

from thermhub.models.reading import Reading
from thermhub.models.weather import DailyCondition, HourlyCondition


class SnapshotField(StrEnum):
    THERMOSTATS = "thermostats"
    FORECAST_DAILY = "forecast_daily"
    FORECAST_HOURLY = "forecast_hourly"


@dataclass(frozen=True)
class Snapshot:
    thermostats: tuple[Reading, ...] = ()
    forecast_daily: tuple[DailyCondition, ...] = ()
    forecast_hourly: tuple[HourlyCondition, ...] = ()

    def to_dict(self) -> dict:
        return {
            "forecast_daily": [c.to_dict() for c in self.forecast_daily],
            "forecast_hourly": [c.to_dict() for c in self.forecast_hourly],
            "thermostats": [r.to_dict() for r in self.thermostats],
        }

    def render(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode()


def with_field(base: Snapshot, field: SnapshotField, value) -> Snapshot:
    """Return a new Snapshot with one field replaced and the others copied forward."""
    return dataclasses.replace(base, **{SnapshotField(field).value: tuple(value)})
