"""Thermostat and hygrostat reading model."""

from dataclasses import dataclass
from datetime import datetime

TEMPERATURE_UNSET = -10000
WEATHER_STATION_NAME = "weather.gov"


@dataclass(frozen=True)
class Reading:
    name: str
    time: datetime
    temperature: int  # tenths of a degree
    relative_humidity: int = 0  # tenths of a percent
    is_hygrostat: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "time": self.time.isoformat(),
            "is_hygrostat": self.is_hygrostat,
            "temperature": self.temperature,
            "relative_humidity": self.relative_humidity,
        }
