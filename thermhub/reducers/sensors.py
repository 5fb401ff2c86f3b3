"""Sensor reducer: ecobee remote-sensor capabilities into one Reading per sensor."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from thermhub.errors import DecodeError, ParseError
from thermhub.models.reading import TEMPERATURE_UNSET, Reading

logger = logging.getLogger(__name__)

TEMPERATURE = "temperature"
HUMIDITY = "humidity"
UTC_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Capability:
    time: datetime
    sensor_name: str
    kind: str
    value: str


def extract_capabilities(payload: dict) -> list[Capability]:
    """Flatten a /1/thermostat response into ordered capability records.

    Every remote sensor capability is stamped with its thermostat's
    utcTime. Raises DecodeError when the document shape is wrong.
    """
    try:
        thermostats = payload["thermostatList"]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"thermostat payload has no thermostatList: {e}") from e

    capabilities: list[Capability] = []
    try:
        for thermostat in thermostats:
            batch_time = datetime.strptime(
                thermostat["utcTime"], UTC_TIME_FORMAT
            ).replace(tzinfo=UTC)
            for sensor in thermostat.get("remoteSensors", []):
                name = sensor["name"]
                for cap in sensor.get("capability", []):
                    capabilities.append(
                        Capability(
                            time=batch_time,
                            sensor_name=name,
                            kind=cap["type"],
                            value=str(cap["value"]),
                        )
                    )
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"thermostat payload is malformed: {e}") from e
    return capabilities


def parse_value(raw: str) -> int:
    """Parse a capability's decimal string value."""
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ParseError(f"not an integer: {raw!r}") from e


def reduce_readings(capabilities: Iterable[Capability]) -> list[Reading]:
    """Merge capabilities into exactly one Reading per distinct sensor name.

    The first usable capability for a name seeds the Reading; later ones
    only update the matching field. Unparsable values are skipped.
    """
    readings: dict[str, Reading] = {}

    for cap in capabilities:
        if cap.kind not in (TEMPERATURE, HUMIDITY):
            continue
        try:
            value = parse_value(cap.value)
        except ParseError as e:
            logger.warning(
                "Skipping %s capability for sensor %s: %s",
                cap.kind, cap.sensor_name, e,
            )
            continue

        is_humidity = cap.kind == HUMIDITY
        existing = readings.get(cap.sensor_name)
        if existing is None:
            readings[cap.sensor_name] = Reading(
                name=cap.sensor_name,
                time=cap.time,
                temperature=TEMPERATURE_UNSET if is_humidity else value,
                relative_humidity=value if is_humidity else 0,
                is_hygrostat=is_humidity,
            )
        elif is_humidity:
            readings[cap.sensor_name] = replace(
                existing, relative_humidity=value, is_hygrostat=True
            )
        else:
            readings[cap.sensor_name] = replace(existing, temperature=value)

    return list(readings.values())
