"""Collect pipeline: one fetch, reduce, persist and publish cycle."""

import logging
import sqlite3
import time
import uuid
from datetime import datetime

from thermhub.auth.token_manager import TokenManager
from thermhub.config.schema import ThermHubConfig, TokenPolicy
from thermhub.errors import PersistError, ThermHubError
from thermhub.ingest.ecobee_client import EcobeeClient
from thermhub.ingest.retry import RetryPolicy
from thermhub.ingest.sensor_fetcher import SensorFetcher
from thermhub.ingest.weather_client import WeatherClient
from thermhub.ingest.weather_fetcher import WeatherFetcher
from thermhub.models.common import utc_now
from thermhub.models.reading import WEATHER_STATION_NAME, Reading
from thermhub.models.reporting import CycleSummary
from thermhub.models.snapshot import SnapshotField
from thermhub.models.weather import HourlyCondition
from thermhub.reducers.weather import most_applicable
from thermhub.snapshot.store import SnapshotStore
from thermhub.storage import reading_repo
from thermhub.storage.database import connect, run_migrations

logger = logging.getLogger(__name__)


class CollectPipeline:
    def __init__(
        self,
        store: SnapshotStore,
        weather: WeatherFetcher,
        ecobee: EcobeeClient,
        db_path: str = "data/thermhub.db",
        token_policy: TokenPolicy = TokenPolicy.EXPIRY,
    ):
        self.store = store
        self.weather = weather
        self.ecobee = ecobee
        self.sensors = SensorFetcher(ecobee)
        self.db_path = db_path
        self.token_policy = token_policy

    @classmethod
    def from_config(cls, config: ThermHubConfig, store: SnapshotStore) -> "CollectPipeline":
        weather_client = WeatherClient(
            hourly_url=config.weather.hourly_url,
            daily_url=config.weather.daily_url,
            timeout=config.weather.timeout_seconds,
        )
        policy = RetryPolicy(
            attempts=config.weather.retry_attempts,
            delay_seconds=config.weather.retry_delay_seconds,
        )
        ecobee = EcobeeClient(
            client_id=config.ecobee.client_id,
            base_url=config.ecobee.base_url,
            scope=config.ecobee.scope,
            timeout=config.ecobee.timeout_seconds,
        )
        return cls(
            store=store,
            weather=WeatherFetcher(weather_client, policy),
            ecobee=ecobee,
            db_path=config.db_path,
            token_policy=config.ecobee.token_policy,
        )

    def run(self, now: datetime | None = None) -> CycleSummary:
        """Execute a full collect cycle.

        A failing source only degrades its own field; the cycle always
        reaches the publish step with whatever data it has. A pinned
        ``now`` is used for every step; otherwise the clock is read again
        before the token check, since forecast retries can take minutes.
        """
        start_time = time.monotonic()
        pinned = now is not None
        if now is None:
            now = utc_now()
        summary = CycleSummary(cycle_id=str(uuid.uuid4()))
        previous = self.store.current()
        updates: dict[SnapshotField, object] = {}
        new_readings: list[Reading] = []

        # 1. HOURLY FORECAST + weather station reading
        hourly = self.weather.fetch_hourly(now)
        hourly_conditions: tuple[HourlyCondition, ...]
        if hourly is not None:
            summary.hourly_ok = True
            hourly_conditions = hourly.conditions
            updates[SnapshotField.FORECAST_HOURLY] = hourly_conditions
        else:
            summary.errors.append("hourly forecast unavailable")
            hourly_conditions = previous.forecast_hourly

        station = weather_station_reading(hourly_conditions, now)
        if station is not None:
            new_readings.append(station)

        conn = self._open_db(summary)
        try:
            # 2-3. CREDENTIAL + SENSORS
            token_now = now if pinned else utc_now()
            sensor_readings = self._fetch_sensors(conn, summary, token_now)
            if sensor_readings is not None:
                summary.sensors_ok = True
                new_readings.extend(sensor_readings)
                carried: list[Reading] = []
            else:
                carried = [
                    r for r in previous.thermostats if r.name != WEATHER_STATION_NAME
                ]

            # 4. PERSIST
            summary.readings_produced = len(new_readings)
            if conn is not None:
                self._persist(conn, new_readings, summary)
            else:
                summary.readings_dropped = len(new_readings)
        finally:
            if conn is not None:
                conn.close()

        # 5. DAILY FORECAST
        daily = self.weather.fetch_daily()
        if daily is not None:
            summary.daily_ok = True
            updates[SnapshotField.FORECAST_DAILY] = daily.conditions
        else:
            summary.errors.append("daily forecast unavailable")

        # 6. PUBLISH
        updates[SnapshotField.THERMOSTATS] = new_readings + carried
        self.store.publish_many(updates)

        summary.duration_seconds = time.monotonic() - start_time
        logger.info(
            "Cycle %s done in %.1fs: hourly=%s daily=%s sensors=%s readings=%d persisted=%d",
            summary.cycle_id, summary.duration_seconds, summary.hourly_ok,
            summary.daily_ok, summary.sensors_ok, summary.readings_produced,
            summary.readings_persisted,
        )
        return summary

    def _open_db(self, summary: CycleSummary) -> sqlite3.Connection | None:
        try:
            conn = connect(self.db_path)
            run_migrations(conn)
            return conn
        except (PersistError, sqlite3.Error) as e:
            logger.error("Database unavailable this cycle: %s", e)
            summary.errors.append(f"database unavailable: {e}")
            return None

    def _fetch_sensors(
        self, conn: sqlite3.Connection | None, summary: CycleSummary, now: datetime
    ) -> list[Reading] | None:
        if conn is None:
            summary.errors.append("sensors skipped: no token store")
            return None

        token = TokenManager(conn, self.ecobee, self.token_policy).current_token(now)
        if token is None:
            summary.errors.append("sensors skipped: no usable ecobee token")
            return None
        summary.token_available = True

        try:
            return self.sensors.fetch(token)
        except ThermHubError as e:
            logger.warning("Sensor fetch failed: %s", e)
            summary.errors.append(f"sensor fetch failed: {e}")
            return None

    def _persist(
        self, conn: sqlite3.Connection, readings: list[Reading], summary: CycleSummary
    ) -> None:
        for reading in readings:
            try:
                reading_repo.insert_reading(conn, reading)
                summary.readings_persisted += 1
            except PersistError as e:
                logger.error("Dropping reading %s from storage: %s", reading.name, e)
                summary.readings_dropped += 1


def weather_station_reading(
    conditions: tuple[HourlyCondition, ...], now: datetime
) -> Reading | None:
    """Turn the hourly condition closest to now into a synthetic reading."""
    condition = most_applicable(conditions, now)
    if condition is None:
        return None
    return Reading(
        name=WEATHER_STATION_NAME,
        time=condition.time,
        temperature=condition.temperature,
    )
