"""Weather fetcher: retrieves and reduces hourly and daily forecasts."""

import logging
from datetime import datetime

from thermhub.errors import DecodeError, TransportError
from thermhub.ingest.retry import RetryPolicy
from thermhub.ingest.weather_client import WeatherClient
from thermhub.models.common import utc_now
from thermhub.models.weather import DailyCondition, Forecast, HourlyCondition
from thermhub.reducers.weather import extract_periods, reduce_daily, reduce_hourly

logger = logging.getLogger(__name__)


class WeatherFetcher:
    def __init__(self, client: WeatherClient, retry_policy: RetryPolicy | None = None):
        self.client = client
        self.retry_policy = retry_policy or RetryPolicy()

    def fetch_hourly(self, now: datetime | None = None) -> Forecast[HourlyCondition] | None:
        """Fetch the hourly forecast. Returns None once retries are exhausted."""
        if now is None:
            now = utc_now()
        try:
            periods = self.retry_policy.call(
                lambda: extract_periods(self.client.get_hourly()),
                label="hourly forecast",
            )
        except (TransportError, DecodeError):
            logger.warning("Hourly forecast unavailable this cycle")
            return None
        forecast = reduce_hourly(periods, now)
        logger.info("Fetched %d hourly conditions", len(forecast.conditions))
        return forecast

    def fetch_daily(self) -> Forecast[DailyCondition] | None:
        """Fetch the daily forecast. Returns None once retries are exhausted."""
        try:
            periods = self.retry_policy.call(
                lambda: extract_periods(self.client.get_daily()),
                label="daily forecast",
            )
        except (TransportError, DecodeError):
            logger.warning("Daily forecast unavailable this cycle")
            return None
        forecast = reduce_daily(periods)
        logger.info("Fetched %d daily conditions", len(forecast.conditions))
        return forecast
