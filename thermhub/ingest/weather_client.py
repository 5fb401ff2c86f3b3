"""weather.gov forecast API client."""

import logging

import httpx

from thermhub.errors import DecodeError, TransportError
from thermhub.models.common import USER_AGENT

logger = logging.getLogger(__name__)


class WeatherClient:
    """Fetches raw hourly and daily forecast documents.

    Makes exactly one request per call; retrying is the caller's job.
    """

    def __init__(
        self,
        hourly_url: str,
        daily_url: str,
        user_agent: str = USER_AGENT,
        timeout: float = 30.0,
    ):
        self.hourly_url = hourly_url
        self.daily_url = daily_url
        self.user_agent = user_agent
        self.timeout = timeout

    def get_hourly(self) -> dict:
        return self._get(self.hourly_url)

    def get_daily(self) -> dict:
        return self._get(self.daily_url)

    def _get(self, url: str) -> dict:
        headers = {"User-Agent": self.user_agent, "Accept": "application/geo+json"}
        logger.info("Requesting forecast %s", url)
        try:
            resp = httpx.get(url, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"weather.gov returned {e.response.status_code}",
                status_code=e.response.status_code,
                endpoint=url,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"weather.gov request failed: {e}", endpoint=url) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(f"weather.gov returned invalid JSON from {url}") from e
        if not isinstance(data, dict):
            raise DecodeError(f"weather.gov returned a non-object document from {url}")
        return data
