"""Sensor fetcher: reads ecobee remote sensors into Readings."""

import logging

from thermhub.ingest.ecobee_client import EcobeeClient
from thermhub.models.reading import Reading
from thermhub.models.token import Token
from thermhub.reducers.sensors import extract_capabilities, reduce_readings

logger = logging.getLogger(__name__)


class SensorFetcher:
    def __init__(self, client: EcobeeClient):
        self.client = client

    def fetch(self, token: Token) -> list[Reading]:
        """Read and reduce sensors. Transport, decode and credential errors propagate."""
        payload = self.client.read_thermostats(token.access_token)
        readings = reduce_readings(extract_capabilities(payload))
        logger.info("Fetched %d sensor readings", len(readings))
        return readings
