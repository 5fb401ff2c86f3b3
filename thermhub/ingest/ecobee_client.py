"""ecobee cloud API client: PIN authorization, token grants and sensor reads."""

import json
import logging

import httpx

from thermhub.errors import CredentialError, DecodeError, TransportError
from thermhub.models.common import USER_AGENT
from thermhub.models.token import GrantKind, PinResponse, TokenResponse

logger = logging.getLogger(__name__)

THERMOSTAT_SELECTION = {
    "selection": {
        "selectionType": "registered",
        "selectionMatch": "",
        "includeRuntime": "true",
        "includeSensors": "true",
    }
}


class EcobeeClient:
    """Thin wrapper around the ecobee REST API.

    No call is retried here: a single failure is raised to the caller,
    which decides how to degrade.
    """

    def __init__(
        self,
        client_id: str,
        base_url: str = "https://api.ecobee.com",
        scope: str = "smartRead",
        user_agent: str = USER_AGENT,
        timeout: float = 30.0,
    ):
        self.client_id = client_id
        self.base_url = base_url.rstrip("/")
        self.scope = scope
        self.user_agent = user_agent
        self.timeout = timeout

    def authorize(self) -> PinResponse:
        """Start device pairing: returns the PIN to enter and the code to exchange."""
        data = self._request(
            "GET",
            "/authorize",
            params={
                "response_type": "ecobeePin",
                "client_id": self.client_id,
                "scope": self.scope,
            },
        )
        try:
            return PinResponse(ecobee_pin=str(data["ecobeePin"]), code=str(data["code"]))
        except KeyError as e:
            raise DecodeError(f"authorize response missing {e}") from e

    def request_token(self, code: str, grant: GrantKind) -> TokenResponse:
        """Exchange a pairing code or refresh token for a fresh token."""
        data = self._request(
            "POST",
            "/token",
            params={
                "grant_type": grant.value,
                "code": code,
                "client_id": self.client_id,
            },
            rejected_as_credential=True,
        )
        try:
            return TokenResponse(
                access_token=str(data["access_token"]),
                refresh_token=str(data["refresh_token"]),
                expires_in=int(data["expires_in"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"token response is malformed: {e}") from e

    def read_thermostats(self, access_token: str) -> dict:
        """Fetch registered thermostats including their remote sensors."""
        return self._request(
            "GET",
            "/1/thermostat",
            params={"json": json.dumps(THERMOSTAT_SELECTION, separators=(",", ":"))},
            headers={"Authorization": f"Bearer {access_token}"},
            rejected_as_credential=True,
        )

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        headers: dict | None = None,
        rejected_as_credential: bool = False,
    ) -> dict:
        url = f"{self.base_url}{endpoint}"
        all_headers = {
            "User-Agent": self.user_agent,
            "Content-Type": "application/json",
            **(headers or {}),
        }
        try:
            resp = httpx.request(
                method, url, params=params, headers=all_headers, timeout=self.timeout
            )
        except httpx.RequestError as e:
            raise TransportError(f"ecobee request failed: {e}", endpoint=endpoint) from e

        if resp.status_code >= 400:
            logger.error("ecobee %d: %s %s -> %s", resp.status_code, method, endpoint, resp.text)
            if rejected_as_credential and resp.status_code in (400, 401, 403):
                raise CredentialError(
                    f"ecobee rejected credentials on {endpoint} ({resp.status_code})"
                )
            raise TransportError(
                f"ecobee returned {resp.status_code}",
                status_code=resp.status_code,
                endpoint=endpoint,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(f"ecobee returned invalid JSON from {endpoint}") from e
        if not isinstance(data, dict):
            raise DecodeError(f"ecobee returned a non-object document from {endpoint}")
        return data
