"""ecobee credential lifecycle: load, expiry check, refresh, store-back, install."""

import logging
import sqlite3
from datetime import datetime

from thermhub.config.schema import TokenPolicy
from thermhub.errors import CredentialError, DecodeError, PersistError, TransportError
from thermhub.ingest.ecobee_client import EcobeeClient
from thermhub.models.common import utc_now
from thermhub.models.token import GrantKind, PinResponse, Token
from thermhub.storage import token_repo

logger = logging.getLogger(__name__)

GRANT_ERRORS = (TransportError, DecodeError, CredentialError)


class TokenManager:
    """Owns the single stored ecobee token.

    The stored token is in one of three states: absent, valid (expiry in
    the future) or expired. Only an expired token triggers a remote call.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        client: EcobeeClient,
        policy: TokenPolicy = TokenPolicy.EXPIRY,
    ):
        self.conn = conn
        self.client = client
        self.policy = policy

    def is_expired(self, token: Token, now: datetime | None = None) -> bool:
        if self.policy == TokenPolicy.ALWAYS_REFRESH:
            return True
        if now is None:
            now = utc_now()
        return token.expires <= now

    def current_token(self, now: datetime | None = None) -> Token | None:
        """Return a usable token, refreshing it if it has expired.

        Returns None when no token is stored or the refresh fails; a failed
        refresh leaves the stored token untouched.
        """
        try:
            stored = token_repo.get_token(self.conn)
        except PersistError:
            logger.exception("Could not load ecobee token")
            return None

        if stored is None:
            logger.info("No ecobee token stored; run the install flow first")
            return None

        if not self.is_expired(stored, now):
            return stored

        logger.info("ecobee token expired at %s, refreshing", stored.expires.isoformat())
        try:
            response = self.client.request_token(stored.refresh_token, GrantKind.REFRESH_TOKEN)
        except GRANT_ERRORS as e:
            logger.warning("ecobee token refresh failed: %s", e)
            return None

        token = response.to_token(now)
        if token_repo.save_token(self.conn, token) is None:
            logger.error("Refreshed ecobee token could not be saved; using it for this cycle only")
        return token

    def begin_install(self) -> PinResponse:
        """Request a pairing PIN for the user to enter in the ecobee portal."""
        pin = self.client.authorize()
        logger.info("ecobee pairing PIN issued: %s", pin.ecobee_pin)
        return pin

    def complete_install(self, code: str, now: datetime | None = None) -> Token | None:
        """Exchange the pairing code for a token and store it."""
        try:
            response = self.client.request_token(code, GrantKind.PIN)
        except GRANT_ERRORS as e:
            logger.warning("ecobee pairing failed: %s", e)
            return None
        saved = token_repo.save_token(self.conn, response.to_token(now))
        if saved is not None:
            logger.info("ecobee token installed, expires %s", saved.expires.isoformat())
        return saved
