"""ecobee credential models."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from thermhub.models.common import utc_now


class GrantKind(StrEnum):
    PIN = "ecobeePin"
    REFRESH_TOKEN = "refresh_token"


@dataclass(frozen=True)
class Token:
    access_token: str
    refresh_token: str
    expires: datetime


@dataclass(frozen=True)
class TokenResponse:
    access_token: str
    refresh_token: str
    expires_in: int  # seconds

    def to_token(self, now: datetime | None = None) -> Token:
        """Stamp the expiry relative to the moment the token was issued."""
        if now is None:
            now = utc_now()
        return Token(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires=now + timedelta(seconds=self.expires_in),
        )


@dataclass(frozen=True)
class PinResponse:
    ecobee_pin: str
    code: str

    def to_dict(self) -> dict:
        return {"ecobee_pin": self.ecobee_pin, "code": self.code}
