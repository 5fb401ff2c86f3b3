"""Exception hierarchy for the collector."""


class ThermHubError(Exception):
    """Base exception for all thermhub errors."""


class TransportError(ThermHubError):
    """Network or HTTP-level failure talking to a remote provider."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class DecodeError(ThermHubError):
    """Payload does not match the expected shape."""


class CredentialError(ThermHubError):
    """No usable token, or the provider rejected a token exchange."""


class PersistError(ThermHubError):
    """Durable store read or write failed."""


class ParseError(ThermHubError):
    """A single textual field could not be parsed."""
