class AwakenFetchError(Exception):
    """Base class for all AwakenFetch errors."""


class ExternalServiceError(AwakenFetchError):
    """An upstream HTTP API failed or returned an unusable response."""


class RateLimitedError(ExternalServiceError):
    """Upstream answered 429 Too Many Requests."""


class InvalidAddressError(AwakenFetchError, ValueError):
    """Wallet address does not match the chain's address format."""


class ConfigurationError(AwakenFetchError):
    """A required setting (e.g. an API key) is missing."""


class ProxyError(AwakenFetchError):
    """Request-level failure rendered by the API as ``{"error": message}``."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class InvalidTransitionError(AwakenFetchError):
    """Fetch state machine was asked to perform a transition it does not allow."""


class FetchAborted(AwakenFetchError):
    """The in-flight fetch session was cancelled."""
