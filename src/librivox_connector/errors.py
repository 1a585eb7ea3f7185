"""Exception hierarchy for the LibriVox connector."""


class ConnectorError(Exception):
    """Base exception for all connector errors."""


class ConfigError(ConnectorError):
    """Invalid or missing configuration."""


class FetchError(ConnectorError):
    """An upstream request failed after all retry attempts.

    Covers both transport failures (non-success status, network errors)
    and bodies that could not be decoded as JSON.
    """

    def __init__(self, url: str, attempts: int, reason: str = "") -> None:
        message = f"Request failed after {attempts} attempts: {url}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.url = url
        self.attempts = attempts
        self.reason = reason


class NotFoundError(ConnectorError):
    """The upstream query succeeded but matched no records."""

    def __init__(self, resource: str, query: str) -> None:
        super().__init__(f"{resource} not found: {query}")
        self.resource = resource
        self.query = query


class InvalidUrlError(ConnectorError):
    """A URL did not match the shape required by the operation."""

    def __init__(self, url: str, expected: str = "LibriVox") -> None:
        super().__init__(f"Invalid {expected} URL: {url}")
        self.url = url
        self.expected = expected
