"""
Error kinds raised while building an analysis.

Every failure that reaches the relay is a PulseError; the HTTP layer turns
its message into the `{"error": ...}` body.
"""

from typing import Optional


class PulseError(Exception):
    """Base class for all analysis failures."""


class NotFoundError(PulseError):
    """A ticker (and optional series) could not be resolved to a market."""

    def __init__(self, ticker: str, series_ticker: Optional[str] = None):
        self.ticker = ticker
        self.series_ticker = series_ticker

        message = f"Market not found for ticker '{ticker}'"
        if series_ticker:
            message += f" in series '{series_ticker}'"
        super().__init__(message)


class UpstreamUnavailableError(PulseError):
    """
    A provider could not be reached (network, DNS, timeout).

    Attributes:
        provider: Provider name ("kalshi", "newsapi", ...)
        code: Original error code, usually the underlying exception class name
    """

    def __init__(self, provider: str, code: str, message: str):
        self.provider = provider
        self.code = code
        super().__init__(f"{provider} unavailable ({code}): {message}")


class UpstreamError(PulseError):
    """
    A provider answered with a non-2xx status or an unexpected payload.

    Attributes:
        provider: Provider name
        status_code: HTTP status code of the response
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} returned HTTP {status_code}: {message}")


class GenerationUnavailableError(PulseError):
    """The text-generation request failed."""
