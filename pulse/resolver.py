"""
Market resolver for locating a Kalshi market from a ticker.

The ticker the extension extracts from a page URL is not always the exact
API ticker (casing differs, or the page shows an event rather than a single
market). Resolution therefore runs an ordered chain of lookup strategies and
keeps the first market found.
"""

import logging
from typing import Iterator, Optional

from pulse.errors import NotFoundError, PulseError
from pulse.kalshi_client import KalshiClient
from pulse.models import MarketRecord
from pulse.utils import Attempt, Strategy, first_success

# Configure module logger
logger = logging.getLogger(__name__)


def case_variants(ticker: str) -> list[str]:
    """
    Case variants of a ticker to try against the API, in order.

    Returns the ticker as given, upper-cased and lower-cased, without
    duplicates.
    """
    variants: list[str] = []
    for variant in (ticker, ticker.upper(), ticker.lower()):
        if variant not in variants:
            variants.append(variant)
    return variants


def match_in_series(ticker: str, markets: list[MarketRecord]) -> Optional[MarketRecord]:
    """
    Pick the market matching a ticker from a series listing.

    An exact case-insensitive match always wins. Otherwise the first market
    whose ticker contains the requested one, or is contained in it, is used.
    No scoring: ties go to the earliest market in listing order.

    Args:
        ticker: Requested ticker
        markets: Series markets in API order

    Returns:
        Matching MarketRecord, or None
    """
    wanted = ticker.lower()

    for market in markets:
        if market.ticker.lower() == wanted:
            return market

    for market in markets:
        candidate = market.ticker.lower()
        if wanted in candidate or candidate in wanted:
            return market

    return None


class MarketResolver:
    """Resolves a ticker, and optional series, to a single MarketRecord."""

    def __init__(self, client: KalshiClient):
        self.client = client

    def resolve(self, ticker: str, series_ticker: Optional[str] = None) -> MarketRecord:
        """
        Locate one market, trying each lookup strategy in order.

        1. Series listing (when series_ticker is given); any error falls through.
        2. Direct lookup of each case variant; only a 404 moves on to the
           next variant, other errors propagate immediately.

        Args:
            ticker: Market ticker as supplied by the caller
            series_ticker: Optional series identifier

        Returns:
            Resolved MarketRecord

        Raises:
            NotFoundError: If no strategy finds the market
            UpstreamUnavailableError, UpstreamError: From the direct lookup
        """
        logger.info(
            f"Resolving market ticker={ticker!r}"
            + (f" series={series_ticker!r}" if series_ticker else "")
        )

        market = first_success(self._strategies(ticker, series_ticker))

        if market is None:
            logger.warning(f"No market found for {ticker!r} (series={series_ticker!r})")
            raise NotFoundError(ticker, series_ticker)

        logger.info(f"Resolved {ticker!r} to market {market.ticker}")
        return market

    def _strategies(self, ticker: str, series_ticker: Optional[str]) -> Iterator[Strategy]:
        if series_ticker:
            yield ("series", lambda: self._from_series(ticker, series_ticker))

        for variant in case_variants(ticker):
            yield (f"direct:{variant}", lambda variant=variant: self._direct(variant))

    def _from_series(self, ticker: str, series_ticker: str) -> Attempt[MarketRecord]:
        try:
            markets = self.client.list_series_markets(series_ticker)
        except PulseError as e:
            logger.warning(f"Series lookup for {series_ticker!r} failed, falling back to direct lookup: {e}")
            return Attempt.skip(str(e))

        if not markets:
            return Attempt.skip(f"series {series_ticker!r} has no markets")

        market = match_in_series(ticker, markets)
        if market is None:
            return Attempt.skip(f"no market in series {series_ticker!r} matches {ticker!r}")

        return Attempt.success(market)

    def _direct(self, variant: str) -> Attempt[MarketRecord]:
        try:
            return Attempt.success(self.client.get_market(variant))
        except NotFoundError:
            return Attempt.skip(f"{variant!r} not found")
