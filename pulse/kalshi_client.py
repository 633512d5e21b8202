"""
Kalshi market-data client.

This module handles the retrieval and normalization of market data from the
public Kalshi trade API. It performs no business logic - only HTTP calls,
error classification and transformation of payloads into MarketRecord and
HistoryPoint objects.
"""

import logging
from typing import Any, Optional

import requests
from requests.exceptions import RequestException, Timeout, ConnectionError

from pulse.config import Settings
from pulse.errors import NotFoundError, UpstreamError, UpstreamUnavailableError
from pulse.models import HistoryPoint, MarketRecord
from pulse.utils import parse_timestamp, safe_number

# Configure module logger
logger = logging.getLogger(__name__)

PROVIDER = "kalshi"

# Page size and page cap for series listings
SERIES_PAGE_LIMIT = 200
SERIES_MAX_PAGES = 5

# Keys under which activity-like endpoints return their records
ACTIVITY_KEYS = ("activity", "trades", "comments")


class KalshiClient:
    """
    Thin wrapper around the Kalshi REST API.

    Every call uses the configured market timeout. Errors are raised as:
    - NotFoundError for HTTP 404
    - UpstreamError for any other non-2xx status or a malformed payload
    - UpstreamUnavailableError for timeouts and connection failures
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.base_url = settings.kalshi_api_url.rstrip("/")
        self.session = session or requests.Session()

    def get_market(self, ticker: str) -> MarketRecord:
        """
        Fetch a single market by ticker.

        Args:
            ticker: Market ticker, used verbatim in the URL

        Returns:
            MarketRecord

        Raises:
            NotFoundError: If Kalshi answers 404
        """
        data = self._get(f"/markets/{ticker}", not_found=ticker)

        market_data = data.get("market")
        if not isinstance(market_data, dict):
            raise UpstreamError(PROVIDER, 200, f"response for '{ticker}' has no market object")

        return _parse_or_raise(market_data)

    def list_series_markets(self, series_ticker: str) -> list[MarketRecord]:
        """
        Fetch every market in a series, following pagination cursors.

        Entries that fail validation are skipped with a warning.

        Args:
            series_ticker: Series identifier

        Returns:
            List of MarketRecord in the order Kalshi returned them
        """
        markets: list[MarketRecord] = []
        cursor: Optional[str] = None

        for page in range(SERIES_MAX_PAGES):
            params: dict[str, Any] = {"series_ticker": series_ticker, "limit": SERIES_PAGE_LIMIT}
            if cursor:
                params["cursor"] = cursor

            data = self._get("/markets", params=params)

            batch = data.get("markets")
            if not isinstance(batch, list):
                raise UpstreamError(PROVIDER, 200, f"series '{series_ticker}' response has no market list")

            for idx, market_data in enumerate(batch):
                try:
                    markets.append(parse_market(market_data))
                except ValueError as e:
                    logger.warning(f"Skipping malformed market at index {idx} of series {series_ticker}: {e}")

            cursor = data.get("cursor")
            if not cursor or not batch:
                break

        logger.debug(f"Series {series_ticker} returned {len(markets)} markets")
        return markets

    def get_history(
        self,
        ticker: str,
        start_ts: int,
        end_ts: int,
        period_interval: int
    ) -> list[HistoryPoint]:
        """
        Fetch price history candles for a market.

        Args:
            ticker: Market ticker
            start_ts: Window start (Unix seconds)
            end_ts: Window end (Unix seconds)
            period_interval: Candle length in minutes

        Returns:
            List of HistoryPoint, oldest first
        """
        data = self._get(
            f"/markets/{ticker}/history",
            params={
                "start_ts": start_ts,
                "end_ts": end_ts,
                "period_interval": period_interval,
            },
            not_found=ticker,
        )
        return parse_history(data)

    def get_activity(self, path: str) -> list[dict]:
        """
        Fetch an activity-like record list (activity, trades or comments).

        Args:
            path: Endpoint path relative to the API base, e.g. "/markets/X/trades"

        Returns:
            Raw record dictionaries; empty when the payload carries none
        """
        data = self._get(path)

        for key in ACTIVITY_KEYS:
            records = data.get(key)
            if isinstance(records, list):
                return [record for record in records if isinstance(record, dict)]

        return []

    def get_exchange_status(self) -> dict:
        """Fetch the exchange status document (used as a connectivity probe)."""
        return self._get("/exchange/status")

    def _get(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        not_found: Optional[str] = None
    ) -> dict:
        """
        Perform a GET request and return the decoded JSON object.

        Args:
            path: Endpoint path relative to the API base
            params: Query parameters
            not_found: Ticker to report when the endpoint answers 404; when
                None a 404 is treated like any other error status

        Returns:
            Decoded JSON object
        """
        url = f"{self.base_url}{path}"

        logger.debug(f"GET {url} params={params}")

        try:
            response = self.session.get(
                url,
                params=params,
                timeout=self.settings.market_timeout,
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.settings.user_agent,
                },
            )
        except Timeout as e:
            logger.error(f"Request to {url} timed out after {self.settings.market_timeout}s")
            raise UpstreamUnavailableError(PROVIDER, type(e).__name__, str(e)) from e
        except ConnectionError as e:
            logger.error(f"Connection error reaching {url}: {e}")
            raise UpstreamUnavailableError(PROVIDER, type(e).__name__, str(e)) from e
        except RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise UpstreamUnavailableError(PROVIDER, type(e).__name__, str(e)) from e

        if response.status_code == 404 and not_found is not None:
            raise NotFoundError(not_found)

        if not response.ok:
            message = _error_message(response)
            logger.error(f"Kalshi returned HTTP {response.status_code} for {path}: {message}")
            raise UpstreamError(PROVIDER, response.status_code, message)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(PROVIDER, response.status_code, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamError(PROVIDER, response.status_code, f"expected JSON object, got {type(data).__name__}")

        return data


def _error_message(response: requests.Response) -> str:
    """Pull a readable message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or response.reason or "unknown error"

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or error.get("code") or error)
        if error:
            return str(error)
        if body.get("message"):
            return str(body["message"])

    return str(body)[:500]


def _parse_or_raise(data: dict) -> MarketRecord:
    try:
        return parse_market(data)
    except ValueError as e:
        raise UpstreamError(PROVIDER, 200, f"malformed market payload: {e}") from e


def parse_market(data: Any) -> MarketRecord:
    """
    Parse a single market dictionary into a MarketRecord.

    Extracts and normalizes fields with safe defaults for missing data.

    Args:
        data: Dictionary containing market data from the API

    Returns:
        MarketRecord

    Raises:
        ValueError: If the payload is not a dict or lacks a ticker
    """
    if not isinstance(data, dict):
        raise ValueError(f"expected market object, got {type(data).__name__}")

    ticker = data.get("ticker")
    if not ticker or not isinstance(ticker, str):
        raise ValueError("market is missing 'ticker'")

    return MarketRecord(
        ticker=ticker,
        title=str(data.get("title") or ticker),
        event_ticker=str(data.get("event_ticker") or ""),
        series_ticker=str(data.get("series_ticker") or ""),
        subtitle=str(data.get("subtitle") or data.get("yes_sub_title") or ""),
        category=str(data.get("category") or ""),
        status=str(data.get("status") or ""),
        yes_bid=safe_number(data.get("yes_bid")),
        yes_ask=safe_number(data.get("yes_ask")),
        no_bid=safe_number(data.get("no_bid")),
        no_ask=safe_number(data.get("no_ask")),
        last_price=safe_number(data.get("last_price")),
        previous_yes_bid=safe_number(data.get("previous_yes_bid")),
        previous_yes_ask=safe_number(data.get("previous_yes_ask")),
        previous_price=safe_number(data.get("previous_price")),
        volume=safe_number(data.get("volume")),
        volume_24h=safe_number(data.get("volume_24h")),
        liquidity=safe_number(data.get("liquidity")),
        open_interest=safe_number(data.get("open_interest")),
        open_time=parse_timestamp(data.get("open_time")),
        close_time=parse_timestamp(data.get("close_time")),
        expiration_time=parse_timestamp(data.get("expiration_time")),
    )


def parse_history(data: dict) -> list[HistoryPoint]:
    """
    Parse a history response into HistoryPoint objects.

    Points without a timestamp or close price are skipped.

    Args:
        data: Decoded history response

    Returns:
        List of HistoryPoint in response order
    """
    raw_points = data.get("history")
    if not isinstance(raw_points, list):
        return []

    points: list[HistoryPoint] = []
    for raw in raw_points:
        if not isinstance(raw, dict) or raw.get("ts") is None or raw.get("close") is None:
            continue

        points.append(HistoryPoint(
            ts=int(safe_number(raw.get("ts"))),
            open=safe_number(raw.get("open")),
            high=safe_number(raw.get("high")),
            low=safe_number(raw.get("low")),
            close=safe_number(raw.get("close")),
            volume=safe_number(raw.get("volume")),
        ))

    return points
