"""
Shared fixtures for the Kalshi Pulse test suite.

No test touches the network: HTTP sessions and provider clients are replaced
with mocks.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from pulse.config import Settings
from pulse.models import MarketRecord


@pytest.fixture
def settings():
    """Settings with fake keys and no .env lookup."""
    return Settings(
        openai_api_key="sk-test",
        news_api_key="news-test",
        kalshi_api_url="https://kalshi.test/trade-api/v2",
        news_api_url="https://news.test/v2/everything",
        openai_api_url="https://openai.test/v1/chat/completions",
    )


@pytest.fixture
def make_response():
    """Factory for fake requests.Response objects."""

    def _make(status_code=200, json_data=None, text=""):
        response = MagicMock(spec=requests.Response)
        response.status_code = status_code
        response.ok = 200 <= status_code < 400
        response.reason = "OK" if response.ok else "Error"
        response.text = text
        if isinstance(json_data, Exception):
            response.json.side_effect = json_data
        else:
            response.json.return_value = json_data
        if response.ok:
            response.raise_for_status.return_value = None
        else:
            response.raise_for_status.side_effect = requests.HTTPError(
                f"{status_code} Error", response=response
            )
        return response

    return _make


@pytest.fixture
def market_payload():
    """Factory for Kalshi market dictionaries."""

    def _make(ticker="KXFED-25DEC-T4.00", **overrides):
        data = {
            "ticker": ticker,
            "event_ticker": "KXFED-25DEC",
            "series_ticker": "KXFED",
            "title": "Will the Fed cut rates in December?",
            "subtitle": "Cut",
            "category": "Economics",
            "status": "active",
            "yes_bid": 42,
            "yes_ask": 45,
            "no_bid": 55,
            "no_ask": 58,
            "last_price": 44,
            "previous_price": 40,
            "volume": 125000,
            "volume_24h": 3400,
            "liquidity": 560000,
            "open_interest": 98000,
            "open_time": "2025-06-01T14:00:00Z",
            "close_time": "2025-12-10T19:00:00Z",
            "expiration_time": "2025-12-11T19:00:00Z",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def market():
    """A resolved market record."""
    return MarketRecord(
        ticker="KXFED-25DEC-T4.00",
        title="Will the Fed cut rates in December?",
        event_ticker="KXFED-25DEC",
        series_ticker="KXFED",
        category="Economics",
        yes_bid=42,
        yes_ask=45,
        last_price=44,
        volume=125000,
        volume_24h=3400,
        open_interest=98000,
        close_time=datetime(2025, 12, 10, 19, 0, tzinfo=timezone.utc),
    )
