"""Tests for the Kalshi REST client and payload parsing."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from pulse.errors import NotFoundError, UpstreamError, UpstreamUnavailableError
from pulse.kalshi_client import KalshiClient, parse_history, parse_market


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(settings, session):
    return KalshiClient(settings, session=session)


def test_get_market_parses_payload(client, session, make_response, market_payload):
    session.get.return_value = make_response(200, {"market": market_payload()})

    market = client.get_market("KXFED-25DEC-T4.00")

    assert market.ticker == "KXFED-25DEC-T4.00"
    assert market.event_ticker == "KXFED-25DEC"
    assert market.last_price == 44
    assert market.spread == 3
    assert market.close_time == datetime(2025, 12, 10, 19, 0, tzinfo=timezone.utc)

    url = session.get.call_args.args[0]
    assert url == "https://kalshi.test/trade-api/v2/markets/KXFED-25DEC-T4.00"
    assert session.get.call_args.kwargs["timeout"] == 10.0


def test_get_market_404_raises_not_found(client, session, make_response):
    session.get.return_value = make_response(404, {"error": {"code": "not_found"}})

    with pytest.raises(NotFoundError) as exc_info:
        client.get_market("abc-1")

    assert exc_info.value.ticker == "abc-1"


def test_get_market_server_error_raises_upstream_error(client, session, make_response):
    session.get.return_value = make_response(503, {"error": {"message": "maintenance"}})

    with pytest.raises(UpstreamError) as exc_info:
        client.get_market("ABC-1")

    assert exc_info.value.status_code == 503
    assert "maintenance" in str(exc_info.value)


def test_timeout_raises_upstream_unavailable(client, session):
    session.get.side_effect = requests.exceptions.ConnectTimeout("timed out")

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        client.get_market("ABC-1")

    assert exc_info.value.code == "ConnectTimeout"


def test_connection_error_raises_upstream_unavailable(client, session):
    session.get.side_effect = requests.exceptions.ConnectionError("Name or service not known")

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        client.get_market("ABC-1")

    assert exc_info.value.code == "ConnectionError"


def test_missing_market_object_is_upstream_error(client, session, make_response):
    session.get.return_value = make_response(200, {"markets": []})

    with pytest.raises(UpstreamError):
        client.get_market("ABC-1")


def test_invalid_json_is_upstream_error(client, session, make_response):
    session.get.return_value = make_response(200, ValueError("No JSON object could be decoded"))

    with pytest.raises(UpstreamError):
        client.get_market("ABC-1")


def test_list_series_markets_follows_cursor_and_skips_bad_entries(client, session, make_response, market_payload):
    session.get.side_effect = [
        make_response(200, {"markets": [market_payload("A-1"), {"title": "no ticker"}], "cursor": "next"}),
        make_response(200, {"markets": [market_payload("A-2")], "cursor": ""}),
    ]

    markets = client.list_series_markets("A")

    assert [m.ticker for m in markets] == ["A-1", "A-2"]
    assert session.get.call_args_list[0].kwargs["params"]["series_ticker"] == "A"
    assert session.get.call_args_list[1].kwargs["params"]["cursor"] == "next"


def test_list_series_markets_404_is_not_treated_as_not_found(client, session, make_response):
    session.get.return_value = make_response(404, {"error": "series not found"})

    with pytest.raises(UpstreamError):
        client.list_series_markets("NOPE")


def test_get_activity_reads_known_keys(client, session, make_response):
    session.get.return_value = make_response(200, {"trades": [{"count": 3}, "junk"], "cursor": ""})

    records = client.get_activity("/markets/ABC/trades")

    assert records == [{"count": 3}]


def test_get_activity_without_records_returns_empty(client, session, make_response):
    session.get.return_value = make_response(200, {"cursor": ""})

    assert client.get_activity("/markets/ABC/activity") == []


def test_get_history_sends_window(client, session, make_response):
    session.get.return_value = make_response(200, {"history": [
        {"ts": 100, "open": 40, "high": 46, "low": 39, "close": 41, "volume": 10},
    ]})

    points = client.get_history("ABC", start_ts=100, end_ts=200, period_interval=60)

    assert points[0].close == 41
    assert session.get.call_args.kwargs["params"] == {
        "start_ts": 100,
        "end_ts": 200,
        "period_interval": 60,
    }


def test_parse_market_keeps_numeric_precision(market_payload):
    market = parse_market(market_payload(last_price="44.5", yes_bid=42.25, volume="1200"))

    assert market.last_price == 44.5
    assert market.yes_bid == 42.25
    assert market.volume == 1200
    assert isinstance(market.volume, int)


def test_parse_market_requires_ticker():
    with pytest.raises(ValueError):
        parse_market({"title": "Untitled"})


def test_parse_history_skips_incomplete_points():
    points = parse_history({"history": [{"ts": 1, "close": 40}, {"ts": 2}, "bad"]})

    assert len(points) == 1
    assert points[0].ts == 1
