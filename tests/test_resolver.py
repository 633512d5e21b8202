"""Tests for market resolution and its fallback chain."""

from unittest.mock import MagicMock

import pytest

from pulse.errors import NotFoundError, UpstreamError, UpstreamUnavailableError
from pulse.kalshi_client import KalshiClient
from pulse.models import MarketRecord
from pulse.resolver import MarketResolver, case_variants, match_in_series


def _market(ticker):
    return MarketRecord(ticker=ticker, title=f"Market {ticker}")


@pytest.fixture
def client():
    return MagicMock(spec=KalshiClient)


@pytest.fixture
def resolver(client):
    return MarketResolver(client)


def test_case_variants_are_ordered_and_deduplicated():
    assert case_variants("Abc-1") == ["Abc-1", "ABC-1", "abc-1"]
    assert case_variants("ABC-1") == ["ABC-1", "abc-1"]
    assert case_variants("abc-1") == ["abc-1", "ABC-1"]
    assert case_variants("123") == ["123"]


def test_exact_match_preferred_over_earlier_substring_match():
    markets = [_market("KXFED-25DEC-T4.00-EXTRA"), _market("kxfed-25dec-t4.00")]

    assert match_in_series("KXFED-25DEC-T4.00", markets).ticker == "kxfed-25dec-t4.00"


def test_substring_match_in_either_direction_first_wins():
    markets = [_market("OTHER"), _market("KXFED-25DEC"), _market("KXFED-25DEC-T4.00")]

    assert match_in_series("kxfed-25dec-t4.00-x", markets).ticker == "KXFED-25DEC"
    assert match_in_series("25dec", markets).ticker == "KXFED-25DEC"


def test_no_series_match_returns_none():
    assert match_in_series("ZZZ", [_market("AAA")]) is None


def test_series_match_skips_direct_lookup(resolver, client):
    client.list_series_markets.return_value = [_market("KXFED-25DEC-T4.00")]

    market = resolver.resolve("kxfed-25dec-t4.00", "KXFED")

    assert market.ticker == "KXFED-25DEC-T4.00"
    client.get_market.assert_not_called()


def test_series_error_falls_through_to_direct_lookup(resolver, client):
    client.list_series_markets.side_effect = UpstreamUnavailableError("kalshi", "ReadTimeout", "slow")
    client.get_market.return_value = _market("ABC-1")

    market = resolver.resolve("ABC-1", "ABC")

    assert market.ticker == "ABC-1"
    client.get_market.assert_called_once_with("ABC-1")


def test_empty_series_falls_through_to_direct_lookup(resolver, client):
    client.list_series_markets.return_value = []
    client.get_market.return_value = _market("ABC-1")

    assert resolver.resolve("ABC-1", "ABC").ticker == "ABC-1"


def test_direct_lookup_tries_case_variants_until_found(resolver, client):
    client.get_market.side_effect = [NotFoundError("Abc-1"), _market("ABC-1")]

    market = resolver.resolve("Abc-1")

    assert market.ticker == "ABC-1"
    assert [c.args[0] for c in client.get_market.call_args_list] == ["Abc-1", "ABC-1"]
    client.list_series_markets.assert_not_called()


def test_non_404_error_aborts_without_trying_other_variants(resolver, client):
    client.get_market.side_effect = UpstreamError("kalshi", 500, "internal error")

    with pytest.raises(UpstreamError):
        resolver.resolve("Abc-1")

    client.get_market.assert_called_once_with("Abc-1")


def test_network_error_aborts_direct_lookup(resolver, client):
    client.get_market.side_effect = [
        NotFoundError("Abc-1"),
        UpstreamUnavailableError("kalshi", "ConnectionError", "refused"),
    ]

    with pytest.raises(UpstreamUnavailableError):
        resolver.resolve("Abc-1")

    assert client.get_market.call_count == 2


def test_all_variants_not_found_raises_not_found_with_ticker(resolver, client):
    client.get_market.side_effect = NotFoundError("x")

    with pytest.raises(NotFoundError) as exc_info:
        resolver.resolve("ABC-1")

    assert "ABC-1" in str(exc_info.value)
    assert [c.args[0] for c in client.get_market.call_args_list] == ["ABC-1", "abc-1"]


def test_not_found_message_names_series(resolver, client):
    client.list_series_markets.return_value = [_market("OTHER")]
    client.get_market.side_effect = NotFoundError("x")

    with pytest.raises(NotFoundError) as exc_info:
        resolver.resolve("ABC-1", "ABCSERIES")

    assert "ABC-1" in str(exc_info.value)
    assert "ABCSERIES" in str(exc_info.value)
