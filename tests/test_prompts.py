"""Tests for prompt construction."""

from pulse.models import MarketRecord, PriceMovement
from pulse.prompts import NO_NEWS_TEXT, build_keywords_prompt, build_prompt


def test_market_prompt_includes_movement_and_news(market):
    movement = PriceMovement(current_price=44, previous_price=40, price_change=10.0)

    prompt = build_prompt(market, news_text="1. Fed signals cut (Reuters, 2025-12-01)", movement=movement)

    assert 'Market: "Will the Fed cut rates in December?"' in prompt
    assert "Current Probability: 44%" in prompt
    assert "Previous Probability (24h ago): 40%" in prompt
    assert "Change: +10.0%" in prompt
    assert "Volume (24h): 3400 contracts" in prompt
    assert "Open Interest: 98000 contracts" in prompt
    assert "Closes: 2025-12-10" in prompt
    assert "1. Fed signals cut (Reuters, 2025-12-01)" in prompt
    assert "Analyze why this market probability increased" in prompt
    assert "Community Discussion" not in prompt


def test_market_prompt_without_news_says_so(market):
    prompt = build_prompt(market)

    assert NO_NEWS_TEXT in prompt
    assert "stayed stable" in prompt


def test_negative_change_keeps_one_decimal(market):
    movement = PriceMovement(current_price=44, previous_price=48, price_change=-8.3)

    prompt = build_prompt(market, movement=movement)

    assert "Change: -8.3%" in prompt
    assert "decreased" in prompt


def test_comments_prompt_embeds_discussion(market):
    prompt = build_prompt(market, comments_text="- Powell sounded dovish")

    assert "Community Discussion:\n- Powell sounded dovish" in prompt
    assert "Overall Sentiment" in prompt
    assert "Recent News" not in prompt


def test_blank_comments_text_is_marked_in_sentiment_prompt(market):
    prompt = build_prompt(market, comments_text="")

    assert "(no usable comments)" in prompt
    assert "Overall Sentiment" in prompt


def test_prompt_keeps_original_precision():
    market = MarketRecord(ticker="X", title="X", yes_bid=41.25, yes_ask=43.5, last_price=42.125, volume=10)

    prompt = build_prompt(market, comments_text="- fine")

    assert "Current Probability: 42.125%" in prompt
    assert "Yes Bid/Ask: 41.25/43.5 (spread 2.25 points)" in prompt


def test_prompt_is_deterministic(market):
    assert build_prompt(market, comments_text="- a comment") == build_prompt(market, comments_text="- a comment")


def test_keywords_prompt_asks_for_json_array():
    prompt = build_keywords_prompt("Will BTC hit 100k?", 3)

    assert '"Will BTC hit 100k?"' in prompt
    assert "up to 3" in prompt
    assert "JSON array" in prompt


def test_float_spread_keeps_quote_precision():
    market = MarketRecord(ticker="X", title="X", yes_bid=45.1, yes_ask=45.3, last_price=45.2)

    prompt = build_prompt(market, comments_text="- fine")

    assert "Yes Bid/Ask: 45.1/45.3 (spread 0.2 points)" in prompt
    assert market.spread == 0.2
