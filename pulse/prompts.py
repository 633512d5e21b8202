"""
Prompt templates for market and comment analysis.

Prompts are built by pure functions: the same inputs always produce the same
text, and numbers are rendered exactly as the provider sent them. The only
rounding applied is one decimal on percentage changes.
"""

from typing import Optional

from pulse.models import MarketRecord, PriceMovement
from pulse.utils import format_number, format_percentage_change

MARKET_SYSTEM_PROMPT = (
    "You are a prediction market analyst. Provide clear, concise analysis "
    "without financial advice disclaimers."
)

COMMENTS_SYSTEM_PROMPT = (
    "You are a sentiment analyst for prediction markets. "
    "Analyze community sentiment objectively."
)

KEYWORDS_SYSTEM_PROMPT = (
    "You generate concise news search keywords for prediction market questions."
)

NO_NEWS_TEXT = "No recent news found"

MARKET_TASK = """Task: Analyze why this market probability {direction}. Provide:

**Primary Driver** (1 sentence explaining the main reason for the move)

**Bull Case** 🟢
- [2-3 concise bullet points supporting YES outcome]

**Bear Case** 🔴
- [2-3 concise bullet points supporting NO outcome]

**Confidence Level:** [High/Medium/Low] based on news quality and market conditions

Keep it actionable and concise."""

COMMENTS_TASK = """Task: Analyze the sentiment and key arguments in this market's community.

**Overall Sentiment:** Bullish/Bearish/Mixed (with % if determinable)

**Top Bull Arguments:**
- [List 3 main bullish points]

**Top Bear Arguments:**
- [List 3 main bearish points]

**Community Confidence:** High/Medium/Low

**Notable Disagreements:**
- [Key points where views differ]

Keep it concise and objective."""


def _market_lines(market: MarketRecord) -> list[str]:
    lines = [
        f'Market: "{market.title}"',
        f"Current Probability: {format_number(market.last_price)}%",
        f"Yes Bid/Ask: {format_number(market.yes_bid)}/{format_number(market.yes_ask)} "
        f"(spread {format_number(market.spread)} points)",
        f"Volume: {format_number(market.volume)} contracts",
        f"Volume (24h): {format_number(market.volume_24h) if market.volume_24h else 'N/A'} contracts",
        f"Open Interest: {format_number(market.open_interest)} contracts",
        f"Category: {market.category or 'Unknown'}",
    ]
    if market.close_time:
        lines.append(f"Closes: {market.close_time.strftime('%Y-%m-%d')}")
    return lines


def build_prompt(
    market: MarketRecord,
    comments_text: Optional[str] = None,
    news_text: Optional[str] = None,
    movement: Optional[PriceMovement] = None
) -> str:
    """
    Build the user prompt for an analysis request.

    When comments_text is given (even empty) the prompt asks for a
    community-sentiment breakdown; otherwise it asks why the market moved,
    using the price movement and news digest.

    Args:
        market: Resolved market
        comments_text: Rendered community discussion, or None for a market analysis
        news_text: Rendered news digest
        movement: Price movement over the history window

    Returns:
        Prompt string
    """
    lines = _market_lines(market)

    if movement is not None:
        lines.append(f"Previous Probability (24h ago): {format_number(movement.previous_price)}%")
        lines.append(f"Change: {format_percentage_change(movement.price_change)}")

    if comments_text is not None:
        lines.append("")
        lines.append("Community Discussion:")
        lines.append(comments_text or "(no usable comments)")

    if news_text is not None or comments_text is None:
        lines.append("")
        lines.append("Recent News:")
        lines.append(news_text or NO_NEWS_TEXT)

    lines.append("")
    if comments_text is not None:
        lines.append(COMMENTS_TASK)
    else:
        direction = movement.direction if movement is not None else "stayed stable"
        lines.append(MARKET_TASK.format(direction=direction))

    return "\n".join(lines)


def build_keywords_prompt(title: str, max_keywords: int = 5) -> str:
    """Build the prompt asking for news search keywords for a market title."""
    return (
        f'Market question: "{title}"\n\n'
        f"List up to {max_keywords} short search keywords or names that would find "
        "recent news articles about this question. Prefer proper nouns and specific "
        "terms over generic words.\n\n"
        'Return ONLY a JSON array of strings, for example ["Federal Reserve", "rate cut"].'
    )
