"""
Comment source selection.

Kalshi has no documented comments API, so community discussion comes from
whichever source is available first: comments scraped from the market page by
the extension, activity or trade records from best-effort API endpoints, or,
when neither yields anything, a short description of the market's metrics.
"""

import logging
from typing import Iterator, Optional

from pulse.errors import PulseError
from pulse.kalshi_client import KalshiClient
from pulse.models import CommentRecord, CommentSelection, MarketRecord
from pulse.utils import Attempt, Strategy, first_success, format_number

# Configure module logger
logger = logging.getLogger(__name__)

MAX_COMMENTS = 50

# Record fields that may carry free text, in order of preference
TEXT_FIELDS = ("text", "comment", "message")


def render_comments(comments: list[CommentRecord], limit: int = MAX_COMMENTS) -> str:
    """
    Render comments as a bullet list for the prompt.

    Takes at most `limit` entries and drops any whose trimmed text is two
    characters or shorter.

    Args:
        comments: Comment records in input order
        limit: Maximum number of entries considered

    Returns:
        Lines of the form "- <text>" joined by newlines
    """
    lines = []
    for comment in comments[:limit]:
        text = comment.text.strip()
        if len(text) > 2:
            lines.append(f"- {text}")
    return "\n".join(lines)


def metrics_fallback_text(market: MarketRecord) -> str:
    """
    Describe a market by its metrics when no discussion is available.

    Every figure is rendered exactly as received.
    """
    return (
        "No public comments available for this market. Analysis based on market metrics:\n"
        f"- Current price: {format_number(market.last_price)}%\n"
        f"- Volume: {format_number(market.volume)} contracts\n"
        f"- Open interest: {format_number(market.open_interest)} contracts\n"
        f"- Bid-ask spread: {format_number(market.spread)} points"
    )


def record_text(record: dict) -> str:
    """
    Extract displayable text from an activity or trade record.

    Free-text fields win. Trade records without text are described from
    their taker side, contract count and price. Returns "" when nothing
    usable is present.
    """
    for key in TEXT_FIELDS:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    count = record.get("count")
    side = record.get("taker_side")
    if count is None or not isinstance(side, str):
        return ""

    price = record.get("yes_price") if side.lower() == "yes" else record.get("no_price")
    if price is None:
        return f"Trade: {count} contracts bought {side.upper()}"
    return f"Trade: {count} contracts bought {side.upper()} at {price}¢"


class CommentSelector:
    """Chooses where the comments for an analysis come from."""

    def __init__(self, client: KalshiClient, max_comments: int = MAX_COMMENTS):
        self.client = client
        self.max_comments = max_comments

    def select_comments(
        self,
        page_comments: Optional[list[str]],
        market: MarketRecord
    ) -> CommentSelection:
        """
        Select comments for a market.

        Priority:
        1. Page comments supplied by the caller (the API is not touched)
        2. The first candidate API endpoint returning usable records
        3. Fallback text built from market metrics

        Args:
            page_comments: Comments scraped from the page, possibly None/empty
            market: Resolved market

        Returns:
            CommentSelection
        """
        selection = first_success(self._strategies(page_comments, market))

        if selection is None:
            logger.info(f"No comments found for {market.ticker}, using market metrics")
            selection = CommentSelection(
                comments=[],
                has_comments=False,
                text=metrics_fallback_text(market),
                source="metrics",
            )

        return selection

    def candidate_endpoints(self, market: MarketRecord) -> list[str]:
        """API paths that may expose discussion or activity for a market."""
        endpoints = [
            f"/markets/{market.ticker}/activity",
            f"/markets/{market.ticker}/trades",
        ]
        if market.event_ticker:
            endpoints.append(f"/events/{market.event_ticker}/activity")
        return endpoints

    def _strategies(
        self,
        page_comments: Optional[list[str]],
        market: MarketRecord
    ) -> Iterator[Strategy]:
        yield ("page", lambda: self._from_page(page_comments, market))

        for endpoint in self.candidate_endpoints(market):
            yield (f"api:{endpoint}", lambda endpoint=endpoint: self._from_api(endpoint))

    def _from_page(
        self,
        page_comments: Optional[list[str]],
        market: MarketRecord
    ) -> Attempt[CommentSelection]:
        if not page_comments:
            return Attempt.skip("no page comments supplied")

        comments = [
            CommentRecord(text=text, source="page")
            for text in page_comments
            if isinstance(text, str)
        ][:self.max_comments]

        if not comments:
            return Attempt.skip("page comments contained no text")

        selection = self._selection(comments, "page")
        if not selection.text:
            # Still page discussion; only the prompt text falls back to metrics
            logger.info(f"Page comments for {market.ticker} too short, describing market metrics")
            selection = CommentSelection(
                comments=comments,
                has_comments=True,
                text=metrics_fallback_text(market),
                source="page",
            )
        else:
            logger.info(f"Using {len(comments)} page comments")

        return Attempt.success(selection)

    def _from_api(self, endpoint: str) -> Attempt[CommentSelection]:
        try:
            records = self.client.get_activity(endpoint)
        except PulseError as e:
            logger.debug(f"Comment endpoint {endpoint} unavailable: {e}")
            return Attempt.skip(str(e))

        comments = []
        for record in records[:self.max_comments]:
            text = record_text(record)
            if text:
                comments.append(CommentRecord(text=text, source="api"))

        selection = self._selection(comments, "api")
        if not selection.text:
            return Attempt.skip(f"{endpoint} returned no usable records")

        logger.info(f"Using {len(comments)} records from {endpoint}")
        return Attempt.success(selection)

    def _selection(self, comments: list[CommentRecord], source: str) -> CommentSelection:
        return CommentSelection(
            comments=comments,
            has_comments=True,
            text=render_comments(comments, self.max_comments),
            source=source,
        )
