"""
Data models for the Kalshi Pulse relay.

This module defines the dataclasses that flow through a single analysis
request: market snapshots, comments, news articles and the analysis results
returned to the extension. Nothing here outlives the request.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

Number = Union[int, float]


@dataclass(frozen=True)
class MarketRecord:
    """
    Snapshot of a Kalshi market.

    Prices are on the 0-100 cent scale and keep the precision the provider
    sent them with.

    Attributes:
        ticker: Unique market identifier
        event_ticker: Parent event identifier
        series_ticker: Parent series identifier
        title: Market question/title
        yes_bid: Best YES bid
        yes_ask: Best YES ask
        last_price: Last traded YES price
        volume: Lifetime traded contracts
        volume_24h: Contracts traded in the last 24 hours
        open_interest: Outstanding contracts
        close_time: When trading closes
    """
    ticker: str
    title: str
    event_ticker: str = ""
    series_ticker: str = ""
    subtitle: str = ""
    category: str = ""
    status: str = ""
    yes_bid: Number = 0
    yes_ask: Number = 0
    no_bid: Number = 0
    no_ask: Number = 0
    last_price: Number = 0
    previous_yes_bid: Number = 0
    previous_yes_ask: Number = 0
    previous_price: Number = 0
    volume: Number = 0
    volume_24h: Number = 0
    liquidity: Number = 0
    open_interest: Number = 0
    open_time: Optional[datetime] = None
    close_time: Optional[datetime] = None
    expiration_time: Optional[datetime] = None

    @property
    def spread(self) -> Number:
        """Bid-ask spread of the YES side, in cents, at the precision of the quotes."""
        if isinstance(self.yes_ask, int) and isinstance(self.yes_bid, int):
            return self.yes_ask - self.yes_bid
        return float(Decimal(str(self.yes_ask)) - Decimal(str(self.yes_bid)))


@dataclass(frozen=True)
class CommentRecord:
    """A piece of community discussion and where it came from ("page" or "api")."""
    text: str
    source: str


@dataclass(frozen=True)
class HistoryPoint:
    """One candle of market price history."""
    ts: int
    open: Number
    high: Number
    low: Number
    close: Number
    volume: Number = 0


@dataclass(frozen=True)
class PriceMovement:
    """
    Price move over the history window.

    Attributes:
        current_price: Latest traded price
        previous_price: Price at the start of the window
        price_change: Relative change in percent, rounded to one decimal
    """
    current_price: Number
    previous_price: Number
    price_change: float

    @property
    def direction(self) -> str:
        if self.price_change > 0:
            return "increased"
        if self.price_change < 0:
            return "decreased"
        return "stayed stable"


@dataclass(frozen=True)
class NewsArticle:
    """A news headline returned by the news search."""
    title: str
    source_name: str
    published_at: Optional[datetime]
    url: str = ""
    description: str = ""


@dataclass(frozen=True)
class CommentSelection:
    """
    Outcome of comment source selection.

    Attributes:
        comments: Records that were used (empty when falling back to metrics)
        has_comments: Whether real discussion was found
        text: Rendered text to embed in the prompt
        source: "page", "api" or "metrics"
    """
    comments: list[CommentRecord]
    has_comments: bool
    text: str
    source: str


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class AnalysisResult:
    """
    Fields shared by every analysis returned to the caller.

    Attributes:
        ticker: Ticker the caller asked for
        title: Resolved market title
        current_price: Last traded price
        analysis: Generated analysis text
        timestamp: When the analysis was generated
    """
    ticker: str
    title: str
    current_price: Number
    analysis: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON shape the extension expects."""
        return {
            "ticker": self.ticker,
            "title": self.title,
            "currentPrice": self.current_price,
            "analysis": self.analysis,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class MarketAnalysis(AnalysisResult):
    """Market-movement analysis with price and news context."""
    previous_price: Number = 0
    price_change: float = 0.0
    volume_24h: Number = 0
    category: str = ""
    close_time: Optional[datetime] = None
    news_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "previousPrice": self.previous_price,
            "priceChange": self.price_change,
            "volume24h": self.volume_24h,
            "category": self.category,
            "closeTime": _isoformat(self.close_time),
            "newsCount": self.news_count,
        })
        return data


@dataclass
class CommentAnalysis(AnalysisResult):
    """Community-sentiment analysis."""
    comment_count: int = 0
    has_comments: bool = False
    comment_source: str = "metrics"

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "commentCount": self.comment_count,
            "hasComments": self.has_comments,
            "commentSource": self.comment_source,
        })
        return data
