"""
Analysis orchestration for the Kalshi Pulse relay.

This module coordinates the two request flows:

analyze_market:
1. Resolve the market
2. Fetch 24h price history (best-effort)
3. Search related news (best-effort, only with a NewsAPI key)
4. Build the prompt and generate the analysis

analyze_comments:
1. Resolve the market
2. Select comments (page, API activity, or market metrics)
3. Build the prompt and generate the analysis

Every step runs sequentially. Nothing is shared between requests.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from pulse.comments import CommentSelector
from pulse.config import Settings
from pulse.errors import PulseError
from pulse.insight import InsightRequester
from pulse.kalshi_client import KalshiClient
from pulse.models import CommentAnalysis, MarketAnalysis, MarketRecord, Number, PriceMovement
from pulse.news import NewsClient, build_query, extract_keywords, format_news, generate_keywords
from pulse.prompts import COMMENTS_SYSTEM_PROMPT, MARKET_SYSTEM_PROMPT, NO_NEWS_TEXT, build_prompt
from pulse.resolver import MarketResolver
from pulse.utils import utc_now

# Configure module logger
logger = logging.getLogger(__name__)


def compute_price_change(current: Number, previous: Number) -> float:
    """
    Relative change from previous to current price in percent.

    Rounded to one decimal. Returns 0.0 when the prices are equal or the
    previous price is zero.
    """
    if current == previous or not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


class PulseService:
    """
    Runs analysis requests against the configured providers.

    Components are injected so each can be replaced independently; use
    from_settings() to build the default wiring.
    """

    def __init__(
        self,
        settings: Settings,
        kalshi: KalshiClient,
        resolver: MarketResolver,
        selector: CommentSelector,
        requester: InsightRequester,
        news: Optional[NewsClient] = None
    ):
        self.settings = settings
        self.kalshi = kalshi
        self.resolver = resolver
        self.selector = selector
        self.requester = requester
        self.news = news

    @classmethod
    def from_settings(cls, settings: Settings) -> "PulseService":
        """Wire up the default provider clients from settings."""
        kalshi = KalshiClient(settings)
        return cls(
            settings=settings,
            kalshi=kalshi,
            resolver=MarketResolver(kalshi),
            selector=CommentSelector(kalshi, max_comments=settings.max_comments),
            requester=InsightRequester(settings),
            news=NewsClient(settings) if settings.news_enabled else None,
        )

    def analyze_market(self, ticker: str, series_ticker: Optional[str] = None) -> MarketAnalysis:
        """
        Explain a market's recent price movement.

        Args:
            ticker: Market ticker
            series_ticker: Optional series identifier

        Returns:
            MarketAnalysis

        Raises:
            PulseError: If resolution or generation fails
        """
        logger.info(f"Analyzing market: ticker={ticker!r} series={series_ticker!r}")

        market = self.resolver.resolve(ticker, series_ticker)
        movement = self.price_movement(market)
        news_text, news_count = self.news_digest(market)

        prompt = build_prompt(market, news_text=news_text, movement=movement)
        analysis = self.requester.request_analysis(prompt, MARKET_SYSTEM_PROMPT)

        return MarketAnalysis(
            ticker=ticker,
            title=market.title,
            current_price=market.last_price,
            analysis=analysis,
            timestamp=utc_now(),
            previous_price=movement.previous_price,
            price_change=movement.price_change,
            volume_24h=market.volume_24h,
            category=market.category,
            close_time=market.close_time,
            news_count=news_count,
        )

    def analyze_comments(
        self,
        ticker: str,
        series_ticker: Optional[str] = None,
        comments: Optional[list[str]] = None
    ) -> CommentAnalysis:
        """
        Summarize community sentiment for a market.

        Args:
            ticker: Market ticker
            series_ticker: Optional series identifier
            comments: Comments scraped from the market page, if any

        Returns:
            CommentAnalysis

        Raises:
            PulseError: If resolution or generation fails
        """
        logger.info(
            f"Analyzing comments: ticker={ticker!r} series={series_ticker!r} "
            f"page_comments={len(comments) if comments else 0}"
        )

        market = self.resolver.resolve(ticker, series_ticker)
        selection = self.selector.select_comments(comments, market)

        prompt = build_prompt(market, comments_text=selection.text)
        analysis = self.requester.request_analysis(prompt, COMMENTS_SYSTEM_PROMPT)

        return CommentAnalysis(
            ticker=ticker,
            title=market.title,
            current_price=market.last_price,
            analysis=analysis,
            timestamp=utc_now(),
            comment_count=len(selection.comments),
            has_comments=selection.has_comments,
            comment_source=selection.source,
        )

    def price_movement(self, market: MarketRecord, now: Optional[datetime] = None) -> PriceMovement:
        """
        Compare the current price with the start of the history window.

        When history is unavailable the current price is used as the
        previous price, giving a change of zero.
        """
        now = now or utc_now()
        end_ts = int(now.timestamp())
        start_ts = int((now - timedelta(hours=self.settings.history_lookback_hours)).timestamp())

        previous_price = market.last_price
        try:
            history = self.kalshi.get_history(
                market.ticker,
                start_ts=start_ts,
                end_ts=end_ts,
                period_interval=self.settings.history_period_interval,
            )
            if history:
                previous_price = history[0].close
        except PulseError as e:
            logger.info(f"Could not fetch history for {market.ticker}, using current price as previous: {e}")

        return PriceMovement(
            current_price=market.last_price,
            previous_price=previous_price,
            price_change=compute_price_change(market.last_price, previous_price),
        )

    def news_digest(self, market: MarketRecord) -> tuple[str, int]:
        """
        Search news related to a market and render the headline digest.

        Returns:
            (digest text, number of articles found); NO_NEWS_TEXT and 0 when
            news is disabled or the search fails
        """
        if self.news is None:
            logger.debug("News search disabled (no NEWS_API_KEY)")
            return NO_NEWS_TEXT, 0

        if self.settings.use_llm_keywords:
            keywords = generate_keywords(market.title, self.requester)
        else:
            keywords = extract_keywords(market.title)

        if not keywords:
            logger.info(f"No keywords extracted from {market.title!r}, skipping news")
            return NO_NEWS_TEXT, 0

        try:
            articles = self.news.search(build_query(keywords))
        except PulseError as e:
            logger.warning(f"Could not fetch news: {e}")
            return NO_NEWS_TEXT, 0

        return format_news(articles), len(articles)
