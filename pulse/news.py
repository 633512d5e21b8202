"""
News search for enriching market analysis.

This module turns a market title into search keywords, queries NewsAPI for
recent articles and renders the top headlines as a short digest for the
prompt. It performs no reasoning of its own - only keyword selection,
retrieval and formatting.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Optional

import requests
from requests.exceptions import RequestException, Timeout, ConnectionError

from pulse.config import Settings
from pulse.errors import PulseError, UpstreamError, UpstreamUnavailableError
from pulse.insight import PLACEHOLDER_ANALYSIS, InsightRequester
from pulse.models import NewsArticle
from pulse.prompts import KEYWORDS_SYSTEM_PROMPT, NO_NEWS_TEXT, build_keywords_prompt
from pulse.utils import parse_json_list, parse_timestamp, utc_now

# Configure module logger
logger = logging.getLogger(__name__)

PROVIDER = "newsapi"

MAX_KEYWORDS = 5

STOP_WORDS = frozenset([
    "will", "the", "be", "to", "of", "a", "an",
    "in", "on", "at", "by", "for", "with", "about",
    "as", "from", "this", "that", "these", "those",
])


def extract_keywords(title: str, max_keywords: int = MAX_KEYWORDS) -> list[str]:
    """
    Pick search keywords from a market title without calling any API.

    Lower-cases the title, strips punctuation, and keeps words longer than
    three characters that are neither stop words nor numbers, in title order
    and without duplicates.

    Args:
        title: Market title
        max_keywords: Maximum number of keywords

    Returns:
        List of keywords
    """
    cleaned = re.sub(r"[^\w\s]", "", title.lower())

    keywords: list[str] = []
    for word in cleaned.split():
        if len(word) <= 3 or word in STOP_WORDS or _is_number(word):
            continue
        if word not in keywords:
            keywords.append(word)

    return keywords[:max_keywords]


def generate_keywords(
    title: str,
    requester: InsightRequester,
    max_keywords: int = MAX_KEYWORDS
) -> list[str]:
    """
    Ask the text-generation API for search keywords, with a heuristic fallback.

    The model is asked for a JSON array; a plain comma or newline separated
    list is accepted too. When the call fails or yields nothing usable,
    extract_keywords() is used instead.

    Args:
        title: Market title
        requester: Text-generation client
        max_keywords: Maximum number of keywords

    Returns:
        List of keywords
    """
    try:
        response = requester.request_analysis(
            build_keywords_prompt(title, max_keywords),
            KEYWORDS_SYSTEM_PROMPT,
        )
    except PulseError as e:
        logger.warning(f"Keyword generation failed, using title keywords: {e}")
        return extract_keywords(title, max_keywords)

    keywords = _parse_keywords(response, max_keywords)
    if not keywords:
        logger.info("Keyword generation returned nothing usable, using title keywords")
        return extract_keywords(title, max_keywords)

    return keywords


def _parse_keywords(response: str, max_keywords: int) -> list[str]:
    if not response or response == PLACEHOLDER_ANALYSIS:
        return []

    parsed = parse_json_list(response)
    if isinstance(parsed, list):
        candidates = [str(item) for item in parsed if item is not None]
    else:
        candidates = re.split(r"[,\n]", response)

    keywords: list[str] = []
    for candidate in candidates:
        keyword = candidate.strip().strip("-*•\"'").strip()
        if len(keyword) < 2 or keyword.upper() == "OR":
            continue
        if keyword.lower() not in (k.lower() for k in keywords):
            keywords.append(keyword)

    return keywords[:max_keywords]


def build_query(keywords: list[str]) -> str:
    """Join keywords into a NewsAPI query, quoting multi-word phrases."""
    terms = [f'"{keyword}"' if " " in keyword else keyword for keyword in keywords]
    return " OR ".join(terms)


def format_news(articles: list[NewsArticle], limit: int = 5) -> str:
    """
    Render the top articles as a numbered headline list.

    Args:
        articles: Articles in relevance order
        limit: Maximum number of headlines

    Returns:
        Lines of the form "1. <title> (<source>, <YYYY-MM-DD>)", or
        NO_NEWS_TEXT when there are no articles
    """
    if not articles:
        return NO_NEWS_TEXT

    lines = []
    for idx, article in enumerate(articles[:limit], 1):
        date_str = article.published_at.strftime("%Y-%m-%d") if article.published_at else "unknown date"
        lines.append(f"{idx}. {article.title} ({article.source_name}, {date_str})")

    return "\n".join(lines)


def parse_article(data: Any) -> Optional[NewsArticle]:
    """
    Parse a NewsAPI article dictionary.

    Returns None for entries without a title or that NewsAPI marks as removed.
    """
    if not isinstance(data, dict):
        return None

    title = data.get("title")
    if not isinstance(title, str) or not title.strip() or title.strip() == "[Removed]":
        return None

    source = data.get("source")
    source_name = source.get("name") if isinstance(source, dict) else None

    return NewsArticle(
        title=title.strip(),
        source_name=str(source_name or "Unknown source"),
        published_at=parse_timestamp(data.get("publishedAt")),
        url=str(data.get("url") or ""),
        description=str(data.get("description") or ""),
    )


class NewsClient:
    """Client for the NewsAPI "everything" search endpoint."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def search(self, query: str, now: Optional[datetime] = None) -> list[NewsArticle]:
        """
        Search recent English-language articles, newest first.

        Args:
            query: NewsAPI query string
            now: Reference time for the lookback window (default: current UTC time)

        Returns:
            Parsed articles; empty when the query is blank

        Raises:
            UpstreamUnavailableError: On timeout or connection failure
            UpstreamError: On an error status or malformed payload
        """
        if not query.strip():
            logger.info("Empty news query, skipping search")
            return []

        if not self.settings.news_api_key:
            raise UpstreamError(PROVIDER, 401, "NEWS_API_KEY is not configured")

        now = now or utc_now()
        from_date = now - timedelta(hours=self.settings.news_lookback_hours)

        params = {
            "q": query,
            "from": from_date.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "language": "en",
            "sortBy": "publishedAt",
            "pageSize": self.settings.news_page_size,
        }

        logger.info(f"Searching news for: {query}")

        try:
            response = self.session.get(
                self.settings.news_api_url,
                params=params,
                headers={"X-Api-Key": self.settings.news_api_key},
                timeout=self.settings.api_timeout,
            )
        except Timeout as e:
            logger.error(f"NewsAPI request timed out after {self.settings.api_timeout}s")
            raise UpstreamUnavailableError(PROVIDER, type(e).__name__, str(e)) from e
        except ConnectionError as e:
            logger.error(f"Connection error calling NewsAPI: {e}")
            raise UpstreamUnavailableError(PROVIDER, type(e).__name__, str(e)) from e
        except RequestException as e:
            logger.error(f"NewsAPI request failed: {e}")
            raise UpstreamUnavailableError(PROVIDER, type(e).__name__, str(e)) from e

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(PROVIDER, response.status_code, f"invalid JSON: {e}") from e

        if not response.ok or not isinstance(data, dict) or data.get("status") == "error":
            message = data.get("message") if isinstance(data, dict) else None
            raise UpstreamError(PROVIDER, response.status_code, str(message or "unexpected response"))

        raw_articles = data.get("articles")
        if not isinstance(raw_articles, list):
            return []

        articles = [article for article in map(parse_article, raw_articles) if article]
        logger.info(f"NewsAPI returned {len(articles)} articles")
        return articles


def _is_number(word: str) -> bool:
    try:
        float(word)
        return True
    except ValueError:
        return False
