"""
Configuration management for the Kalshi Pulse relay.

This module loads all configuration from environment variables (optionally
via a .env file) into a single immutable Settings object. The object is built
once at process start and handed to each component constructor.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes", "on")."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """
    Read-only configuration for the Kalshi Pulse relay.

    API keys must be provided via environment variables. Every other value
    has a sensible default matching the public provider endpoints.
    """

    # API Keys
    openai_api_key: Optional[str] = None
    news_api_key: Optional[str] = None

    # Provider endpoints
    kalshi_api_url: str = "https://api.elections.kalshi.com/trade-api/v2"
    news_api_url: str = "https://newsapi.org/v2/everything"
    openai_api_url: str = "https://api.openai.com/v1/chat/completions"

    # Generation parameters
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.7
    openai_max_tokens: int = 600

    # Request timeouts (seconds)
    market_timeout: float = 10.0
    api_timeout: float = 30.0

    # Enrichment
    news_lookback_hours: int = 48
    news_page_size: int = 10
    history_lookback_hours: int = 24
    history_period_interval: int = 60
    max_comments: int = 50
    use_llm_keywords: bool = True

    # Relay
    host: str = "127.0.0.1"
    port: int = 3000
    cors_origin: str = "*"
    user_agent: str = "Kalshi-Pulse-Bot/1.0"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        Loads a .env file first if one exists. Values already present in the
        environment take precedence over the file.

        Returns:
            Settings instance
        """
        load_dotenv()

        log_file = os.getenv("LOG_FILE")

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            news_api_key=os.getenv("NEWS_API_KEY") or None,
            kalshi_api_url=os.getenv("KALSHI_API_URL", cls.kalshi_api_url).rstrip("/"),
            news_api_url=os.getenv("NEWS_API_URL", cls.news_api_url),
            openai_api_url=os.getenv("OPENAI_API_URL", cls.openai_api_url),
            openai_model=os.getenv("OPENAI_MODEL", cls.openai_model),
            openai_temperature=float(os.getenv("OPENAI_TEMPERATURE", str(cls.openai_temperature))),
            openai_max_tokens=int(os.getenv("OPENAI_MAX_TOKENS", str(cls.openai_max_tokens))),
            market_timeout=float(os.getenv("MARKET_TIMEOUT", str(cls.market_timeout))),
            api_timeout=float(os.getenv("API_TIMEOUT", str(cls.api_timeout))),
            news_lookback_hours=int(os.getenv("NEWS_LOOKBACK_HOURS", str(cls.news_lookback_hours))),
            news_page_size=int(os.getenv("NEWS_PAGE_SIZE", str(cls.news_page_size))),
            history_lookback_hours=int(os.getenv("HISTORY_LOOKBACK_HOURS", str(cls.history_lookback_hours))),
            history_period_interval=int(os.getenv("HISTORY_PERIOD_INTERVAL", str(cls.history_period_interval))),
            max_comments=int(os.getenv("MAX_COMMENTS", str(cls.max_comments))),
            use_llm_keywords=_env_bool("USE_LLM_KEYWORDS", cls.use_llm_keywords),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", str(cls.port))),
            cors_origin=os.getenv("CORS_ORIGIN", cls.cors_origin),
            user_agent=os.getenv("USER_AGENT", cls.user_agent),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            log_file=Path(log_file) if log_file else None,
        )

    @property
    def news_enabled(self) -> bool:
        """Whether news enrichment can run (a NewsAPI key is configured)."""
        return bool(self.news_api_key)

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate that all required configuration values are present.

        Returns:
            tuple: (is_valid, list_of_errors)
        """
        errors: list[str] = []

        if not self.openai_api_key:
            errors.append("OPENAI_API_KEY is required but not set")

        if not (0.0 <= self.openai_temperature <= 2.0):
            errors.append("OPENAI_TEMPERATURE must be between 0.0 and 2.0")

        if self.openai_max_tokens < 1:
            errors.append("OPENAI_MAX_TOKENS must be at least 1")

        if self.market_timeout <= 0 or self.api_timeout <= 0:
            errors.append("MARKET_TIMEOUT and API_TIMEOUT must be positive")

        if self.max_comments < 1:
            errors.append("MAX_COMMENTS must be at least 1")

        if self.news_page_size < 1:
            errors.append("NEWS_PAGE_SIZE must be at least 1")

        if self.history_lookback_hours < 1:
            errors.append("HISTORY_LOOKBACK_HOURS must be at least 1")

        if not (0 < self.port < 65536):
            errors.append("PORT must be between 1 and 65535")

        return (len(errors) == 0, errors)

    def ensure_directories(self) -> None:
        """Create the log file's parent directory if file logging is enabled."""
        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
