"""
Utility functions for the Kalshi Pulse relay.

This module provides shared helper utilities used across the codebase:
number and timestamp coercion for provider payloads, lenient JSON parsing for
model output, and the ordered-strategy combinator behind every fallback chain.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar, Union

# Configure module logger
logger = logging.getLogger(__name__)

# Type variable for generic strategy results
T = TypeVar('T')


@dataclass(frozen=True)
class Attempt(Generic[T]):
    """
    Outcome of a single fallback strategy.

    A strategy either succeeds with a value or asks to be skipped so the next
    strategy can run. Failures that must abort the whole chain are raised as
    exceptions instead of being returned.

    Attributes:
        value: Result of a successful strategy
        skipped: True when the next strategy should be tried
        reason: Why the strategy was skipped (for logging)
    """
    value: Optional[T] = None
    skipped: bool = False
    reason: str = ""

    @classmethod
    def success(cls, value: T) -> "Attempt[T]":
        return cls(value=value)

    @classmethod
    def skip(cls, reason: str) -> "Attempt[T]":
        return cls(skipped=True, reason=reason)


Strategy = tuple[str, Callable[[], Attempt[T]]]


def first_success(strategies: Iterable[Strategy]) -> Optional[T]:
    """
    Run named strategies in order and return the first successful value.

    Strategies are evaluated lazily: once one succeeds, the rest are never
    called. An exception raised by a strategy aborts the chain and propagates
    to the caller unchanged.

    Args:
        strategies: Iterable of (name, callable) pairs

    Returns:
        Value of the first successful strategy, or None if every one skipped

    Example:
        market = first_success([
            ("series", lambda: _from_series(ticker)),
            ("direct", lambda: _direct(ticker)),
        ])
    """
    for name, strategy in strategies:
        attempt = strategy()

        if not attempt.skipped:
            logger.debug(f"Strategy '{name}' succeeded")
            return attempt.value

        logger.debug(f"Strategy '{name}' skipped: {attempt.reason}")

    return None


def parse_json_list(text: str) -> Optional[list]:
    """
    Pull a JSON array out of model output.

    Models often wrap the array in a code fence or a sentence of prose, so
    only the span from the first "[" to the last "]" is decoded.

    Returns:
        The decoded list, or None when no array can be decoded
    """
    if not text or not isinstance(text, str):
        return None

    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        return None

    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        logger.debug(f"Could not decode JSON array: {e}")
        return None

    return parsed if isinstance(parsed, list) else None


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def safe_number(value: Any, default: Union[int, float] = 0) -> Union[int, float]:
    """
    Coerce a provider value to a number without losing precision.

    Integers stay integers and floats stay floats; numeric strings are parsed
    the same way ("45" -> 45, "45.5" -> 45.5). Booleans, None and anything
    unparseable yield the default.

    Args:
        value: Value to convert
        default: Default value if conversion fails (default: 0)

    Returns:
        int or float
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        return value

    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            logger.debug(f"Could not convert '{value}' to a number, using default {default}")
            return default

    return default


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 string or a Unix timestamp into a UTC datetime.

    Args:
        value: ISO 8601 string (with or without "Z"), or seconds since epoch

    Returns:
        Datetime object if parsing succeeds, None otherwise
    """
    if value is None or value == "":
        return None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Could not parse timestamp: {value}")
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_number(value: Union[int, float]) -> str:
    """
    Render a number exactly as received.

    Integers print without a decimal point and floats print with their full
    precision, so 45 -> "45" and 45.25 -> "45.25". No rounding is applied.
    """
    return str(value)


def format_percentage_change(value: float) -> str:
    """
    Format a relative change with an explicit sign and one decimal.

    Args:
        value: Percentage change (e.g. 12.5 for +12.5%)

    Returns:
        Formatted string (e.g. "+12.5%", "-3.0%")
    """
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.1f}%"
