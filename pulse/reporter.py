"""
Reporter module for printing analysis results in the terminal.

This module formats MarketAnalysis and CommentAnalysis results with their key
metrics followed by the generated analysis text.
"""

from typing import Union

from pulse.models import CommentAnalysis, MarketAnalysis
from pulse.utils import format_number, format_percentage_change

WIDTH = 80


def generate_report(result: Union[MarketAnalysis, CommentAnalysis]) -> str:
    """
    Generate a formatted report for an analysis result.

    Args:
        result: MarketAnalysis or CommentAnalysis

    Returns:
        Formatted report string
    """
    kind = "MARKET ANALYSIS" if isinstance(result, MarketAnalysis) else "COMMENT SENTIMENT"

    header = f"""
{'=' * WIDTH}
  KALSHI PULSE - {kind}
{'=' * WIDTH}
{result.title}
Ticker: {result.ticker}
Generated: {result.timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')}
{'=' * WIDTH}
"""

    if isinstance(result, MarketAnalysis):
        metrics = _market_metrics(result)
    else:
        metrics = _comment_metrics(result)

    return f"{header.strip()}\n\n{metrics}\n\nANALYSIS\n{'-' * WIDTH}\n{result.analysis.strip()}\n"


def print_report(result: Union[MarketAnalysis, CommentAnalysis]) -> None:
    """Print the report for a result to stdout."""
    print(generate_report(result))


def _market_metrics(result: MarketAnalysis) -> str:
    close_str = result.close_time.strftime("%Y-%m-%d") if result.close_time else "N/A"

    lines = [
        "KEY METRICS",
        "-" * WIDTH,
        f"  Current: {format_number(result.current_price)}%",
        f"  Previous (24h): {format_number(result.previous_price)}%",
        f"  Change: {format_percentage_change(result.price_change)}",
        f"  Volume (24h): {format_number(result.volume_24h)} contracts",
        f"  Category: {result.category or 'N/A'}",
        f"  Closes: {close_str}",
        f"  News articles: {result.news_count}",
    ]
    return "\n".join(lines)


def _comment_metrics(result: CommentAnalysis) -> str:
    if result.has_comments:
        summary = f"{result.comment_count} comments analyzed (source: {result.comment_source})"
    else:
        summary = "No public comments available - analysis based on market metrics"

    lines = [
        "KEY METRICS",
        "-" * WIDTH,
        f"  Current: {format_number(result.current_price)}%",
        f"  {summary}",
    ]
    return "\n".join(lines)
