"""
Main entry point for the Kalshi Pulse relay.

Commands:
- serve: run the HTTP relay used by the browser extension
- market: analyze a market's recent price movement once and print it
- comments: analyze community sentiment for a market once and print it
- check: validate configuration and probe the Kalshi API
"""

import argparse
import logging
import sys
from typing import Optional

from pulse.analysis import PulseService
from pulse.config import Settings
from pulse.errors import PulseError
from pulse.reporter import print_report


def setup_logging(settings: Settings) -> None:
    """Configure logging for the application."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if settings.log_file:
        settings.ensure_directories()
        handlers.append(logging.FileHandler(settings.log_file))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers
    )


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kalshi-pulse",
        description="Kalshi Pulse - AI analysis relay for Kalshi markets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the relay for the browser extension
  python -m pulse.main serve --port 3000

  # Analyze a market once
  python -m pulse.main market KXFEDDECISION-25DEC-H0 --series KXFEDDECISION

  # Analyze comments you copied from the page
  python -m pulse.main comments KXFEDDECISION-25DEC-H0 --comment "Powell sounded dovish"
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP relay")
    serve.add_argument("--host", default=None, help="Bind address (overrides HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (overrides PORT)")
    serve.add_argument("--debug", action="store_true", help="Enable Flask debug mode")

    market = subparsers.add_parser("market", help="Analyze a market's price movement")
    market.add_argument("ticker", help="Market ticker")
    market.add_argument("--series", default=None, help="Series ticker")

    comments = subparsers.add_parser("comments", help="Analyze community sentiment")
    comments.add_argument("ticker", help="Market ticker")
    comments.add_argument("--series", default=None, help="Series ticker")
    comments.add_argument(
        "--comment",
        action="append",
        default=None,
        help="Comment text from the market page (repeatable)"
    )

    subparsers.add_parser("check", help="Validate configuration and probe the Kalshi API")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure, 130 when interrupted)
    """
    args = build_parser().parse_args(argv)

    settings = Settings.from_env()
    setup_logging(settings)

    is_valid, errors = settings.validate()
    if not is_valid:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        if args.command != "check":
            return 1

    try:
        if args.command == "serve":
            return _run_server(settings, args.host, args.port, args.debug)

        service = PulseService.from_settings(settings)

        if args.command == "check":
            return _run_check(service, is_valid)

        if args.command == "market":
            result = service.analyze_market(args.ticker, args.series)
        else:
            result = service.analyze_comments(args.ticker, args.series, args.comment)

        print_report(result)
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    except PulseError as e:
        logger.error(f"Analysis failed: {e}")
        return 1


def _run_server(settings: Settings, host: Optional[str], port: Optional[int], debug: bool) -> int:
    from pulse.server import create_app

    app = create_app(settings)
    host = host or settings.host
    port = port or settings.port

    logger.info(f"Server running on http://{host}:{port}")
    app.run(host=host, port=port, debug=debug)
    return 0


def _run_check(service: PulseService, config_valid: bool) -> int:
    try:
        service.kalshi.get_exchange_status()
    except PulseError as e:
        logger.error(f"Cannot reach Kalshi API: {e}")
        return 1

    logger.info(f"Kalshi API is reachable at {service.settings.kalshi_api_url}")
    return 0 if config_valid else 1


if __name__ == "__main__":
    sys.exit(main())
