"""
HTTP relay between the browser extension and the analysis service.

Launch: python -m pulse.main serve
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request

from pulse.analysis import PulseService
from pulse.config import Settings
from pulse.errors import PulseError
from pulse.kalshi_client import KalshiClient
from pulse.utils import utc_now

# Configure module logger
logger = logging.getLogger(__name__)


def _error(msg, status=500):
    return jsonify({"error": str(msg)}), status


def _parse_request(require_comments_list: bool = False):
    """
    Read ticker, series_ticker and comments from the JSON body.

    Returns:
        (ticker, series_ticker, comments, error_response)
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}

    ticker = body.get("ticker")
    if not isinstance(ticker, str) or not ticker.strip():
        return None, None, None, _error("ticker is required", 400)

    series_ticker = body.get("series_ticker")
    if not isinstance(series_ticker, str) or not series_ticker.strip():
        series_ticker = None

    comments = body.get("comments")
    if require_comments_list and comments is not None:
        if not isinstance(comments, list):
            return None, None, None, _error("comments must be a list of strings", 400)
        comments = [c for c in comments if isinstance(c, str)]

    return ticker.strip(), series_ticker.strip() if series_ticker else None, comments, None


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[PulseService] = None,
    kalshi: Optional[KalshiClient] = None
) -> Flask:
    """
    Build the Flask relay.

    Args:
        settings: Configuration (default: Settings.from_env())
        service: Analysis service (default: built from settings)
        kalshi: Client used by the connectivity probe (default: the service's)

    Returns:
        Flask application
    """
    settings = settings or Settings.from_env()
    service = service or PulseService.from_settings(settings)
    kalshi = kalshi or service.kalshi

    app = Flask(__name__)
    app.config["PULSE_SETTINGS"] = settings

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = settings.cors_origin
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = (
            "Content-Type, Authorization, ngrok-skip-browser-warning"
        )
        response.headers["ngrok-skip-browser-warning"] = "true"
        return response

    @app.route("/api/analyze-market", methods=["POST", "OPTIONS"])
    def analyze_market():
        if request.method == "OPTIONS":
            return "", 204

        ticker, series_ticker, _, error = _parse_request()
        if error:
            return error

        logger.info(f"Received market analysis request: ticker={ticker!r} series={series_ticker!r}")

        try:
            result = service.analyze_market(ticker, series_ticker)
        except PulseError as e:
            logger.error(f"Error analyzing market {ticker}: {e}")
            return _error(e)
        except Exception as e:
            logger.error(f"Unexpected error analyzing market {ticker}: {e}", exc_info=True)
            return _error(e)

        return jsonify(result.to_dict())

    @app.route("/api/analyze-comments", methods=["POST", "OPTIONS"])
    def analyze_comments():
        if request.method == "OPTIONS":
            return "", 204

        ticker, series_ticker, comments, error = _parse_request(require_comments_list=True)
        if error:
            return error

        logger.info(
            f"Received comment analysis request: ticker={ticker!r} series={series_ticker!r} "
            f"comments={len(comments) if comments else 0}"
        )

        try:
            result = service.analyze_comments(ticker, series_ticker, comments)
        except PulseError as e:
            logger.error(f"Error analyzing comments for {ticker}: {e}")
            return _error(e)
        except Exception as e:
            logger.error(f"Unexpected error analyzing comments for {ticker}: {e}", exc_info=True)
            return _error(e)

        return jsonify(result.to_dict())

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "timestamp": utc_now().isoformat()})

    @app.route("/test-kalshi")
    def test_kalshi():
        try:
            status = kalshi.get_exchange_status()
        except PulseError as e:
            logger.error(f"Kalshi connectivity check failed: {e}")
            return jsonify({
                "status": "error",
                "message": "Cannot reach Kalshi API",
                "error": str(e),
                "code": getattr(e, "code", None) or getattr(e, "status_code", None),
                "baseUrl": settings.kalshi_api_url,
            }), 500

        return jsonify({
            "status": "success",
            "message": "Kalshi API is reachable",
            "data": status,
        })

    return app
