"""
API routes (JSON endpoints).

Handles:
- /api/orders - Filtered view as JSON (same query args as the dashboard)
- /api/summary - AI summary of the filtered orders
- /health - Health check endpoint
"""

from flask import Blueprint, current_app, request

from services.summary_service import summary_blocks
from logging_config import get_logger
from .dashboard import view_from_request


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


def _not_configured():
    return {
        "status": "error",
        "message": "Google Sheet endpoint is not configured",
    }, 409


@api_bp.route("/api/orders", methods=["GET"])
def orders():
    """Filtered, sorted orders with stats."""
    if not current_app.config["ENDPOINT_CONFIG"].is_configured:
        return _not_configured()

    store = current_app.config["ORDER_STORE"]
    if not store.loaded:
        result = store.refresh()
        if not result.ok:
            return {"status": "error", "message": result.error}, 502

    view = view_from_request()
    return {"status": "success", "data": view.to_dict(), "error": store.error}


@api_bp.route("/api/summary", methods=["POST"])
def summary():
    """
    AI summary for the filtered orders.

    Filters are read from the JSON body, falling back to the query string.
    Service errors come back as summary text, never as an HTTP error.
    """
    if not current_app.config["ENDPOINT_CONFIG"].is_configured:
        return _not_configured()

    body = request.get_json(silent=True)
    view = view_from_request(body if isinstance(body, dict) else None)
    text = current_app.config["SUMMARY_SERVICE"].summarize(list(view.orders))

    return {
        "status": "success",
        "summary": text,
        "blocks": [{"kind": b.kind, "text": b.text} for b in summary_blocks(text)],
        "orderCount": view.total_orders,
    }


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    endpoint_config = current_app.config.get("ENDPOINT_CONFIG")
    if endpoint_config and endpoint_config.is_configured:
        health_status["checks"]["endpoint"] = "configured"
    else:
        health_status["checks"]["endpoint"] = "not_configured"
        health_status["status"] = "degraded"

    store = current_app.config.get("ORDER_STORE")
    if store and store.loaded:
        health_status["checks"]["orders"] = f"{len(store.orders)} loaded"
    else:
        health_status["checks"]["orders"] = "not_loaded"

    summary_service = current_app.config.get("SUMMARY_SERVICE")
    health_status["checks"]["ai_summary"] = (
        "enabled" if summary_service and summary_service.enabled else "disabled"
    )

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
