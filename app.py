"""
Jewel Order Desk - Flask Application Entry Point.

This is a slim app factory that:
1. Loads the saved Google Sheet endpoint (setup page if there is none)
2. Creates the sheet client, the order store and the AI summary service
3. Registers route blueprints
4. Sets up error handlers and context processors

ARCHITECTURE:
    Request threads (Flask)
    └── OrderStore  (optimistic updates, snapshot rollback)
        ├── SheetAPIClient         (GET/POST to the Apps Script)
        └── EndpointConfigService  (saved URL, cleared on listing failure)

All collaborators live in app.config; tests inject fakes through
test_config (SHEET_CLIENT, SUMMARY_SERVICE).
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from flask import Flask, flash, redirect, url_for
from werkzeug.exceptions import RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.endpoint_config import EndpointConfigService
from core.sheet_client import SheetAPIClient
from models.order import Order, OrderStatus
from services.order_store import OrderStore, StoreEvent
from services.summary_service import SummaryService
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In a frozen bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def _log_store_event(event: StoreEvent, orders: List[Order]) -> None:
    logger.debug(f"Store {event.value}: {len(orders)} orders")


def create_app(test_config: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        test_config: Config overrides applied after config.Config. May carry
            pre-built SHEET_CLIENT / SUMMARY_SERVICE objects.

    Returns:
        Configured Flask application
    """
    # Use override=True so .env file always takes precedence over shell environment
    base_path = _get_base_path()
    env_file = base_path / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object("config.Config")
    if test_config:
        app.config.update(test_config)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting Jewel Order Desk in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    sheet_client = app.config.get("SHEET_CLIENT") or SheetAPIClient(
        timeout=app.config.get("SHEET_REQUEST_TIMEOUT"),
        logger=get_logger("core.sheet_client"),
    )
    app.config["SHEET_CLIENT"] = sheet_client

    endpoint_config = EndpointConfigService(
        Path(app.config["ENDPOINT_SETTINGS_FILE"]),
        sheet_client
    )
    endpoint_config.load()
    app.config["ENDPOINT_CONFIG"] = endpoint_config

    order_store = OrderStore(sheet_client, endpoint_config)
    order_store.subscribe(_log_store_event)
    app.config["ORDER_STORE"] = order_store
    logger.info("Order store initialized")

    if not app.config.get("SUMMARY_SERVICE"):
        app.config["SUMMARY_SERVICE"] = SummaryService(
            api_key=app.config.get("OPENAI_API_KEY"),
            model=app.config.get("OPENAI_MODEL", "gpt-4o-mini"),
        )

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # CONTEXT PROCESSORS
    # =========================================================================

    @app.context_processor
    def inject_order_desk():
        """Inject the status list and error banner into all templates."""
        return {
            "order_statuses": list(OrderStatus),
            "store_error": order_store.error,
            "endpoint_configured": endpoint_config.is_configured,
        }

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 16 * 1024 * 1024) / (1024 * 1024)
        flash(f"Image too large. Maximum upload size is {max_mb:.0f} MB.", "error")
        return redirect(url_for("dashboard.index"))

    @app.errorhandler(404)
    def handle_not_found(e):
        flash("Page not found.", "warning")
        return redirect(url_for("dashboard.index"))

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        flash("An unexpected error occurred. Please try again.", "error")
        return redirect(url_for("dashboard.index"))

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
