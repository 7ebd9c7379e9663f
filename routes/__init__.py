"""
Flask route blueprints for Jewel Order Desk.

This module contains all route handlers organized by functionality:
- dashboard: Filtered order list, stats, refresh, AI summary page
- setup: Google Sheet endpoint setup and reset
- orders: Add, view, edit, status change, delete
- export: CSV download of the filtered view
- api: JSON endpoints (orders, summary, health)

Each blueprint is registered with the Flask app in create_app().
"""

from .dashboard import dashboard_bp
from .setup import setup_bp
from .orders import orders_bp
from .export import export_bp
from .api import api_bp

__all__ = [
    "dashboard_bp",
    "setup_bp",
    "orders_bp",
    "export_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(setup_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(export_bp)
    app.register_blueprint(api_bp)
