"""
CSV export route.

Exports exactly what the dashboard shows: the same filters, the same
newest-first order.
"""

from flask import Blueprint, Response, current_app, flash, redirect, url_for

from services.csv_export import export_filename, export_orders_csv
from logging_config import get_logger
from .dashboard import filter_args, view_from_request


# Module logger
logger = get_logger(__name__)

export_bp = Blueprint("export", __name__)


@export_bp.route("/export.csv", methods=["GET"])
def export_csv():
    """Download the filtered orders as CSV."""
    if not current_app.config["ENDPOINT_CONFIG"].is_configured:
        return redirect(url_for("setup.setup"))

    view = view_from_request()
    if not view.orders:
        flash("There are no orders to export for these filters.", "info")
        return redirect(url_for("dashboard.index", **filter_args(view)))

    logger.info(f"Exporting {view.total_orders} orders to CSV")
    return Response(
        export_orders_csv(view.orders),
        mimetype="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename()}"',
        },
    )
