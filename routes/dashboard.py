"""
Dashboard routes.

Handles:
- / - Filtered, sorted order list with stats and status chart
- /refresh - Reload all orders from the sheet
- /error/dismiss - Hide the error banner
- /summary - AI summary of the filtered orders

Filters come from the query string: start, end (YYYY-MM-DD) and q
(order id search). The view is recomputed on every request.
"""

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from models.order_view import OrderView
from services.order_view import build_order_view, default_date_range, parse_filter_date
from services.summary_service import summary_blocks
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

dashboard_bp = Blueprint("dashboard", __name__)


def view_from_request(source=None) -> OrderView:
    """
    Build the dashboard view for the current request's filters.

    Args:
        source: Mapping to read start/end/q from (default: request.args)
    """
    source = request.args if source is None else source
    store = current_app.config["ORDER_STORE"]

    default_start, default_end = default_date_range()
    start_date = parse_filter_date(source.get("start"), default_start)
    end_date = parse_filter_date(source.get("end"), default_end)
    search = source.get("q", "")

    return build_order_view(store.orders, start_date, end_date, search)


def filter_args(view: OrderView) -> dict:
    """Query arguments that reproduce a view's filters."""
    args = {
        "start": view.start_date.isoformat(),
        "end": view.end_date.isoformat(),
    }
    if view.search:
        args["q"] = view.search
    return args


@dashboard_bp.route("/", methods=["GET"])
def index():
    """
    Main dashboard.

    Redirects to setup while no endpoint is configured. The first visit
    after startup (or after setup) loads the orders from the sheet.
    """
    endpoint_config = current_app.config["ENDPOINT_CONFIG"]
    store = current_app.config["ORDER_STORE"]

    if not endpoint_config.is_configured:
        return redirect(url_for("setup.setup"))

    if not store.loaded:
        result = store.refresh()
        if not result.ok:
            return redirect(url_for("setup.setup"))

    view = view_from_request()
    return render_template("dashboard.html", view=view, filters=filter_args(view))


@dashboard_bp.route("/refresh", methods=["POST"])
def refresh():
    """Reload all orders. A failed listing sends the user back to setup."""
    endpoint_config = current_app.config["ENDPOINT_CONFIG"]
    store = current_app.config["ORDER_STORE"]

    if not endpoint_config.is_configured:
        return redirect(url_for("setup.setup"))

    result = store.refresh()
    if not result.ok:
        return redirect(url_for("setup.setup"))

    flash(f"Loaded {len(store.orders)} orders.", "success")
    return redirect(url_for("dashboard.index", **filter_args(view_from_request(request.form))))


@dashboard_bp.route("/error/dismiss", methods=["POST"])
def dismiss_error():
    """Hide the error banner."""
    current_app.config["ORDER_STORE"].clear_error()
    return redirect(request.referrer or url_for("dashboard.index"))


@dashboard_bp.route("/summary", methods=["POST"])
def summary():
    """Render the AI summary for the orders currently shown."""
    if not current_app.config["ENDPOINT_CONFIG"].is_configured:
        return redirect(url_for("setup.setup"))

    view = view_from_request(request.form)
    summary_service = current_app.config["SUMMARY_SERVICE"]

    logger.info(f"AI summary requested for {view.total_orders} orders")
    text = summary_service.summarize(list(view.orders))

    return render_template(
        "summary.html",
        view=view,
        filters=filter_args(view),
        blocks=summary_blocks(text),
    )
