"""
Endpoint setup routes.

First-run flow: the user deploys the Apps Script on their sheet and pastes
the web app URL here. The URL is only saved after a trial listing against
it succeeds; the orders fetched by that listing seed the store.
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

from core.exceptions import InvalidEndpointError
from core.row_codec import COLUMN_ORDER
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

setup_bp = Blueprint("setup", __name__)

SHEET_HEADERS = (
    "Order ID", "Date of Issue", "Product", "Pieces", "File Number",
    "Karigar Name", "Status", "Number in Bill", "Image URL",
)


def _apps_script_source() -> str:
    with current_app.open_resource("static/apps_script.gs") as f:
        return f.read().decode("utf-8")


@setup_bp.route("/setup", methods=["GET", "POST"])
def setup():
    """
    Endpoint setup page.

    GET: Show setup instructions and the URL form
    POST: Validate and save the URL, then go to the dashboard
    """
    endpoint_config = current_app.config["ENDPOINT_CONFIG"]
    store = current_app.config["ORDER_STORE"]
    entered_url = ""

    if request.method == "POST":
        entered_url = request.form.get("url", "")
        try:
            orders = endpoint_config.save(entered_url)
        except InvalidEndpointError as e:
            flash(e.message, "error")
        else:
            store.seed(orders)
            flash("Connected to Google Sheets.", "success")
            return redirect(url_for("dashboard.index"))

    return render_template(
        "setup.html",
        entered_url=entered_url,
        sheet_headers=SHEET_HEADERS,
        column_order=COLUMN_ORDER,
        apps_script=_apps_script_source(),
        current_url=endpoint_config.url,
    )


@setup_bp.route("/setup/reset", methods=["POST"])
def reset():
    """Forget the saved endpoint and return to setup."""
    current_app.config["ENDPOINT_CONFIG"].clear()
    flash("Google Sheet connection removed.", "info")
    return redirect(url_for("setup.setup"))
