"""
Order routes.

Handles add, view, edit, status change and delete. Every change goes
through the OrderStore; when the sheet rejects it the store rolls back and
the error banner explains what happened.
"""

import base64
from functools import wraps

import bleach
from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from core.exceptions import EndpointNotConfiguredError, OrderNotFoundError
from models.order import OrderFields
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

orders_bp = Blueprint("orders", __name__)

# Constants
TEXT_FIELDS = ("product_description", "pieces", "file_number", "karigar_name", "bill_number")
MAX_TEXT_LENGTH = 500
ALLOWED_IMAGE_PREFIXES = ("http://", "https://", "data:image/")


def _sanitize_text(text: str, max_length: int = None) -> str:
    """
    Sanitize user input text to prevent XSS and injection attacks.

    Args:
        text: Raw input text
        max_length: Optional maximum length to enforce

    Returns:
        Sanitized text safe for storage and display
    """
    if not text:
        return ""

    text = text.strip()
    text = bleach.clean(text, tags=[], strip=True)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def _uploaded_image_url():
    """
    Read the optional image upload as a data: URL.

    Returns:
        data: URL, or None if no file was uploaded

    Raises:
        ValueError: If the upload is not an image
    """
    upload = request.files.get("image")
    if upload is None or not upload.filename:
        return None

    if not (upload.mimetype or "").startswith("image/"):
        raise ValueError("Please upload an image file (PNG, JPEG, ...).")

    encoded = base64.b64encode(upload.read()).decode("ascii")
    return f"data:{upload.mimetype};base64,{encoded}"


def _image_url_from_form(current: str = "") -> str:
    """
    The image URL typed in (or carried over from an edit).

    A value equal to current (the stored URL) is accepted as is.

    Raises:
        ValueError: If it is neither an http(s) URL nor an image data: URL
    """
    url = request.form.get("image_url", "").strip()
    if url and url != current and not url.startswith(ALLOWED_IMAGE_PREFIXES):
        raise ValueError("Image URL must start with http://, https:// or data:image/.")
    return url


def _fields_from_form(current_image_url: str = "") -> OrderFields:
    """Build OrderFields from the submitted form (raises ValueError)."""
    data = {
        name: _sanitize_text(request.form.get(name, ""), MAX_TEXT_LENGTH)
        for name in TEXT_FIELDS
    }
    data["image_url"] = _image_url_from_form(current_image_url)
    return OrderFields.from_form(data, image_url=_uploaded_image_url())


def _back_to_dashboard():
    """Redirect to the 'next' URL from the form, if it is local."""
    target = request.form.get("next", "")
    if target.startswith("/") and not target.startswith("//"):
        return redirect(target)
    return redirect(url_for("dashboard.index"))


def requires_endpoint(view):
    """Send the user to setup when no endpoint is configured."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except EndpointNotConfiguredError as e:
            flash(e.message, "warning")
            return redirect(url_for("setup.setup"))
    return wrapper


@orders_bp.route("/orders/new", methods=["GET"])
@requires_endpoint
def new_order():
    """Blank add-order form."""
    current_app.config["ENDPOINT_CONFIG"].require()
    return render_template("order_form.html", order=None)


@orders_bp.route("/orders", methods=["POST"])
@requires_endpoint
def create_order():
    """Add an order. The sheet assigns its id, date and status."""
    try:
        fields = _fields_from_form()
    except ValueError as e:
        flash(str(e), "error")
        return redirect(url_for("orders.new_order"))

    result = current_app.config["ORDER_STORE"].add_order(fields)
    if result.ok:
        flash(f"Order {result.order.id} added.", "success")
    return redirect(url_for("dashboard.index"))


@orders_bp.route("/orders/<order_id>", methods=["GET"])
@requires_endpoint
def order_detail(order_id: str):
    """Read-only order details."""
    current_app.config["ENDPOINT_CONFIG"].require()
    order = current_app.config["ORDER_STORE"].get(order_id)
    if order is None:
        flash(OrderNotFoundError(order_id).message, "warning")
        return redirect(url_for("dashboard.index"))
    return render_template("order_detail.html", order=order)


@orders_bp.route("/orders/<order_id>/edit", methods=["GET", "POST"])
@requires_endpoint
def edit_order(order_id: str):
    """
    Edit an order.

    GET: Form pre-filled from the store
    POST: Merge the form into the stored order and send the full record
    """
    current_app.config["ENDPOINT_CONFIG"].require()
    store = current_app.config["ORDER_STORE"]
    order = store.get(order_id)
    if order is None:
        flash(OrderNotFoundError(order_id).message, "warning")
        return redirect(url_for("dashboard.index"))

    if request.method == "GET":
        return render_template("order_form.html", order=order)

    try:
        fields = _fields_from_form(order.image_url)
    except ValueError as e:
        flash(str(e), "error")
        return redirect(url_for("orders.edit_order", order_id=order_id))

    try:
        result = store.update_order(order_id, fields)
    except OrderNotFoundError as e:
        flash(e.message, "warning")
        return _back_to_dashboard()

    if result.ok:
        flash(f"Order {order_id} updated.", "success")
    return _back_to_dashboard()


@orders_bp.route("/orders/<order_id>/status", methods=["POST"])
@requires_endpoint
def change_status(order_id: str):
    """Change an order's status from the table's dropdown."""
    new_status = request.form.get("status", "")
    try:
        current_app.config["ORDER_STORE"].change_status(order_id, new_status)
    except ValueError:
        flash(f"Unknown status '{new_status}'.", "error")
    except OrderNotFoundError as e:
        flash(e.message, "warning")
    return _back_to_dashboard()


@orders_bp.route("/orders/<order_id>/delete", methods=["POST"])
@requires_endpoint
def delete_order(order_id: str):
    """Delete an order."""
    result = current_app.config["ORDER_STORE"].delete_order(order_id)
    if result.ok:
        flash(f"Order {order_id} deleted.", "success")
    return _back_to_dashboard()
