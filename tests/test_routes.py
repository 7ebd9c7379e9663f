"""
Integration tests for the Flask routes.

The app is built through create_app() with a mocked sheet client and
summary service; the endpoint settings file lives in tmp_path.
"""

import io
import json
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from app import create_app
from core.endpoint_config import SETTINGS_KEY
from core.exceptions import SheetBackendError, SheetTransportError
from core.sheet_client import SheetAPIClient
from models.order import Order, OrderFields, OrderStatus
from services.csv_export import CSV_HEADER
from services.summary_service import SummaryService


ENDPOINT = "https://script.google.com/macros/s/abc123/exec"
SEPTEMBER = {"start": "2024-09-01", "end": "2024-09-30"}


# Fixtures

@pytest.fixture
def orders():
    return [
        Order(
            id="SM-101",
            issue_date=datetime(2024, 9, 15, 10, tzinfo=timezone.utc),
            product_description="22K Gold Wedding Ring",
            pieces=1,
            karigar_name="Ritu Sharma",
            status=OrderStatus.DESIGNING,
        ),
        Order(
            id="SM-102",
            issue_date=datetime(2024, 9, 12, 10, tzinfo=timezone.utc),
            product_description="Silver Anklets",
            pieces=2,
            karigar_name="Anil Kumar",
            status=OrderStatus.COMPLETED,
        ),
    ]


@pytest.fixture
def sheet_client(orders):
    client = Mock(spec=SheetAPIClient)
    client.list_orders.return_value = orders
    client.update_order.side_effect = lambda endpoint, order: order
    client.delete_order.return_value = None
    return client


@pytest.fixture
def summary_service():
    service = Mock(spec=SummaryService)
    service.enabled = True
    service.summarize.return_value = "**Overview**\n1. Two orders"
    return service


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "settings.json"


@pytest.fixture
def make_app(settings_path, sheet_client, summary_service):
    def factory():
        return create_app({
            "TESTING": True,
            "SECRET_KEY": "test",
            "ENDPOINT_SETTINGS_FILE": str(settings_path),
            "SHEET_CLIENT": sheet_client,
            "SUMMARY_SERVICE": summary_service,
        })
    return factory


@pytest.fixture
def app(make_app):
    """App with no saved endpoint."""
    return make_app()


@pytest.fixture
def configured_app(make_app, settings_path):
    """App with a saved endpoint."""
    settings_path.write_text(json.dumps({SETTINGS_KEY: ENDPOINT}), encoding="utf-8")
    return make_app()


@pytest.fixture
def client(configured_app):
    """Test client with the orders already loaded."""
    test_client = configured_app.test_client()
    assert test_client.get("/", query_string=SEPTEMBER).status_code == 200
    return test_client


class TestSetup:
    """Endpoint setup flow."""

    def test_dashboard_redirects_to_setup(self, app):
        response = app.test_client().get("/")

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/setup")

    def test_setup_page(self, app):
        response = app.test_client().get("/setup")

        assert response.status_code == 200
        assert b"Connect to Google Sheets" in response.data
        assert b"doGet" in response.data
        assert b"Karigar Name" in response.data

    def test_empty_url(self, app, sheet_client, settings_path):
        response = app.test_client().post("/setup", data={"url": "  "})

        assert response.status_code == 200
        assert b"Please enter a valid Web App URL." in response.data
        sheet_client.list_orders.assert_not_called()
        assert not settings_path.exists()

    def test_valid_url(self, app, sheet_client, settings_path):
        response = app.test_client().post("/setup", data={"url": f" {ENDPOINT} "})

        assert response.status_code == 302
        sheet_client.list_orders.assert_called_once_with(ENDPOINT)
        assert json.loads(settings_path.read_text())[SETTINGS_KEY] == ENDPOINT
        assert app.config["ORDER_STORE"].loaded

    def test_invalid_url(self, app, sheet_client, settings_path):
        sheet_client.list_orders.side_effect = SheetBackendError("Sheet 'Orders' not found")

        response = app.test_client().post("/setup", data={"url": ENDPOINT})

        assert response.status_code == 200
        assert b"Could not connect using this URL." in response.data
        assert not settings_path.exists()

    def test_reset(self, configured_app, settings_path):
        response = configured_app.test_client().post("/setup/reset")

        assert response.status_code == 302
        assert not settings_path.exists()
        assert configured_app.config["ENDPOINT_CONFIG"].is_configured is False


class TestDashboard:
    """Dashboard view and refresh."""

    def test_first_visit_loads_orders(self, configured_app, sheet_client):
        test_client = configured_app.test_client()

        response = test_client.get("/", query_string=SEPTEMBER)
        test_client.get("/", query_string=SEPTEMBER)

        assert response.status_code == 200
        assert b"SM-101" in response.data
        assert b"SM-102" in response.data
        assert sheet_client.list_orders.call_count == 1

    def test_search(self, client):
        response = client.get("/", query_string={**SEPTEMBER, "q": "sm-102"})

        assert b"SM-102" in response.data
        assert b"SM-101</a>" not in response.data

    def test_listing_failure_returns_to_setup(self, configured_app, sheet_client, settings_path):
        sheet_client.list_orders.side_effect = SheetTransportError("Network request failed: boom")

        response = configured_app.test_client().get("/")

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/setup")
        assert not settings_path.exists()

    def test_refresh(self, client, sheet_client):
        response = client.post("/refresh", data=SEPTEMBER)

        assert response.status_code == 302
        assert sheet_client.list_orders.call_count == 2

    def test_summary_page(self, client, summary_service):
        response = client.post("/summary", data=SEPTEMBER)

        assert response.status_code == 200
        assert b"Overview" in response.data
        summarized = summary_service.summarize.call_args.args[0]
        assert [o.id for o in summarized] == ["SM-101", "SM-102"]


class TestOrderRoutes:
    """Add, edit, status change and delete."""

    def test_add_order(self, client, sheet_client, configured_app):
        sheet_client.add_order.return_value = Order(
            id="ORD-1726394400000",
            issue_date=datetime(2024, 9, 16, tzinfo=timezone.utc),
            product_description="Kundan Necklace",
        )

        response = client.post("/orders", data={
            "product_description": "<b>Kundan Necklace</b> & Set",
            "pieces": "2",
            "karigar_name": "Meena",
        })

        assert response.status_code == 302
        endpoint, fields = sheet_client.add_order.call_args.args
        assert endpoint == ENDPOINT
        assert fields == OrderFields(
            product_description="Kundan Necklace &amp; Set",
            pieces=2,
            karigar_name="Meena",
        )
        assert configured_app.config["ORDER_STORE"].orders[0].id == "ORD-1726394400000"

    def test_escaped_markup_is_not_decoded(self, client, sheet_client):
        sheet_client.add_order.return_value = Order(id="ORD-1", issue_date=None)

        client.post("/orders", data={
            "product_description": "&lt;b&gt;Ring&lt;/b&gt;",
            "pieces": "1",
        })

        fields = sheet_client.add_order.call_args.args[1]
        assert "<b>" not in fields.product_description
        assert fields.product_description == "&lt;b&gt;Ring&lt;/b&gt;"

    def test_add_order_invalid_pieces(self, client, sheet_client):
        response = client.post(
            "/orders",
            data={"product_description": "Ring", "pieces": "0"},
            follow_redirects=True,
        )

        assert b"Number of pieces must be at least 1." in response.data
        sheet_client.add_order.assert_not_called()

    def test_add_order_with_image_upload(self, client, sheet_client):
        sheet_client.add_order.return_value = Order(id="ORD-1", issue_date=None)

        client.post(
            "/orders",
            data={
                "product_description": "Ring",
                "pieces": "1",
                "image": (io.BytesIO(b"abc"), "ring.png", "image/png"),
            },
            content_type="multipart/form-data",
        )

        fields = sheet_client.add_order.call_args.args[1]
        assert fields.image_url == "data:image/png;base64,YWJj"

    def test_add_order_rejects_script_url(self, client, sheet_client):
        client.post("/orders", data={
            "product_description": "Ring",
            "pieces": "1",
            "image_url": "javascript:alert(1)",
        })

        sheet_client.add_order.assert_not_called()

    def test_order_detail(self, client):
        response = client.get("/orders/SM-101")

        assert response.status_code == 200
        assert b"22K Gold Wedding Ring" in response.data

    def test_unknown_order_detail(self, client):
        response = client.get("/orders/SM-999", follow_redirects=True)
        assert b"Order with ID SM-999 not found." in response.data

    def test_edit_order(self, client, sheet_client, configured_app):
        response = client.post("/orders/SM-101/edit", data={
            "product_description": "22K Gold Wedding Ring, resized",
            "pieces": "1",
            "karigar_name": "Ritu Sharma",
        })

        assert response.status_code == 302
        sent = sheet_client.update_order.call_args.args[1]
        assert sent.id == "SM-101"
        assert sent.status is OrderStatus.DESIGNING
        stored = configured_app.config["ORDER_STORE"].get("SM-101")
        assert stored.product_description == "22K Gold Wedding Ring, resized"

    def test_edit_keeps_stored_image_url(self, client, sheet_client, configured_app, orders):
        store = configured_app.config["ORDER_STORE"]
        store.seed([orders[0].with_changes(image_url="ftp://files.example.com/ring.png")])

        client.post("/orders/SM-101/edit", data={
            "product_description": "22K Gold Wedding Ring",
            "pieces": "1",
            "image_url": "ftp://files.example.com/ring.png",
        })

        sent = sheet_client.update_order.call_args.args[1]
        assert sent.image_url == "ftp://files.example.com/ring.png"

    def test_edit_rejects_new_unsupported_image_url(self, client, sheet_client):
        response = client.post(
            "/orders/SM-101/edit",
            data={
                "product_description": "22K Gold Wedding Ring",
                "pieces": "1",
                "image_url": "ftp://files.example.com/ring.png",
            },
            follow_redirects=True,
        )

        assert b"Image URL must start with" in response.data
        sheet_client.update_order.assert_not_called()

    def test_change_status(self, client, sheet_client, configured_app):
        response = client.post("/orders/SM-101/status", data={"status": "Completed"})

        assert response.status_code == 302
        assert sheet_client.update_order.call_args.args[1].status is OrderStatus.COMPLETED
        assert configured_app.config["ORDER_STORE"].get("SM-101").status is OrderStatus.COMPLETED

    def test_change_status_unknown_value(self, client, sheet_client):
        response = client.post(
            "/orders/SM-101/status", data={"status": "Shipped"}, follow_redirects=True
        )

        assert b"Unknown status" in response.data
        sheet_client.update_order.assert_not_called()

    def test_next_must_be_local(self, client):
        response = client.post(
            "/orders/SM-101/status",
            data={"status": "Completed", "next": "//evil.example.com/"},
        )

        assert response.headers["Location"] == "/"

    def test_failed_delete_shows_banner(self, client, sheet_client, configured_app):
        sheet_client.delete_order.side_effect = SheetTransportError("Network request failed: boom")

        client.post("/orders/SM-101/delete")
        response = client.get("/", query_string=SEPTEMBER)

        assert configured_app.config["ORDER_STORE"].get("SM-101") is not None
        assert b"Failed to delete order. Reverting change." in response.data

    def test_dismiss_error(self, client, sheet_client, configured_app):
        sheet_client.delete_order.side_effect = SheetTransportError("boom")
        client.post("/orders/SM-101/delete")

        client.post("/error/dismiss")

        assert configured_app.config["ORDER_STORE"].error is None

    def test_delete_order(self, client, configured_app):
        response = client.post("/orders/SM-101/delete", follow_redirects=True)

        assert b"Order SM-101 deleted." in response.data
        assert configured_app.config["ORDER_STORE"].get("SM-101") is None

    def test_requires_endpoint(self, app):
        response = app.test_client().post("/orders/SM-101/delete")

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/setup")


class TestExport:
    """CSV download."""

    def test_export(self, client):
        response = client.get("/export.csv", query_string=SEPTEMBER)

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "attachment" in response.headers["Content-Disposition"]
        assert "jewel_market_orders_" in response.headers["Content-Disposition"]
        lines = response.get_data(as_text=True).split("\n")
        assert lines[0] == CSV_HEADER
        assert lines[1].startswith('"SM-101"')
        assert lines[2].startswith('"SM-102"')

    def test_export_nothing(self, client):
        response = client.get("/export.csv", query_string={**SEPTEMBER, "q": "zzz"})
        assert response.status_code == 302


class TestApi:
    """JSON endpoints."""

    def test_orders_not_configured(self, app):
        response = app.test_client().get("/api/orders")
        assert response.status_code == 409

    def test_orders(self, configured_app):
        response = configured_app.test_client().get("/api/orders", query_string=SEPTEMBER)

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["totalOrders"] == 2
        assert data["pendingOrders"] == 1
        assert [o["id"] for o in data["orders"]] == ["SM-101", "SM-102"]

    def test_orders_listing_failure(self, configured_app, sheet_client):
        sheet_client.list_orders.side_effect = SheetBackendError("boom")

        response = configured_app.test_client().get("/api/orders")

        assert response.status_code == 502
        assert configured_app.config["ENDPOINT_CONFIG"].is_configured is False

    def test_summary(self, client, summary_service):
        response = client.post("/api/summary", json=SEPTEMBER)

        payload = response.get_json()
        assert payload["summary"] == "**Overview**\n1. Two orders"
        assert payload["blocks"][0] == {"kind": "heading", "text": "Overview"}
        assert payload["orderCount"] == 2

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        checks = response.get_json()["checks"]
        assert checks["endpoint"] == "configured"
        assert checks["orders"] == "2 loaded"
        assert checks["ai_summary"] == "enabled"

    def test_health_not_configured(self, app):
        response = app.test_client().get("/health")

        assert response.status_code == 503
        assert response.get_json()["checks"]["endpoint"] == "not_configured"
