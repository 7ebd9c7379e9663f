"""
HTTP client for the Google Sheet web app.

The sheet is exposed through a deployed Apps Script. Every call goes to the
same endpoint URL:

    GET  endpoint                         -> list all rows (row 0 is the header)
    POST endpoint {"action": "add", ...}  -> returns the new row
    POST endpoint {"action": "update"...} -> returns the replaced row
    POST endpoint {"action": "delete"...} -> returns {"id": ...}

Responses share one envelope:

    {"status": "success", "data": ...}
    {"status": "error", "message": "..."}

POST bodies are JSON sent as text/plain (Apps Script requirement).

Redirects are always followed (Apps Script answers with a 302 to the
googleusercontent host). Failures are raised, never retried.

Usage:
    client = SheetAPIClient(timeout=None)

    orders = client.list_orders(url)
    new_order = client.add_order(url, fields)
    client.delete_order(url, new_order.id)
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import requests

from models.order import Order, OrderFields
from .exceptions import SheetBackendError, SheetTransportError
from .row_codec import decode_row, is_blank_row


POST_HEADERS = {"Content-Type": "text/plain;charset=utf-8"}


class SheetAPIClient:
    """
    CRUD client for the order sheet.

    One instance is shared by the endpoint configuration service and the
    order store. It holds no per-endpoint state; the endpoint URL is passed
    to every call.

    Attributes:
        timeout: Seconds per request, or None for the transport default
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the client.

        Args:
            session: requests.Session to use (a new one if not provided)
            timeout: Per-request timeout in seconds (None = no timeout)
            logger: Logger instance (creates default if not provided)
        """
        self._session = session or requests.Session()
        self.timeout = timeout
        self._logger = logger or logging.getLogger("core.sheet_client")

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------

    def list_orders(self, endpoint: str) -> List[Order]:
        """
        Fetch every order in the sheet.

        The first row is the header and is skipped, as is any row whose
        cells are all empty.

        Args:
            endpoint: Web app URL

        Returns:
            Decoded orders in sheet order

        Raises:
            SheetTransportError: Network failure, HTTP error or non-JSON body
            SheetBackendError: Backend reported an error
        """
        envelope = self._request("list", endpoint)
        rows = envelope.get("data") or []

        if not isinstance(rows, list):
            raise SheetTransportError(
                "Unexpected response from sheet: 'data' is not a list of rows",
                action="list"
            )

        if not all(isinstance(row, list) for row in rows):
            raise SheetTransportError(
                "Unexpected response from sheet: every row must be a list of cells",
                action="list"
            )

        orders = [decode_row(row) for row in rows[1:] if not is_blank_row(row)]
        self._logger.debug(f"Listed {len(orders)} orders ({len(rows)} rows incl. header)")
        return orders

    def add_order(self, endpoint: str, fields: OrderFields) -> Order:
        """
        Append a new order.

        The backend assigns id, issue date and the default status, so the
        created order is only known from the returned row.

        Returns:
            The order as stored by the backend
        """
        envelope = self._request("add", endpoint, fields.to_payload())
        order = decode_row(self._returned_row("add", envelope))
        self._logger.info(f"Order {order.id} added")
        return order

    def update_order(self, endpoint: str, order: Order) -> Order:
        """
        Replace the row whose id matches order.id with the full record.

        Returns:
            The order as stored by the backend
        """
        envelope = self._request("update", endpoint, order.to_payload())
        updated = decode_row(self._returned_row("update", envelope))
        self._logger.info(f"Order {order.id} updated")
        return updated

    def delete_order(self, endpoint: str, order_id: str) -> None:
        """Delete the row whose id matches order_id."""
        self._request("delete", endpoint, {"id": order_id})
        self._logger.info(f"Order {order_id} deleted")

    def _returned_row(self, action: str, envelope: Dict[str, Any]) -> List[Any]:
        """The row echoed back by add/update; anything else is a bad response."""
        row = envelope.get("data")
        if not isinstance(row, list):
            self._logger.error(f"Sheet {action} returned {type(row).__name__} instead of a row")
            raise SheetTransportError(
                "Unexpected response from sheet: 'data' is not a row",
                action=action
            )
        return row

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        action: str,
        endpoint: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Issue one request and unwrap the envelope.

        action "list" is a GET; everything else is a POST carrying
        {"action": action, "payload": payload}.
        """
        try:
            if action == "list":
                response = self._session.get(
                    endpoint,
                    allow_redirects=True,
                    timeout=self.timeout,
                )
            else:
                body = json.dumps({"action": action, "payload": payload}, ensure_ascii=False)
                response = self._session.post(
                    endpoint,
                    data=body.encode("utf-8"),
                    headers=POST_HEADERS,
                    allow_redirects=True,
                    timeout=self.timeout,
                )
        except requests.RequestException as e:
            self._logger.error(f"Sheet {action} request failed: {e}")
            raise SheetTransportError(f"Network request failed: {e}", action=action)

        if not response.ok:
            self._logger.error(f"Sheet {action} returned HTTP {response.status_code}")
            raise SheetTransportError(
                f"Network response was not ok: {response.status_code} {response.reason}",
                action=action,
                status_code=response.status_code
            )

        try:
            envelope = response.json()
        except ValueError as e:
            self._logger.error(f"Sheet {action} returned invalid JSON: {e}")
            raise SheetTransportError(
                f"Invalid JSON in sheet response: {e}",
                action=action,
                status_code=response.status_code
            )

        if not isinstance(envelope, dict):
            raise SheetTransportError(
                "Unexpected response from sheet: envelope is not an object",
                action=action,
                status_code=response.status_code
            )

        if envelope.get("status") == "error":
            message = envelope.get("message") or "Unknown error"
            self._logger.warning(f"Sheet {action} rejected: {message}")
            raise SheetBackendError(message, action=action)

        return envelope
