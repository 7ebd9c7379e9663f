"""
Order data models.

These models represent one manufacturing job as tracked by the dashboard
and as stored (one row per order) in the Google Sheet.

Thread Safety:
    - Order is frozen; every change produces a new instance via with_changes()
    - The order store can therefore snapshot its collection with a plain
      list copy and restore it later without aliasing problems
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional, Union


class OrderStatus(str, Enum):
    """
    Workflow status of an order.

    Any status may move to any other; no transitions are enforced.
    """

    RECEIVED = "Received"
    DESIGNING = "Designing"
    DATASHEET = "Datasheet"
    WITH_VENDOR = "With Vendor"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @classmethod
    def coerce(cls, value: Any) -> Union["OrderStatus", str]:
        """
        Map a raw cell value to a member, or pass it through unchanged.

        Unrecognized values are kept as plain strings.
        """
        text = "" if value is None else str(value)
        try:
            return cls(text)
        except ValueError:
            return text

    def __str__(self) -> str:
        return self.value


# Statuses that no longer count as pending work
CLOSED_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


def format_timestamp(value: Optional[datetime]) -> str:
    """
    Format a timestamp the way the sheet stores it.

    Produces UTC with millisecond precision and a trailing 'Z', e.g.
    '2024-09-15T10:00:00.000Z'. The invalid-date sentinel (None) becomes ''.
    """
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.astimezone()
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Order:
    """
    A jewelry manufacturing order.

    Lifecycle:
        1. Created by the backend on add (id, issue_date, status assigned)
        2. Status changed or fully edited from the dashboard
        3. Deleted from the dashboard

    issue_date is None when the sheet cell could not be parsed; pieces is
    NaN when the sheet cell was not numeric. Such orders are kept in the
    store but never pass the dashboard's date filter.
    """

    id: str
    """Server-assigned order id (opaque, e.g. 'ORD-1726394400000')."""

    issue_date: Optional[datetime]
    """When the order was issued; None if the stored value is invalid."""

    product_description: str = ""
    """What is being made."""

    pieces: Union[int, float] = 1
    """Number of pieces; NaN when the stored value is not numeric."""

    file_number: str = ""
    """Design file reference."""

    karigar_name: str = ""
    """Craftsman the job is assigned to."""

    status: Union[OrderStatus, str] = OrderStatus.RECEIVED
    """Workflow status; unknown sheet values are kept as plain strings."""

    bill_number: str = ""
    """Number in bill."""

    image_url: str = ""
    """Product image: an http(s) URL or a data: URL."""

    @property
    def has_valid_date(self) -> bool:
        """True if issue_date holds a real timestamp."""
        return self.issue_date is not None

    @property
    def is_pending(self) -> bool:
        """True unless the order is Completed or Cancelled."""
        return self.status not in CLOSED_STATUSES

    def with_changes(self, **changes: Any) -> "Order":
        """Return a copy of this order with the given fields replaced."""
        return replace(self, **changes)

    def to_payload(self) -> Dict[str, Any]:
        """
        Convert to the camelCase record the Apps Script expects.

        Used as the payload of an "update" request, which replaces the
        whole row matched by id.
        """
        pieces = self.pieces
        if isinstance(pieces, float) and math.isnan(pieces):
            pieces = None

        return {
            "id": self.id,
            "issueDate": format_timestamp(self.issue_date),
            "productDescription": self.product_description,
            "pieces": pieces,
            "fileNumber": self.file_number,
            "karigarName": self.karigar_name,
            "status": str(self.status),
            "billNumber": self.bill_number,
            "imageUrl": self.image_url,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary for the API routes."""
        data = self.to_payload()
        data["isPending"] = self.is_pending
        return data


@dataclass(frozen=True)
class OrderFields:
    """
    The user-editable part of an order.

    Captured by the add/edit forms. id, issue_date and status are never
    part of it: the backend assigns them on add, and edits keep them.
    """

    product_description: str
    pieces: int
    file_number: str = ""
    karigar_name: str = ""
    bill_number: str = ""
    image_url: str = ""

    def __post_init__(self):
        if not self.product_description:
            raise ValueError("Product description is required.")
        if isinstance(self.pieces, bool) or not isinstance(self.pieces, int):
            raise ValueError("Number of pieces must be a whole number.")
        if self.pieces < 1:
            raise ValueError("Number of pieces must be at least 1.")

    @classmethod
    def from_form(cls, data: Dict[str, Any], image_url: Optional[str] = None) -> "OrderFields":
        """
        Create from submitted form values.

        Args:
            data: Mapping of form field names to (already sanitized) strings
            image_url: Uploaded image as a data: URL; overrides data['image_url']

        Raises:
            ValueError: If pieces is not an integer >= 1 or product is empty
        """
        raw_pieces = str(data.get("pieces", "")).strip()
        try:
            pieces = int(raw_pieces)
        except ValueError:
            raise ValueError(f"Number of pieces must be a whole number, got '{raw_pieces}'.")

        return cls(
            product_description=str(data.get("product_description", "")).strip(),
            pieces=pieces,
            file_number=str(data.get("file_number", "")).strip(),
            karigar_name=str(data.get("karigar_name", "")).strip(),
            bill_number=str(data.get("bill_number", "")).strip(),
            image_url=image_url if image_url else str(data.get("image_url", "")).strip(),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Convert to the camelCase payload of an "add" request."""
        return {
            "productDescription": self.product_description,
            "pieces": self.pieces,
            "fileNumber": self.file_number,
            "karigarName": self.karigar_name,
            "billNumber": self.bill_number,
            "imageUrl": self.image_url,
        }

    def apply_to(self, order: Order) -> Order:
        """Merge these fields into an existing order (id/date/status kept)."""
        return order.with_changes(
            product_description=self.product_description,
            pieces=self.pieces,
            file_number=self.file_number,
            karigar_name=self.karigar_name,
            bill_number=self.bill_number,
            image_url=self.image_url,
        )
