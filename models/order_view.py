"""
Filtered dashboard view model.

An OrderView is derived from the store's collection by
services.order_view.build_order_view() and is never written back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Any, List, Tuple

from .order import Order


@dataclass(frozen=True)
class OrderView:
    """
    Orders matching the dashboard filters, newest first, with stats.

    Invariant: pending_orders <= total_orders == len(orders).
    """

    orders: Tuple[Order, ...]
    """Matching orders sorted by issue date, descending."""

    start_date: date
    """First day of the inclusive range."""

    end_date: date
    """Last day of the inclusive range."""

    search: str = ""
    """Order id search text as entered."""

    status_counts: Dict[str, int] = field(default_factory=dict)
    """Number of matching orders per status value (for the status chart)."""

    @property
    def total_orders(self) -> int:
        return len(self.orders)

    @property
    def pending_orders(self) -> int:
        """Matching orders that are neither Completed nor Cancelled."""
        return sum(1 for order in self.orders if order.is_pending)

    @property
    def chart_rows(self) -> List[Tuple[str, int]]:
        """(status, count) pairs with a non-zero count."""
        return [(status, count) for status, count in self.status_counts.items() if count]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary for the API routes."""
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "search": self.search,
            "totalOrders": self.total_orders,
            "pendingOrders": self.pending_orders,
            "statusCounts": dict(self.status_counts),
            "orders": [order.to_dict() for order in self.orders],
        }
