"""
Data models for Jewel Order Desk.

This module contains dataclasses for:
- Order: One manufacturing order (frozen; changes produce new instances)
- OrderStatus: Workflow status enumeration
- OrderFields: User-editable fields from the add/edit forms
- OrderView: Filtered, sorted dashboard view with statistics
"""

from .order import Order, OrderStatus, OrderFields, CLOSED_STATUSES
from .order_view import OrderView

__all__ = [
    "Order",
    "OrderStatus",
    "OrderFields",
    "CLOSED_STATUSES",
    "OrderView",
]
