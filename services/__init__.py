"""
Services layer for Jewel Order Desk.

This module contains the business logic services:
- OrderStore: Canonical order collection with optimistic updates
- build_order_view: Date/search filtering, sorting and stats
- export_orders_csv: CSV export of the filtered view
- SummaryService: AI summary of the filtered orders
"""

from .order_store import OrderStore, MutationResult, StoreEvent
from .order_view import build_order_view, default_date_range
from .csv_export import export_orders_csv
from .summary_service import SummaryService

__all__ = [
    "OrderStore",
    "MutationResult",
    "StoreEvent",
    "build_order_view",
    "default_date_range",
    "export_orders_csv",
    "SummaryService",
]
