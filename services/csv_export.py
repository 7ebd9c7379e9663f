"""
CSV export of the filtered dashboard view.

Format:
    Order ID,Date of Issue,Product,Pieces,File Number,Karigar Name,Status,Bill Number,Image URL
    "SM-101","2024-09-15T10:00:00.000Z","22K Gold Wedding Ring","1",...

The header line is bare; every data field is double-quoted with embedded
quotes doubled. Lines are joined with '\\n' and there is no trailing newline.
"""

from __future__ import annotations

import csv
import io
import math
from datetime import date
from typing import Iterable, List, Optional

from models.order import Order, format_timestamp


CSV_HEADER = (
    "Order ID,Date of Issue,Product,Pieces,File Number,"
    "Karigar Name,Status,Bill Number,Image URL"
)


def _pieces_text(pieces) -> str:
    if isinstance(pieces, float) and math.isnan(pieces):
        return "NaN"
    return str(pieces)


def order_to_csv_fields(order: Order) -> List[str]:
    """Export columns of one order, in header order."""
    return [
        order.id,
        format_timestamp(order.issue_date),
        order.product_description,
        _pieces_text(order.pieces),
        order.file_number,
        order.karigar_name,
        str(order.status),
        order.bill_number,
        order.image_url,
    ]


def export_orders_csv(orders: Iterable[Order]) -> str:
    """
    Render orders as CSV text, in the order given.

    Args:
        orders: Orders as shown on the dashboard (already filtered/sorted)

    Returns:
        CSV text; just the header line if there are no orders
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for order in orders:
        writer.writerow(order_to_csv_fields(order))

    rows = buffer.getvalue()
    if not rows:
        return CSV_HEADER
    return CSV_HEADER + "\n" + rows[:-1]


def export_filename(today: Optional[date] = None) -> str:
    """Download name, e.g. jewel_market_orders_2024-09-30.csv."""
    today = today or date.today()
    return f"jewel_market_orders_{today.isoformat()}.csv"
