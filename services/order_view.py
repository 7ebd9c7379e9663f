"""
Dashboard filtering and sorting.

Pure functions: the view is recomputed from (orders, date range, search)
on every request and never modifies the store.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, Iterable, Optional, Tuple

from models.order import Order, OrderStatus
from models.order_view import OrderView


END_OF_DAY = time(23, 59, 59, 999000)


def day_bounds(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    """
    Local-time bounds of an inclusive day range.

    Returns:
        (start_date 00:00:00.000, end_date 23:59:59.999), both aware
    """
    start = datetime.combine(start_date, time.min).astimezone()
    end = datetime.combine(end_date, END_OF_DAY).astimezone()
    return start, end


def build_order_view(
    orders: Iterable[Order],
    start_date: date,
    end_date: date,
    search: str = ""
) -> OrderView:
    """
    Filter, sort and count orders for the dashboard.

    An order is kept when its issue date falls inside the inclusive range
    and its id contains the search text (case-insensitive; empty search
    matches everything). Orders with an invalid issue date never match.
    The result is sorted newest first; ties keep collection order.

    Args:
        orders: The store's collection
        start_date: First day of the range (local time)
        end_date: Last day of the range (local time)
        search: Order id search text

    Returns:
        OrderView with the matching orders and statistics
    """
    start, end = day_bounds(start_date, end_date)
    needle = (search or "").lower()

    matching = [
        order for order in orders
        if order.has_valid_date
        and start <= order.issue_date <= end
        and needle in order.id.lower()
    ]
    matching.sort(key=lambda order: order.issue_date, reverse=True)

    return OrderView(
        orders=tuple(matching),
        start_date=start_date,
        end_date=end_date,
        search=search or "",
        status_counts=count_statuses(matching),
    )


def count_statuses(orders: Iterable[Order]) -> Dict[str, int]:
    """
    Count orders per status.

    Every known status is present (possibly 0), in workflow order;
    unrecognized status strings follow in order of appearance.
    """
    counts: Dict[str, int] = {status.value: 0 for status in OrderStatus}
    for order in orders:
        key = str(order.status)
        counts[key] = counts.get(key, 0) + 1
    return counts


def default_date_range(today: Optional[date] = None) -> Tuple[date, date]:
    """The dashboard's initial range: first of the current month to today."""
    today = today or date.today()
    return today.replace(day=1), today


def parse_filter_date(value: Optional[str], fallback: date) -> date:
    """
    Parse a YYYY-MM-DD query value.

    Missing or invalid input keeps the fallback, like the date inputs on
    the dashboard ignoring a half-typed value.
    """
    if not value:
        return fallback
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return fallback
