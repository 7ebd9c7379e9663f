"""
Positional row <-> Order mapping.

The Google Sheet stores one order per row. Both the GET listing and the
POST responses exchange rows as plain JSON arrays whose column order is
fixed by the Apps Script; it is the wire contract, not a local choice:

    0 id | 1 issueDate | 2 productDescription | 3 pieces | 4 fileNumber
    5 karigarName | 6 status | 7 billNumber | 8 imageUrl

Decoding never raises for bad cell values. An unparseable date becomes
None, a non-numeric piece count becomes NaN, and an unknown status string
is passed through, so one damaged row cannot block the whole listing.
Header and blank rows are not orders; callers drop them before decoding
(see is_blank_row).
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Union

from models.order import Order, OrderStatus, format_timestamp


COLUMN_ORDER = (
    "id",
    "issueDate",
    "productDescription",
    "pieces",
    "fileNumber",
    "karigarName",
    "status",
    "billNumber",
    "imageUrl",
)

COL_ID = 0
COL_ISSUE_DATE = 1
COL_PRODUCT = 2
COL_PIECES = 3
COL_FILE_NUMBER = 4
COL_KARIGAR = 5
COL_STATUS = 6
COL_BILL_NUMBER = 7
COL_IMAGE_URL = 8

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_blank_row(row: Sequence[Any]) -> bool:
    """True if every cell of the row is empty ('' or None)."""
    return all(cell is None or cell == "" for cell in row)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 cell into an aware datetime.

    Date-only values and a trailing 'Z' are UTC; date-times without an
    offset are local time. Anything unparseable returns None.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.astimezone()

    text = _to_text(value).strip()
    if not text:
        return None

    if _DATE_ONLY.match(text):
        text += "T00:00:00+00:00"
    elif text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def parse_pieces(value: Any) -> Union[int, float]:
    """
    Coerce a cell to a piece count.

    Integral values come back as int. A blank string counts as 0 and
    anything non-numeric as NaN; the value is never clamped.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if value is None:
        return math.nan

    text = str(value).strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return math.nan
    return int(number) if number.is_integer() else number


def _to_text(value: Any) -> str:
    # Sheets hands back numeric-looking cells (bill numbers) as numbers
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def decode_row(row: Sequence[Any]) -> Order:
    """
    Convert one sheet row into an Order.

    Args:
        row: Cells in COLUMN_ORDER; missing trailing cells count as empty

    Returns:
        Order (possibly carrying the None / NaN sentinels)
    """
    return Order(
        id=_to_text(_cell(row, COL_ID)),
        issue_date=parse_timestamp(_cell(row, COL_ISSUE_DATE)),
        product_description=_to_text(_cell(row, COL_PRODUCT)),
        pieces=parse_pieces(_cell(row, COL_PIECES)),
        file_number=_to_text(_cell(row, COL_FILE_NUMBER)),
        karigar_name=_to_text(_cell(row, COL_KARIGAR)),
        status=OrderStatus.coerce(_cell(row, COL_STATUS)),
        bill_number=_to_text(_cell(row, COL_BILL_NUMBER)),
        image_url=_to_text(_cell(row, COL_IMAGE_URL)),
    )


def encode_row(order: Order) -> List[Any]:
    """
    Convert an Order into a sheet row in COLUMN_ORDER.

    The timestamp is written as ISO-8601 UTC ('...T10:00:00.000Z'); the
    invalid-date sentinel is written as '' and a NaN count as None.
    """
    pieces = order.pieces
    if isinstance(pieces, float) and math.isnan(pieces):
        pieces = None

    return [
        order.id,
        format_timestamp(order.issue_date),
        order.product_description,
        pieces,
        order.file_number,
        order.karigar_name,
        str(order.status),
        order.bill_number,
        order.image_url,
    ]
