"""
Core module for Jewel Order Desk.

Contains the order synchronization infrastructure:
- exceptions: Custom exception hierarchy
- row_codec: Sheet row <-> Order mapping
- sheet_client: HTTP client for the Google Sheet web app
- endpoint_config: Saved endpoint URL lifecycle
"""

from .exceptions import (
    OrderDeskError,
    EndpointNotConfiguredError,
    InvalidEndpointError,
    OrderNotFoundError,
    SheetAPIError,
    SheetTransportError,
    SheetBackendError,
)
from .row_codec import COLUMN_ORDER, decode_row, encode_row, is_blank_row
from .sheet_client import SheetAPIClient
from .endpoint_config import EndpointConfigService, EndpointState

__all__ = [
    "OrderDeskError",
    "EndpointNotConfiguredError",
    "InvalidEndpointError",
    "OrderNotFoundError",
    "SheetAPIError",
    "SheetTransportError",
    "SheetBackendError",
    "COLUMN_ORDER",
    "decode_row",
    "encode_row",
    "is_blank_row",
    "SheetAPIClient",
    "EndpointConfigService",
    "EndpointState",
]
