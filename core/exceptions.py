"""
Custom exceptions for Jewel Order Desk.

Exception Hierarchy:
    OrderDeskError (base)
    ├── EndpointNotConfiguredError - No endpoint URL saved yet (setup required)
    ├── InvalidEndpointError       - URL empty or failed trial validation
    ├── OrderNotFoundError         - Order id not in the local collection
    └── SheetAPIError              - A call to the sheet endpoint failed
        ├── SheetTransportError    - Network failure, HTTP status, bad body
        └── SheetBackendError      - Envelope reported status "error"

Usage:
    Configuration errors send the user back to the setup page.
    SheetAPIError is caught at the order store boundary and turned into a
    banner message plus a rollback of any optimistic change.
"""

from typing import Optional, Dict, Any


class OrderDeskError(Exception):
    """
    Base exception for all Jewel Order Desk errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS - User must (re-)enter the endpoint URL
# =============================================================================

class EndpointNotConfiguredError(OrderDeskError):
    """
    No Google Sheet web app URL has been saved yet.

    Raised by any data operation attempted before setup has completed, or
    after a listing failure cleared the saved URL.
    """

    def __init__(self, message: str = "Google Sheet endpoint is not configured"):
        details = {
            "resolution": "Open the setup page and enter the web app URL"
        }
        super().__init__(message, details)


class InvalidEndpointError(OrderDeskError):
    """
    The endpoint URL was rejected during setup.

    Either the input was empty (rejected locally, no network call) or the
    trial listing against it failed. Nothing is persisted in either case.
    """

    def __init__(self, message: str, url: str = "", reason: str = ""):
        details = {}
        if url:
            details["url"] = url
        if reason:
            details["reason"] = reason
        super().__init__(message, details)
        self.url = url
        self.reason = reason


# =============================================================================
# RUNTIME ERRORS - Operation fails, dashboard keeps running
# =============================================================================

class OrderNotFoundError(OrderDeskError):
    """An order id is not present in the local collection."""

    def __init__(self, order_id: str):
        super().__init__(f"Order with ID {order_id} not found.", {"order_id": order_id})
        self.order_id = order_id


class SheetAPIError(OrderDeskError):
    """
    Base class for failed calls to the sheet endpoint.

    Carries the action that failed ("list", "add", "update", "delete") so the
    caller can build a user-facing message.
    """

    def __init__(
        self,
        message: str,
        action: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if action:
            error_details["action"] = action
        super().__init__(message, error_details)
        self.action = action


class SheetTransportError(SheetAPIError):
    """
    The request never produced a usable envelope.

    Covers connection failures, non-success HTTP status codes and response
    bodies that are not valid JSON.
    """

    def __init__(
        self,
        message: str,
        action: str = "",
        status_code: Optional[int] = None
    ):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, action, details)
        self.status_code = status_code


class SheetBackendError(SheetAPIError):
    """
    The Apps Script answered with {"status": "error", "message": ...}.

    The message is the backend's own text, e.g. "Order with ID X not found.".
    """
