"""
In-memory order store with optimistic updates.

The store holds the dashboard's canonical copy of the orders. The Google
Sheet owns the durable copy; the store is a cache that must agree with the
sheet after every confirmed mutation.

Mutation lifecycle:
    idle -> optimistically-applied -> (confirmed | rolled-back)

    1. Capture a snapshot of the WHOLE collection
    2. Apply the change locally (status change, edit, delete)
    3. Call the sheet endpoint
    4. Success: keep the change (reconciled with the row the sheet returned)
       Failure: restore the snapshot, record a banner message

Adds are not optimistic: the sheet assigns the id, so the new order is
prepended only after the sheet has returned it.

Thread Safety:
    - The collection is replaced, never mutated in place, under a
      threading.Lock; Order is frozen so snapshots are plain list copies
    - The lock is NOT held during the remote call
    - Overlapping mutations are not ordered. Each one restores its own
      snapshot on failure, so a failing rollback can undo a change that
      another request confirmed in the meantime (known race)

Usage:
    store = OrderStore(client, endpoint_config)
    store.refresh()

    result = store.change_status("SM-101", OrderStatus.COMPLETED)
    if not result.ok:
        flash(result.error, "error")
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from core.endpoint_config import EndpointConfigService
from core.exceptions import OrderNotFoundError, SheetAPIError
from core.sheet_client import SheetAPIClient
from models.order import Order, OrderFields, OrderStatus
from logging_config import get_logger, get_mutation_logger


# Module logger
logger = get_logger(__name__)


class StoreEvent(Enum):
    """Transitions reported to store listeners."""

    OPTIMISTIC = "optimistic"
    """A local change was applied ahead of the sheet."""

    CONFIRMED = "confirmed"
    """The sheet accepted an optimistic change."""

    ROLLED_BACK = "rolled_back"
    """The sheet rejected a change; the snapshot was restored."""

    ADDED = "added"
    """A new order returned by the sheet was prepended."""

    REFRESHED = "refreshed"
    """The whole collection was replaced by a fresh listing."""


StoreListener = Callable[[StoreEvent, List[Order]], None]


@dataclass
class MutationResult:
    """
    Outcome of one store operation.

    error holds the user-facing banner message when ok is False.
    """

    mutation_id: str
    action: str
    ok: bool
    order: Optional[Order] = None
    error: Optional[str] = None
    rolled_back: bool = False


class OrderStore:
    """
    Canonical in-memory collection of orders.

    Every mutation goes through this class; routes never touch the list
    directly. Listeners registered with subscribe() are called after every
    transition with the new collection.
    """

    def __init__(self, client: SheetAPIClient, endpoint_config: EndpointConfigService):
        """
        Initialize an empty, not-yet-loaded store.

        Args:
            client: Sheet client for remote calls
            endpoint_config: Supplies the active endpoint; cleared when a
                listing fails
        """
        self._client = client
        self._endpoint_config = endpoint_config
        self._orders: List[Order] = []
        self._loaded = False
        self._error: Optional[str] = None
        self._lock = threading.Lock()
        self._listeners: List[StoreListener] = []

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def orders(self) -> List[Order]:
        """A copy of the current collection."""
        with self._lock:
            return list(self._orders)

    @property
    def loaded(self) -> bool:
        """True once a listing has populated the store."""
        with self._lock:
            return self._loaded

    @property
    def error(self) -> Optional[str]:
        """Banner message from the last failed operation, if any."""
        with self._lock:
            return self._error

    def clear_error(self) -> None:
        with self._lock:
            self._error = None

    def get(self, order_id: str) -> Optional[Order]:
        """Find an order by id."""
        with self._lock:
            for order in self._orders:
                if order.id == order_id:
                    return order
        return None

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """
        Register a listener for store transitions.

        Returns:
            A callable that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def seed(self, orders: List[Order]) -> None:
        """Replace the collection with orders fetched elsewhere (setup)."""
        with self._lock:
            self._orders = list(orders)
            self._loaded = True
            self._error = None
        self._notify(StoreEvent.REFRESHED)

    def refresh(self) -> MutationResult:
        """
        Replace the collection with a fresh listing from the sheet.

        A failed listing is taken to mean a bad endpoint: the saved URL is
        cleared and the setup page comes back.

        Raises:
            EndpointNotConfiguredError: If no endpoint is active
        """
        endpoint = self._endpoint_config.require()
        mutation_id = str(uuid.uuid4())

        try:
            orders = self._client.list_orders(endpoint)
        except SheetAPIError as e:
            logger.error(f"Listing failed, clearing endpoint: {e.message}")
            message = (
                "Failed to fetch data from Google Sheets. Please check your URL "
                f"and sheet setup. Details: {e.message}"
            )
            self._endpoint_config.clear()
            with self._lock:
                self._loaded = False
                self._error = message
            return MutationResult(mutation_id, "refresh", ok=False, error=message)

        logger.info(f"Loaded {len(orders)} orders from sheet")
        self.seed(orders)
        return MutationResult(mutation_id, "refresh", ok=True)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def change_status(self, order_id: str, new_status: Union[OrderStatus, str]) -> MutationResult:
        """
        Change one order's status, optimistically.

        Args:
            order_id: Order to change
            new_status: Member or value of OrderStatus

        Raises:
            ValueError: If new_status is not a known status
            EndpointNotConfiguredError: If no endpoint is active
            OrderNotFoundError: If order_id is not in the collection
        """
        status = OrderStatus(new_status)
        endpoint = self._endpoint_config.require()

        current = self.get(order_id)
        if current is None:
            raise OrderNotFoundError(order_id)

        return self._apply_update(
            action="status",
            endpoint=endpoint,
            updated=current.with_changes(status=status),
            failure_message="Failed to update status. Reverting change.",
        )

    def update_order(self, original_id: str, fields: OrderFields) -> MutationResult:
        """
        Merge edited fields into an order, optimistically.

        id, issue date and status are kept from the stored order; the full
        merged record is sent so the sheet replaces the whole row.

        Raises:
            EndpointNotConfiguredError: If no endpoint is active
            OrderNotFoundError: If original_id is not in the collection
        """
        endpoint = self._endpoint_config.require()

        current = self.get(original_id)
        if current is None:
            raise OrderNotFoundError(original_id)

        return self._apply_update(
            action="update",
            endpoint=endpoint,
            updated=fields.apply_to(current),
            failure_message="Failed to update order. Reverting change.",
        )

    def delete_order(self, order_id: str) -> MutationResult:
        """
        Remove an order, optimistically.

        The sheet is asked to delete the id even if it is no longer in the
        local collection, so deleting twice reports the sheet's not-found
        error instead of silently succeeding.

        Raises:
            EndpointNotConfiguredError: If no endpoint is active
        """
        endpoint = self._endpoint_config.require()
        mutation_id = str(uuid.uuid4())
        mutation_logger = get_mutation_logger(mutation_id)

        with self._lock:
            snapshot = list(self._orders)
            self._orders = [o for o in snapshot if o.id != order_id]
        mutation_logger.debug(f"Optimistically removed {order_id}")
        self._notify(StoreEvent.OPTIMISTIC)

        try:
            self._client.delete_order(endpoint, order_id)
        except SheetAPIError as e:
            return self._rollback(
                mutation_id, "delete", snapshot,
                f"Failed to delete order. Reverting change. ({e.message})"
            )

        mutation_logger.info(f"Delete of {order_id} confirmed")
        self._notify(StoreEvent.CONFIRMED)
        return MutationResult(mutation_id, "delete", ok=True)

    def add_order(self, fields: OrderFields) -> MutationResult:
        """
        Create an order on the sheet, then prepend it locally.

        Nothing changes locally if the sheet call fails.

        Raises:
            EndpointNotConfiguredError: If no endpoint is active
        """
        endpoint = self._endpoint_config.require()
        mutation_id = str(uuid.uuid4())
        mutation_logger = get_mutation_logger(mutation_id)

        try:
            created = self._client.add_order(endpoint, fields)
        except SheetAPIError as e:
            message = f"Failed to add new order. ({e.message})"
            mutation_logger.error(f"Add failed: {e.message}")
            with self._lock:
                self._error = message
            return MutationResult(mutation_id, "add", ok=False, error=message)

        with self._lock:
            self._orders = [created] + self._orders
        mutation_logger.info(f"Added {created.id}")
        self._notify(StoreEvent.ADDED)
        return MutationResult(mutation_id, "add", ok=True, order=created)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply_update(
        self,
        action: str,
        endpoint: str,
        updated: Order,
        failure_message: str
    ) -> MutationResult:
        """Optimistically replace one order and send the full record."""
        mutation_id = str(uuid.uuid4())
        mutation_logger = get_mutation_logger(mutation_id)

        with self._lock:
            snapshot = list(self._orders)
            self._orders = [updated if o.id == updated.id else o for o in snapshot]
        mutation_logger.debug(f"Optimistically applied {action} to {updated.id}")
        self._notify(StoreEvent.OPTIMISTIC)

        try:
            confirmed = self._client.update_order(endpoint, updated)
        except SheetAPIError as e:
            return self._rollback(
                mutation_id, action, snapshot, f"{failure_message} ({e.message})"
            )

        # Reconcile with what the sheet actually stored
        if confirmed.id == updated.id:
            with self._lock:
                self._orders = [confirmed if o.id == confirmed.id else o for o in self._orders]
        else:
            confirmed = updated

        mutation_logger.info(f"{action.capitalize()} of {updated.id} confirmed")
        self._notify(StoreEvent.CONFIRMED)
        return MutationResult(mutation_id, action, ok=True, order=confirmed)

    def _rollback(
        self,
        mutation_id: str,
        action: str,
        snapshot: List[Order],
        message: str
    ) -> MutationResult:
        """Restore the pre-mutation snapshot and record the banner message."""
        with self._lock:
            self._orders = snapshot
            self._error = message

        get_mutation_logger(mutation_id).warning(f"{action.capitalize()} rolled back: {message}")
        self._notify(StoreEvent.ROLLED_BACK)
        return MutationResult(mutation_id, action, ok=False, error=message, rolled_back=True)

    def _notify(self, event: StoreEvent) -> None:
        orders = self.orders
        for listener in list(self._listeners):
            listener(event, orders)
