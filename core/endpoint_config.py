"""
Endpoint configuration lifecycle.

The dashboard talks to exactly one Google Sheet web app. Its URL is the only
persisted setting and gates every data operation:

    ABSENT  --save(url)-->  VALIDATING  --trial listing ok-->  ACTIVE
       ^                        |                                 |
       |                        +--trial listing failed--> (previous state)
       +--------------------- clear() ----------------------------+

clear() is called by the order store whenever a listing fails, which sends
the user back to the setup page (fail closed).

The URL is kept in a small JSON settings file under the fixed key
"googleSheetWebAppUrl" so it survives restarts until cleared.
"""

from __future__ import annotations

import json
import threading
from enum import Enum
from pathlib import Path
from typing import List, Optional

from models.order import Order
from logging_config import get_logger
from .exceptions import EndpointNotConfiguredError, InvalidEndpointError, SheetAPIError
from .sheet_client import SheetAPIClient


# Module logger
logger = get_logger(__name__)

SETTINGS_KEY = "googleSheetWebAppUrl"


class EndpointState(Enum):
    """Lifecycle state of the configured endpoint."""

    ABSENT = "absent"
    VALIDATING = "validating"
    ACTIVE = "active"


class EndpointConfigService:
    """
    Owns the persisted endpoint URL.

    Passed explicitly to the order store and the routes (via app.config);
    there is no module-level URL.

    Thread Safety:
        - Reads and writes of the URL/state go through a threading.Lock
        - The trial listing in save() runs outside the lock
    """

    def __init__(self, settings_path: Path, client: SheetAPIClient):
        """
        Initialize the service. Call load() to pick up a saved URL.

        Args:
            settings_path: JSON file holding the saved URL
            client: Sheet client used for the trial listing
        """
        self._path = Path(settings_path)
        self._client = client
        self._url: Optional[str] = None
        self._state = EndpointState.ABSENT
        self._lock = threading.Lock()

    @property
    def url(self) -> Optional[str]:
        """The active endpoint URL, or None."""
        with self._lock:
            return self._url if self._state == EndpointState.ACTIVE else None

    @property
    def state(self) -> EndpointState:
        with self._lock:
            return self._state

    @property
    def is_configured(self) -> bool:
        return self.url is not None

    def require(self) -> str:
        """
        Get the active URL for a data operation.

        Raises:
            EndpointNotConfiguredError: If no URL is active
        """
        url = self.url
        if url is None:
            raise EndpointNotConfiguredError()
        return url

    def load(self) -> Optional[str]:
        """
        Read the saved URL from the settings file.

        A missing or unreadable file leaves the service ABSENT.

        Returns:
            The loaded URL, or None
        """
        url = None
        if self._path.exists():
            try:
                data = json.loads(self._path.read_text(encoding="utf-8"))
                value = data.get(SETTINGS_KEY) if isinstance(data, dict) else None
                if isinstance(value, str) and value.strip():
                    url = value.strip()
            except (OSError, ValueError) as e:
                logger.warning(f"Could not read endpoint settings {self._path}: {e}")

        with self._lock:
            self._url = url
            self._state = EndpointState.ACTIVE if url else EndpointState.ABSENT

        if url:
            logger.info("Loaded saved Google Sheet endpoint")
        else:
            logger.info("No Google Sheet endpoint saved - setup required")
        return url

    def save(self, url: str) -> List[Order]:
        """
        Validate and persist a new endpoint URL.

        The URL is trimmed; empty input is rejected without a network call.
        Otherwise a trial listing is made against it. Only a successful
        listing persists and activates the URL.

        Args:
            url: URL as entered by the user

        Returns:
            Orders fetched by the trial listing (used to seed the store)

        Raises:
            InvalidEndpointError: Empty input, trial listing failed, or the
                settings file could not be written
        """
        url = (url or "").strip()
        if not url:
            raise InvalidEndpointError("Please enter a valid Web App URL.")

        with self._lock:
            previous_state = self._state
            self._state = EndpointState.VALIDATING

        logger.info("Validating new Google Sheet endpoint...")

        try:
            orders = self._client.list_orders(url)
        except SheetAPIError as e:
            with self._lock:
                self._state = previous_state
            logger.warning(f"Endpoint validation failed: {e.message}")
            raise InvalidEndpointError(
                "Could not connect using this URL. Please verify it's correct "
                f"and try again. Error: {e.message}",
                url=url,
                reason=e.message
            )

        try:
            self._write(url)
        except OSError as e:
            with self._lock:
                self._state = previous_state
            logger.error(f"Could not save endpoint settings {self._path}: {e}")
            raise InvalidEndpointError(
                f"The URL works, but it could not be saved. Error: {e}",
                url=url,
                reason=str(e)
            )

        with self._lock:
            self._url = url
            self._state = EndpointState.ACTIVE

        logger.info(f"Endpoint saved ({len(orders)} orders found)")
        return orders

    def clear(self) -> None:
        """Forget the saved URL; setup is required again."""
        with self._lock:
            self._url = None
            self._state = EndpointState.ABSENT

        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Could not remove endpoint settings {self._path}: {e}")

        logger.warning("Google Sheet endpoint cleared")

    def _write(self, url: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({SETTINGS_KEY: url}, indent=2), encoding="utf-8")
