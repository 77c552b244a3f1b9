"""Cart persistence port and adapters.

The store only needs three key-value operations.  ``save_cart`` and
``load_cart`` own the on-disk layout: one entry holding
``{"items": [...], "lastUpdated": "<iso>"}`` plus a sibling timestamp
entry used for the expiry check.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import structlog
from django.core.cache import cache as default_cache
from pydantic import ValidationError as PydanticValidationError

from modules.cart.constants import (
    CART_STORAGE_KEY,
    CART_TIMESTAMP_KEY,
    DEFAULT_CART_CONFIG,
    CartConfig,
)
from modules.cart.exceptions import StorageError
from modules.cart.state import CartLineItem, CartState

logger = structlog.get_logger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


# ---------------------------------------------------------------------------
# Port
# ---------------------------------------------------------------------------


class ICartStorage(ABC):
    """Key-value persistence for one cart session.

    Implementations raise ``StorageError`` when the backend fails.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or ``None`` if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete *key*; a missing key is not an error."""


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class InMemoryCartStorage(ICartStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class CacheCartStorage(ICartStorage):
    """Cart storage on the Django cache (Redis in production).

    Keys are namespaced by *session_key* so each visitor owns one cart.
    The cache timeout equals the retention window.
    """

    def __init__(
        self,
        session_key: str,
        cache=None,
        config: CartConfig = DEFAULT_CART_CONFIG,
    ) -> None:
        self._session_key = session_key
        self._cache = cache if cache is not None else default_cache
        self._timeout = config.expiry_days * SECONDS_PER_DAY

    def _key(self, key: str) -> str:
        return f"cart:{self._session_key}:{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._cache.get(self._key(key))
        except Exception as exc:
            raise StorageError("Failed to read cart", details=str(exc)) from exc

    def set(self, key: str, value: str) -> None:
        try:
            self._cache.set(self._key(key), value, timeout=self._timeout)
        except Exception as exc:
            raise StorageError("Failed to save cart", details=str(exc)) from exc

    def remove(self, key: str) -> None:
        try:
            self._cache.delete(self._key(key))
        except Exception as exc:
            raise StorageError("Failed to clear cart", details=str(exc)) from exc


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def save_cart(storage: ICartStorage, state: CartState) -> None:
    """Write the cart and its timestamp.  Raises ``StorageError``."""
    stamp = state.last_updated.isoformat()
    payload = {
        "items": [item.model_dump(mode="json", by_alias=True) for item in state.items],
        "lastUpdated": stamp,
    }
    storage.set(CART_STORAGE_KEY, json.dumps(payload))
    storage.set(CART_TIMESTAMP_KEY, stamp)


def clear_cart_storage(storage: ICartStorage) -> None:
    """Remove both cart keys.  Raises ``StorageError``."""
    storage.remove(CART_STORAGE_KEY)
    storage.remove(CART_TIMESTAMP_KEY)


def load_cart(
    storage: ICartStorage,
    now: datetime,
    config: CartConfig = DEFAULT_CART_CONFIG,
) -> List[CartLineItem]:
    """Rehydrate persisted lines.

    Expired, unreadable or corrupted data yields an empty list and the
    stored keys are cleared; no error reaches the caller.
    """
    try:
        raw = storage.get(CART_STORAGE_KEY)
        if not raw:
            return []
        payload = json.loads(raw)
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            raise ValueError("cart payload has no item list")

        stamp = storage.get(CART_TIMESTAMP_KEY) or payload.get("lastUpdated")
        if stamp and datetime.fromisoformat(stamp) < now - timedelta(
            days=config.expiry_days
        ):
            logger.info("cart.expired", last_updated=stamp)
            _discard(storage)
            return []

        return [CartLineItem.model_validate(item) for item in payload["items"]]
    except StorageError as exc:
        logger.warning("cart.storage_unreadable", error=exc.message)
        return []
    except (ValueError, TypeError, PydanticValidationError) as exc:
        logger.warning("cart.storage_corrupted", error=str(exc))
        _discard(storage)
        return []


def _discard(storage: ICartStorage) -> None:
    try:
        clear_cart_storage(storage)
    except StorageError as exc:
        logger.warning("cart.storage_clear_failed", error=exc.message)
