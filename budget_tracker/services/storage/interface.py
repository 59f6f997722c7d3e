"""
Abstract Storage Interface

DESIGN DECISION: Persistence is a flat key -> string store, the same
shape as browser local storage. Everything the app keeps (the financial
data blob, the classifier topology/weights, its vocabulary, the advisor
API key) lives under one well-known key each.

This allows us to:
1. Keep data on local disk by default
2. Use in-memory storage for testing
3. Sync to Google Sheets without touching business logic

Reads and writes are synchronous and assumed fast. There is no retry or
timeout here; remote backends add their own.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog


# Well-known keys
FINANCIAL_DATA_KEY = "financialData"
MODEL_KEY = "rnnModel"
WORD_INDEX_KEY = "wordIndex"
API_KEY_KEY = "ai_api_key"

_PROBE_KEY = "__test__"

logger = structlog.get_logger(__name__)


class KeyValueStore(ABC):
    """
    Abstract interface for key-value storage.

    Implementations only provide the four primitives; the JSON helpers
    and the availability probe are shared.
    """

    name: str = "store"

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read the raw string stored under a key.

        Returns:
            The stored value, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a raw string under a key, replacing any previous value.

        Raises:
            QuotaExceededError: If the value does not fit
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List stored keys."""
        pass

    def save_json(self, key: str, data: Any) -> bool:
        """
        Serialize a value to JSON and store it.

        Strings are encoded like any other value; use `save_raw` for text
        that is already JSON.

        Returns:
            True if the write succeeded
        """
        try:
            payload = json.dumps(data)
        except (TypeError, ValueError) as e:
            logger.error("storage_serialize_failed", store=self.name, key=key, error=str(e))
            return False
        return self.save_raw(key, payload)

    def save_raw(self, key: str, text: str) -> bool:
        """
        Store already-serialized text.

        Storage failures are logged and swallowed: the caller keeps
        working with its in-memory copy.

        Returns:
            True if the write succeeded
        """
        try:
            self.set_item(key, text)
            return True
        except StorageError as e:
            logger.error(
                "storage_write_failed",
                store=self.name,
                key=key,
                error=str(e),
            )
            return False

    def load_json(self, key: str, default: Any = None) -> Any:
        """
        Load and parse a stored value.

        Returns `default` if the key is missing, unreadable or malformed.
        """
        try:
            raw = self.get_item(key)
        except StorageError as e:
            logger.error("storage_read_failed", store=self.name, key=key, error=str(e))
            return default

        if raw is None:
            return default

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("storage_value_malformed", store=self.name, key=key, error=str(e))
            return default

    def clear(self, key: str) -> bool:
        """Remove a key, logging instead of raising on failure."""
        try:
            self.remove_item(key)
            return True
        except StorageError as e:
            logger.error("storage_clear_failed", store=self.name, key=key, error=str(e))
            return False

    def is_available(self) -> bool:
        """Check the store accepts writes by round-tripping a probe key."""
        try:
            self.set_item(_PROBE_KEY, _PROBE_KEY)
            self.remove_item(_PROBE_KEY)
            return True
        except StorageError:
            return False


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageUnavailableError(StorageError):
    """Storage is disabled or cannot be reached."""
    pass


class QuotaExceededError(StorageError):
    """The value does not fit in the remaining storage quota."""
    pass


class ConnectionError(StorageError):
    """Could not connect to a remote storage backend."""
    pass
