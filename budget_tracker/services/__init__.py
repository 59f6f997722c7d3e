"""Services package."""

from budget_tracker.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsStore,
    InMemoryStore,
    KeyValueStore,
    LocalFileStore,
    QuotaExceededError,
    StorageError,
    StorageUnavailableError,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsStore",
    "InMemoryStore",
    "KeyValueStore",
    "LocalFileStore",
    "QuotaExceededError",
    "StorageError",
    "StorageUnavailableError",
]
