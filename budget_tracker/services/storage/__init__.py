"""
Storage Services Package

Provides the key-value storage interface and its implementations.
Local disk is the default backend; Google Sheets is optional.
"""

from budget_tracker.services.storage.interface import (
    API_KEY_KEY,
    FINANCIAL_DATA_KEY,
    MODEL_KEY,
    WORD_INDEX_KEY,
    ConnectionError,
    KeyValueStore,
    QuotaExceededError,
    StorageError,
    StorageUnavailableError,
)
from budget_tracker.services.storage.local import LocalFileStore
from budget_tracker.services.storage.memory import InMemoryStore
from budget_tracker.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsStore,
)

__all__ = [
    # Interface
    "KeyValueStore",
    # Well-known keys
    "API_KEY_KEY",
    "FINANCIAL_DATA_KEY",
    "MODEL_KEY",
    "WORD_INDEX_KEY",
    # Exceptions
    "ConnectionError",
    "QuotaExceededError",
    "StorageError",
    "StorageUnavailableError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsStore",
    "InMemoryStore",
    "LocalFileStore",
]
