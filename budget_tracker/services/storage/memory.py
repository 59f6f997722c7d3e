"""In-memory storage, for tests and as the fallback when disk is unusable."""

from typing import Optional

from budget_tracker.services.storage.interface import (
    KeyValueStore,
    StorageUnavailableError,
)


class InMemoryStore(KeyValueStore):
    """Dict-backed store. `disabled=True` simulates storage being turned off."""

    name = "memory"

    def __init__(self, initial: Optional[dict[str, str]] = None, disabled: bool = False):
        self._items: dict[str, str] = dict(initial or {})
        self.disabled = disabled

    def _check(self) -> None:
        if self.disabled:
            raise StorageUnavailableError("Storage is disabled")

    def get_item(self, key: str) -> Optional[str]:
        self._check()
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check()
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._check()
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        self._check()
        return sorted(self._items)
