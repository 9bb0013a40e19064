# cardgame/storage.py
"""
Key-value backing stores for registry mappings.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Hashable, Iterator, Optional, Tuple


class KeyValueStore(ABC):
    """Minimal get/set mapping used by the registry."""

    @abstractmethod
    def get(self, key: Hashable) -> Optional[Any]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: Hashable, value: Any) -> None:
        """Insert or replace the value under key."""

    @abstractmethod
    def __contains__(self, key: Hashable) -> bool:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...

    @abstractmethod
    def items(self) -> Iterator[Tuple[Hashable, Any]]:
        ...


class MemoryStore(KeyValueStore):
    """Dict-backed store."""

    def __init__(self, initial: Dict[Hashable, Any] = None):
        self._data: Dict[Hashable, Any] = dict(initial or {})

    def get(self, key: Hashable) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: Hashable, value: Any) -> None:
        self._data[key] = value

    def __contains__(self, key: Hashable) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def items(self) -> Iterator[Tuple[Hashable, Any]]:
        return iter(list(self._data.items()))
