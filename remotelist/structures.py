"""Thread-safe collection of named integer lists."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Mapping


class RemoteListError(Exception):
    """Base class for errors raised by list operations."""


class ListNotFoundError(RemoteListError, LookupError):
    """Raised when an operation names a list that does not exist."""

    def __init__(self, list_id: str) -> None:
        self.list_id = list_id
        super().__init__(f"lista com ID '{list_id}' não encontrada")


class IndexOutOfRangeError(RemoteListError, IndexError):
    """Raised when a read asks for a position outside the list."""

    def __init__(self, list_id: str, index: int, size: int) -> None:
        self.list_id = list_id
        self.index = index
        self.size = size
        super().__init__(
            f"índice {index} fora dos limites para a lista ID '{list_id}' (tamanho {size})"
        )


class EmptyListError(RemoteListError, IndexError):
    """Raised when removing from a list that has no elements."""

    def __init__(self, list_id: str) -> None:
        self.list_id = list_id
        super().__init__(f"lista com ID '{list_id}' está vazia")


@dataclass(eq=False)
class _Slot:
    elements: list[int]
    lock: threading.Lock = field(default_factory=threading.Lock)


class RemoteList:
    """Integer lists addressed by an identifier, safe for concurrent use."""

    def __init__(self, lists: Mapping[str, list[int]] | None = None) -> None:
        self._lock = threading.Lock()
        self._lists: dict[str, _Slot] = {
            list_id: _Slot(list(elements)) for list_id, elements in (lists or {}).items()
        }

    def _existing(self, list_id: str) -> _Slot:
        with self._lock:
            slot = self._lists.get(list_id)
        if slot is None:
            raise ListNotFoundError(list_id)
        return slot

    def append(self, list_id: str, value: int) -> bool:
        """Add a value to the end of a list, creating the list if needed."""
        with self._lock:
            slot = self._lists.get(list_id)
            if slot is None:
                slot = self._lists[list_id] = _Slot([])
        with slot.lock:
            slot.elements.append(value)
        return True

    def get(self, list_id: str, index: int) -> int:
        """Return the value at a position of a list."""
        slot = self._existing(list_id)
        with slot.lock:
            size = len(slot.elements)
            if index < 0 or index >= size:
                raise IndexOutOfRangeError(list_id, index, size)
            return slot.elements[index]

    def remove(self, list_id: str) -> int:
        """Remove and return the last value of a list."""
        slot = self._existing(list_id)
        with slot.lock:
            if not slot.elements:
                raise EmptyListError(list_id)
            return slot.elements.pop()

    def size(self, list_id: str) -> int:
        """Return how many values a list holds."""
        slot = self._existing(list_id)
        with slot.lock:
            return len(slot.elements)

    def to_dict(self) -> dict[str, Any]:
        """Return a consistent JSON-ready copy of every list."""
        with self._lock:
            lists = {}
            for list_id, slot in self._lists.items():
                with slot.lock:
                    lists[list_id] = {"Elements": list(slot.elements)}
        return {"Lists": lists}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RemoteList:
        """Build an instance from the structure produced by ``to_dict``."""
        if not isinstance(data, Mapping):
            raise ValueError("list data must be a mapping")
        raw_lists = data.get("Lists") or {}
        if not isinstance(raw_lists, Mapping):
            raise ValueError("'Lists' must be a mapping")
        lists: dict[str, list[int]] = {}
        for list_id, entry in raw_lists.items():
            elements = (entry or {}).get("Elements") or []
            if not all(isinstance(v, int) and not isinstance(v, bool) for v in elements):
                raise ValueError(f"list '{list_id}' holds non-integer elements")
            lists[list_id] = list(elements)
        return cls(lists)