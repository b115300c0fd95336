"""Run-scoped shared state."""

from collections.abc import Iterator, Mapping
from typing import Any


class WorkflowState:
    """Ordered, string-keyed bag of values shared by every node in one run.

    A single instance is threaded through the whole run, including any
    suspend/resume cycle, and nodes mutate it in place. Values must be
    encodable by :mod:`eventflow.codec` so the state survives persistence.
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> "WorkflowState":
        self._data[key] = value
        return self

    def has(self, key: str) -> bool:
        return key in self._data

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def all(self) -> dict[str, Any]:
        """Return a shallow copy of the contents."""
        return dict(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkflowState):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"
