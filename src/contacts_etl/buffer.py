"""Pending row mutations keyed by row key."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from .connectors.store import RowMutation


class RowBuffer:
    """Holds at most one pending mutation per row key.

    ``put`` does not lock. Producers sharing a buffer across threads must hold
    ``guard()`` around each put-then-flush sequence; flushes take the same
    guard so they always see a consistent snapshot.
    """

    def __init__(self) -> None:
        self._puts: Dict[str, RowMutation] = {}
        self._lock = threading.RLock()

    def put(self, key: str, mutation: RowMutation) -> None:
        self._puts[key] = mutation

    def get(self, key: str) -> RowMutation | None:
        return self._puts.get(key)

    def get_all(self) -> Dict[str, RowMutation]:
        return dict(self._puts)

    def keys(self) -> List[str]:
        return list(self._puts)

    def reset(self) -> None:
        self._puts = {}

    @contextmanager
    def guard(self) -> Iterator["RowBuffer"]:
        with self._lock:
            yield self

    def __len__(self) -> int:
        return len(self._puts)

    def __contains__(self, key: object) -> bool:
        return key in self._puts


__all__ = ["RowBuffer"]
