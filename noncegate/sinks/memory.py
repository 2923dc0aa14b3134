"""In-memory sink — records every push, in order, for tests and simulations."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from noncegate.models.items import Transaction


class RecordingSink:
    """Thread-safe sink that appends each pushed item to a list.

    Parameters
    ----------
    name:
        Value of ``sink_name``.
    on_push:
        Optional callback invoked with each item after it is recorded.
        It runs on the pushing thread, outside any dispatcher lock, so it
        may call back into the dispatcher.
    """

    def __init__(
        self,
        name: str = "memory",
        on_push: Callable[[Transaction], Any] | None = None,
    ) -> None:
        self._name = name
        self._lock = threading.Lock()
        self._pushed: list[Transaction] = []
        self.on_push = on_push

    @property
    def sink_name(self) -> str:
        return self._name

    def push(self, item: Transaction) -> None:
        with self._lock:
            self._pushed.append(item)
        if self.on_push is not None:
            self.on_push(item)

    @property
    def pushed(self) -> list[Transaction]:
        """Return a copy of everything pushed so far, in push order."""
        with self._lock:
            return list(self._pushed)

    def pushed_for(self, source_id: str) -> list[Transaction]:
        """Return the items pushed for one source, in push order."""
        with self._lock:
            return [t for t in self._pushed if t.source_id == source_id]

    def nonces_for(self, source_id: str) -> list[int]:
        return [t.nonce for t in self.pushed_for(source_id)]

    def clear(self) -> None:
        with self._lock:
            self._pushed.clear()
