"""Source registry — lazily created, never-evicted source -> state map.

The registry lock is held only while creating an entry.  Lookups of known
sources are lock-free reads of the dict, so traffic for different sources
never contends once each source exists.
"""

from __future__ import annotations

import logging
import threading

from noncegate.core.source_state import SourceState

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Maps ``source_id`` to its ``SourceState``.

    Entries persist for the registry's lifetime.  Eviction of idle or stuck
    sources is left to callers layered on top.
    """

    def __init__(self) -> None:
        self._states: dict[str, SourceState] = {}
        self._create_lock = threading.Lock()

    def get(self, source_id: str) -> SourceState | None:
        """Return the state for *source_id*, or ``None`` if never seen."""
        return self._states.get(source_id)

    def get_or_create(self, source_id: str) -> SourceState:
        """Return the state for *source_id*, creating it on first sight."""
        state = self._states.get(source_id)
        if state is not None:
            return state

        with self._create_lock:
            state = self._states.get(source_id)
            if state is None:
                state = SourceState(source_id)
                self._states[source_id] = state
                logger.info("Registered new source: %s", source_id)
            return state

    def source_ids(self) -> list[str]:
        """Return all known source ids, sorted."""
        return sorted(self._states)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._states

    def __len__(self) -> int:
        return len(self._states)
