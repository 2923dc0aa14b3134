"""Sink protocol for the ordering gate.

A sink is the single downstream collaborator of ``OrderedDispatcher``: a
``sink_name`` property and a ``push(item)`` method.  The dispatcher calls
``push`` exactly once per forwarded item, strictly in per-source nonce
order, and never while holding a source lock.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from noncegate.models.items import Transaction


@runtime_checkable
class BaseSink(Protocol):
    """Protocol that every downstream sink must implement.

    Attributes
    ----------
    sink_name : str
        A human-readable identifier for this sink instance
        (e.g. ``"memory"``, ``"ledger"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the name of this sink."""
        ...

    def push(self, item: Transaction) -> None:
        """Deliver *item* downstream.

        May return before the downstream has finalized the item; the
        finalization is reported back through ``OrderedDispatcher.confirm``.
        Exceptions are logged by the dispatcher and surfaced to the caller
        that was draining as ``SinkPushError``.
        """
        ...
