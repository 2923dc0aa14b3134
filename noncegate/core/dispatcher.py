"""OrderedDispatcher — forwards items per source in strict, gapless nonce order.

Two callers drive the dispatcher:

- submitters call ``schedule(item)`` when a new transaction arrives;
- the downstream ledger calls ``confirm(item)`` when a pushed transaction
  is finalized.

Either call may forward items to the injected sink.  Per source, the
decision to forward is made under that source's lock; the push itself runs
after the lock is released, through the source's outbox.  Sources never
share a lock once they exist.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from noncegate.config import GateConfig, config
from noncegate.core.registry import SourceRegistry
from noncegate.core.source_state import SourceState
from noncegate.models.items import Transaction
from noncegate.models.sources import SourceSnapshot

if TYPE_CHECKING:
    from noncegate.sinks import BaseSink

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SequencingError(RuntimeError):
    """Base class for caller errors rejected by the dispatcher."""


class DuplicateOrStaleSequenceError(SequencingError):
    """Raised when a scheduled nonce was already forwarded or is already buffered."""

    def __init__(self, item: Transaction, next_expected: int, *, buffered: bool) -> None:
        self.item = item
        self.source_id = item.source_id
        self.nonce = item.nonce
        self.next_expected = next_expected
        self.buffered = buffered
        if buffered:
            detail = "is already buffered"
        else:
            detail = f"is below next expected nonce {next_expected}"
        super().__init__(
            f"Rejected {item.label} (transaction {item.transaction_id}): nonce {detail}"
        )


class UnknownSourceError(SequencingError, KeyError):
    """Raised when a confirmation or lookup names a source never scheduled."""

    def __init__(self, source_id: str) -> None:
        self.source_id = source_id
        super().__init__(f"Unknown source: {source_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class PendingBufferFullError(SequencingError):
    """Raised when a source's reorder buffer is at its configured bound."""

    def __init__(self, item: Transaction, limit: int) -> None:
        self.item = item
        self.limit = limit
        super().__init__(
            f"Rejected {item.label}: {limit} items already buffered for "
            f"source {item.source_id!r}"
        )


class SinkPushError(RuntimeError):
    """Raised after a drain in which the sink failed for one or more items.

    The forward decisions were already committed; the failed items count
    as forwarded.  Resubmission is the caller's policy.
    """

    def __init__(self, failures: list[tuple[Transaction, Exception]]) -> None:
        self.failures = failures
        super().__init__(
            f"Sink failed for {len(failures)} item(s): "
            + "; ".join(f"{item.label}: {exc}" for item, exc in failures)
        )


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class OrderedDispatcher:
    """Per-source ordering gate in front of a sink.

    Parameters
    ----------
    sink:
        The downstream collaborator.  Its ``push`` is called exactly once
        per forwarded item, in strict per-source nonce order.
    gate_config:
        Settings; defaults to the module-level ``config``.

    Usage
    -----
    >>> dispatcher = OrderedDispatcher(ledger_sink)
    >>> dispatcher.schedule(Transaction(source_id="w1", nonce=1))  # buffered
    []
    >>> [t.nonce for t in dispatcher.schedule(Transaction(source_id="w1", nonce=0))]
    [0, 1]
    """

    def __init__(self, sink: BaseSink, *, gate_config: GateConfig | None = None) -> None:
        self._sink = sink
        self._config = gate_config or config
        self._registry = SourceRegistry()

    @property
    def sink(self) -> BaseSink:
        return self._sink

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def schedule(self, item: Transaction) -> list[Transaction]:
        """Submit *item* for ordered dispatch.

        Forwards the item at once if its nonce is the one the source
        expects, together with any buffered successors it unblocks.
        Otherwise the item waits in the source's reorder buffer.

        Returns the items committed for forwarding by this call.

        The call that finds the source's outbox idle becomes its drainer and
        also pushes items committed meanwhile by other threads.  Under
        sustained traffic for one source that call may therefore block for
        an unbounded time; other calls for the source return as soon as
        their decision is committed.

        Raises
        ------
        DuplicateOrStaleSequenceError
            The nonce was already forwarded or is already buffered.
        PendingBufferFullError
            A buffer bound is configured and the source is at it.
        SinkPushError
            The sink raised while this call was draining the outbox.
        """
        state = self._registry.get_or_create(item.source_id)
        limit = self._config.max_pending_per_source

        with state.lock:
            if item.nonce < state.next_expected or state.is_buffered(item.nonce):
                raise DuplicateOrStaleSequenceError(
                    item,
                    state.next_expected,
                    buffered=state.is_buffered(item.nonce),
                )
            if (
                limit is not None
                and item.nonce != state.next_expected
                and state.pending_count >= limit
            ):
                raise PendingBufferFullError(item, limit)

            committed = state.admit(item)
            next_expected = state.next_expected

        if committed:
            logger.debug(
                "schedule %s: forwarding %s (next expected %d)",
                item.label,
                [t.nonce for t in committed],
                next_expected,
            )
        else:
            logger.debug(
                "schedule %s: buffered, waiting on nonce %d",
                item.label,
                next_expected,
            )

        self._drain(state)
        return committed

    def confirm(self, item: Transaction) -> list[Transaction]:
        """Record that *item* was finalized downstream and release successors.

        Runs the contiguous-release loop to exhaustion.  Calling it again
        with nothing releasable is a no-op.

        Returns the items committed for forwarding by this call.

        Raises
        ------
        UnknownSourceError
            No item was ever scheduled for ``item.source_id``.  No state is
            created.
        SinkPushError
            The sink raised while this call was draining the outbox.
        """
        state = self._registry.get(item.source_id)
        if state is None:
            raise UnknownSourceError(item.source_id)

        with state.lock:
            if item.nonce >= state.next_expected:
                logger.warning(
                    "confirm %s: nonce was never forwarded (next expected %d)",
                    item.label,
                    state.next_expected,
                )
            committed = state.release()

        if committed:
            logger.debug(
                "confirm %s: released %s",
                item.label,
                [t.nonce for t in committed],
            )

        self._drain(state)
        return committed

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def snapshot(self, source_id: str) -> SourceSnapshot:
        """Return a consistent view of one source's state."""
        state = self._registry.get(source_id)
        if state is None:
            raise UnknownSourceError(source_id)
        with state.lock:
            return state.snapshot()

    def snapshots(self) -> list[SourceSnapshot]:
        """Return snapshots of every known source, sorted by source id."""
        return [self.snapshot(source_id) for source_id in self.source_ids]

    @property
    def source_ids(self) -> list[str]:
        return self._registry.source_ids()

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._registry

    def __len__(self) -> int:
        return len(self._registry)

    # ------------------------------------------------------------------
    # Outbox draining
    # ------------------------------------------------------------------

    def _drain(self, state: SourceState) -> None:
        """Push committed items outside the source lock, in commit order.

        If another thread is already draining this source, it will pick up
        whatever this call committed, and this call returns at once.

        Anything that escapes the loop (an ``OutOfOrderViolation``, or a
        ``BaseException`` such as ``KeyboardInterrupt`` raised by the sink)
        releases the drain claim before propagating, so the next caller
        resumes with the remaining outbox items.  The item being pushed at
        that moment stays forwarded.
        """
        with state.lock:
            if not state.claim_drain():
                return

        failures: list[tuple[Transaction, Exception]] = []
        try:
            while True:
                with state.lock:
                    item = state.next_to_push()
                if item is None:
                    break

                try:
                    self._sink.push(item)
                except Exception as exc:  # noqa: BLE001
                    logger.error(
                        "Sink %s failed for %s (transaction %s): %s",
                        self._sink.sink_name,
                        item.label,
                        item.transaction_id,
                        exc,
                    )
                    failures.append((item, exc))
        except BaseException:
            with state.lock:
                state.abandon_drain()
            raise

        if failures:
            raise SinkPushError(failures)
