"""Per-source sequencing state: a counter plus an out-of-order reorder buffer.

Every method except ``__init__`` expects the caller to hold ``lock``.  The
dispatcher owns the locking; this module owns the bookkeeping.

Forward decisions are committed to an outbox while the lock is held and
pushed to the sink after it is released.  Exactly one thread drains a
source's outbox at a time, so pushes leave in commit order.
"""

from __future__ import annotations

import collections
import heapq
import threading

from noncegate.models.items import Transaction
from noncegate.models.sources import SourceSnapshot


class OutOfOrderViolation(AssertionError):
    """Internal invariant breach: an item reached the outbox out of sequence.

    Never expected in practice; the state machine only commits the item
    whose nonce equals ``next_expected``.
    """


class SourceState:
    """Sequencing state for one source wallet.

    Attributes
    ----------
    source_id:
        The ordering domain this state belongs to.
    next_expected:
        The nonce the source will forward next.  Starts at 0 and grows by
        exactly one per forwarded item.
    lock:
        Guards every read and write of this state.
    """

    def __init__(self, source_id: str) -> None:
        self.source_id = source_id
        self.next_expected = 0
        self.lock = threading.Lock()
        # Min-heap of (nonce, item); nonces are unique within the heap.
        self._pending: list[tuple[int, Transaction]] = []
        self._buffered: set[int] = set()
        self._outbox: collections.deque[Transaction] = collections.deque()
        self._draining = False
        self._pushed_through = -1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_buffered(self, nonce: int) -> bool:
        return nonce in self._buffered

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def snapshot(self) -> SourceSnapshot:
        return SourceSnapshot(
            source_id=self.source_id,
            next_expected=self.next_expected,
            pending_nonces=sorted(self._buffered),
        )

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def admit(self, item: Transaction) -> list[Transaction]:
        """Forward *item* if it is next in line, otherwise buffer it.

        The caller has already rejected stale and duplicate nonces.
        Returns the items committed for forwarding, in order.
        """
        if item.nonce != self.next_expected:
            heapq.heappush(self._pending, (item.nonce, item))
            self._buffered.add(item.nonce)
            return []

        self._commit(item)
        return [item, *self.release()]

    def release(self) -> list[Transaction]:
        """Contiguous-release loop: drain buffered successors to exhaustion.

        Safe to call redundantly; returns ``[]`` when the buffer's minimum
        does not match ``next_expected``.
        """
        released: list[Transaction] = []
        while self._pending and self._pending[0][0] == self.next_expected:
            nonce, item = heapq.heappop(self._pending)
            self._buffered.discard(nonce)
            self._commit(item)
            released.append(item)
        return released

    def _commit(self, item: Transaction) -> None:
        self._outbox.append(item)
        self.next_expected += 1

    # ------------------------------------------------------------------
    # Outbox draining
    # ------------------------------------------------------------------

    def claim_drain(self) -> bool:
        """Become the drainer if there is work and nobody else is draining."""
        if self._draining or not self._outbox:
            return False
        self._draining = True
        return True

    def next_to_push(self) -> Transaction | None:
        """Pop the next committed item; releases the drain claim when empty."""
        if not self._outbox:
            self._draining = False
            return None

        item = self._outbox.popleft()
        if item.nonce != self._pushed_through + 1:
            raise OutOfOrderViolation(
                f"{self.source_id}: outbox yielded nonce {item.nonce} "
                f"after {self._pushed_through}"
            )
        self._pushed_through = item.nonce
        return item

    def abandon_drain(self) -> None:
        """Release the drain claim without emptying the outbox."""
        self._draining = False
