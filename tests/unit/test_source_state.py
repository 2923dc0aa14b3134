"""Tests for SourceState — counter, reorder heap, and outbox bookkeeping."""

from __future__ import annotations

import pytest

from noncegate.core.source_state import OutOfOrderViolation, SourceState
from noncegate.models.items import Transaction


def _tx(nonce: int, source_id: str = "A") -> Transaction:
    return Transaction(source_id=source_id, nonce=nonce)


class TestAdmitAndRelease:
    def test_initial_state(self):
        state = SourceState("A")
        assert state.next_expected == 0
        assert state.pending_count == 0
        assert state.snapshot().pending_nonces == []

    def test_in_order_item_is_committed(self):
        state = SourceState("A")
        committed = state.admit(_tx(0))
        assert [t.nonce for t in committed] == [0]
        assert state.next_expected == 1

    def test_out_of_order_item_is_buffered(self):
        state = SourceState("A")
        assert state.admit(_tx(3)) == []
        assert state.is_buffered(3)
        assert state.next_expected == 0
        assert state.snapshot().pending_nonces == [3]

    def test_admit_releases_contiguous_successors(self):
        state = SourceState("A")
        state.admit(_tx(2))
        state.admit(_tx(1))
        state.admit(_tx(4))
        committed = state.admit(_tx(0))
        assert [t.nonce for t in committed] == [0, 1, 2]
        assert state.next_expected == 3
        assert state.snapshot().pending_nonces == [4]
        assert not state.is_buffered(2)

    def test_release_is_a_noop_on_a_gap(self):
        state = SourceState("A")
        state.admit(_tx(0))
        state.admit(_tx(5))
        assert state.release() == []
        assert state.release() == []
        assert state.next_expected == 1

    def test_release_removes_each_item_once(self):
        state = SourceState("A")
        for n in (3, 1, 2):
            state.admit(_tx(n))
        state.admit(_tx(0))
        assert state.pending_count == 0
        assert state.release() == []


class TestOutbox:
    def test_claim_requires_work(self):
        state = SourceState("A")
        assert state.claim_drain() is False

    def test_single_drainer(self):
        state = SourceState("A")
        state.admit(_tx(0))
        assert state.claim_drain() is True
        assert state.claim_drain() is False

    def test_next_to_push_yields_commit_order_then_releases_claim(self):
        state = SourceState("A")
        state.admit(_tx(1))
        state.admit(_tx(0))
        assert state.claim_drain()
        assert state.next_to_push().nonce == 0
        assert state.next_to_push().nonce == 1
        assert state.next_to_push() is None
        # Claim was released; new work can be claimed again.
        state.admit(_tx(2))
        assert state.claim_drain() is True

    def test_out_of_order_outbox_is_detected(self):
        state = SourceState("A")
        state._outbox.append(_tx(1))
        assert state.claim_drain()
        with pytest.raises(OutOfOrderViolation):
            state.next_to_push()

    def test_abandon_drain(self):
        state = SourceState("A")
        state.admit(_tx(0))
        assert state.claim_drain()
        state.abandon_drain()
        assert state.claim_drain() is True
