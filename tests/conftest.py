"""Shared test fixtures for noncegate."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from noncegate.config import GateConfig
from noncegate.core.dispatcher import OrderedDispatcher
from noncegate.models.items import Transaction
from noncegate.sinks.ledger import LedgerSink
from noncegate.sinks.memory import RecordingSink


@pytest.fixture
def gate_config() -> GateConfig:
    """Provide a GateConfig with defaults, isolated from any .env file."""
    return GateConfig(_env_file=None)


@pytest.fixture
def sink() -> RecordingSink:
    """Provide a fresh in-memory RecordingSink."""
    return RecordingSink()


@pytest.fixture
def dispatcher(sink: RecordingSink, gate_config: GateConfig) -> OrderedDispatcher:
    """Provide an OrderedDispatcher wired to the recording sink."""
    return OrderedDispatcher(sink, gate_config=gate_config)


@pytest.fixture
def ledger_sink(tmp_path: Path) -> LedgerSink:
    """Provide a fresh LedgerSink backed by a temp SQLite database."""
    return LedgerSink(tmp_path / "test_ledger.db")


# ---------------------------------------------------------------------------
# Transaction factory — shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_tx() -> Callable[..., Transaction]:
    """Factory fixture: build a Transaction, ``make_tx("A", 3)``."""

    def _factory(source_id: str = "wallet-a", nonce: int = 0, **overrides: Any) -> Transaction:
        return Transaction(source_id=source_id, nonce=nonce, **overrides)

    return _factory
