"""Ledger sink — a SQLite-backed stand-in for the downstream ledger.

Plays the role of the blockchain the gate sits in front of:
- accepts a pushed transaction only if its nonce is exactly the next one
  for its source wallet, otherwise raises
  ``TransactionNonceOutOfOrderError``;
- keeps records append-only and hash-chained per source;
- "mines" pushed records on demand, reporting each confirmation to a
  registered callback (normally ``OrderedDispatcher.confirm``).

Nonces are unsigned 64-bit and may exceed SQLite's signed INTEGER range,
so they are stored as decimal TEXT.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from noncegate.core.hasher import compute_record_hash
from noncegate.models.items import Transaction
from noncegate.models.ledger import LedgerRecord, RecordStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_RECORDS = """
CREATE TABLE IF NOT EXISTS ledger_records (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    record_id             TEXT NOT NULL UNIQUE,
    transaction_id        TEXT NOT NULL UNIQUE,
    source_id             TEXT NOT NULL,
    nonce                 TEXT NOT NULL,
    status                TEXT NOT NULL,
    pushed_at             TEXT NOT NULL,
    confirmed_at          TEXT,
    previous_record_hash  TEXT NOT NULL DEFAULT '',
    record_hash           TEXT NOT NULL UNIQUE,
    UNIQUE (source_id, nonce)
);
"""

_CREATE_IDX_SOURCE = """
CREATE INDEX IF NOT EXISTS idx_source_id ON ledger_records(source_id, id);
"""

_CREATE_IDX_STATUS = """
CREATE INDEX IF NOT EXISTS idx_status ON ledger_records(status, id);
"""

_COLUMNS = (
    "record_id, transaction_id, source_id, nonce, status, pushed_at, "
    "confirmed_at, previous_record_hash, record_hash"
)


class TransactionNonceOutOfOrderError(ValueError):
    """Raised when a pushed nonce is not the next one for its source."""

    def __init__(self, item: Transaction, expected: int) -> None:
        self.item = item
        self.expected = expected
        super().__init__(
            f"Nonce out of order for source {item.source_id!r}: "
            f"got {item.nonce}, expected {expected}"
        )


class LedgerIntegrityError(RuntimeError):
    """Raised when a source's hash chain or nonce sequence is broken."""


class LedgerSink:
    """Append-only, hash-chained, nonce-enforcing ledger.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    on_confirm:
        Callback invoked with each transaction confirmed by ``mine()``.
        Can also be assigned after construction.
    """

    def __init__(
        self,
        db_path: Path | str,
        on_confirm: Callable[[Transaction], Any] | None = None,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self.on_confirm = on_confirm
        self._init_schema()

    @property
    def sink_name(self) -> str:
        return "ledger"

    @property
    def db_path(self) -> Path:
        return self._db_path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit or roll back on exit, then close it."""
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False, timeout=30)
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_RECORDS)
            conn.execute(_CREATE_IDX_SOURCE)
            conn.execute(_CREATE_IDX_STATUS)

    # ------------------------------------------------------------------
    # Sink protocol
    # ------------------------------------------------------------------

    def push(self, item: Transaction) -> None:
        """Append *item* as a pushed record.

        Raises
        ------
        TransactionNonceOutOfOrderError
            If ``item.nonce`` is not the next nonce for its source.
        """
        with self._lock, self._connect() as conn:
            latest = conn.execute(
                "SELECT nonce, record_hash FROM ledger_records "
                "WHERE source_id = ? ORDER BY id DESC LIMIT 1",
                (item.source_id,),
            ).fetchone()
            expected = int(latest[0]) + 1 if latest else 0
            previous_hash = latest[1] if latest else ""

            if item.nonce != expected:
                raise TransactionNonceOutOfOrderError(item, expected)

            record = LedgerRecord(
                transaction_id=item.transaction_id,
                source_id=item.source_id,
                nonce=item.nonce,
                previous_record_hash=previous_hash,
            )
            sealed = record.model_copy(
                update={"record_hash": compute_record_hash(record.sealed_fields())}
            )
            self._insert(conn, sealed)

        logger.debug("LedgerSink: accepted %s", item.label)

    def _insert(self, conn: sqlite3.Connection, record: LedgerRecord) -> None:
        conn.execute(
            f"INSERT INTO ledger_records ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.record_id,
                record.transaction_id,
                record.source_id,
                str(record.nonce),
                record.status.value,
                record.pushed_at.isoformat(),
                record.confirmed_at.isoformat() if record.confirmed_at else None,
                record.previous_record_hash,
                record.record_hash,
            ),
        )

    # ------------------------------------------------------------------
    # Mining (confirmation)
    # ------------------------------------------------------------------

    def mine(self, limit: int | None = None) -> list[Transaction]:
        """Confirm the oldest pushed records and report them.

        Confirms at most *limit* records (all pending ones when ``None``)
        in push order.  ``on_confirm`` is called after the ledger lock is
        released, so the callback may push more items into this sink.
        """
        now = datetime.now(timezone.utc).isoformat()
        with self._lock, self._connect() as conn:
            query = (
                "SELECT id, transaction_id, source_id, nonce FROM ledger_records "
                "WHERE status = ? ORDER BY id ASC"
            )
            params: tuple[Any, ...] = (RecordStatus.PUSHED.value,)
            if limit is not None:
                query += " LIMIT ?"
                params += (limit,)
            rows = conn.execute(query, params).fetchall()

            conn.executemany(
                "UPDATE ledger_records SET status = ?, confirmed_at = ? WHERE id = ?",
                [(RecordStatus.CONFIRMED.value, now, row[0]) for row in rows],
            )

        confirmed = [
            Transaction(transaction_id=tx_id, source_id=source_id, nonce=int(nonce))
            for _id, tx_id, source_id, nonce in rows
        ]
        if confirmed:
            logger.info("LedgerSink: mined %d transaction(s)", len(confirmed))

        if self.on_confirm is not None:
            for tx in confirmed:
                self.on_confirm(tx)
        return confirmed

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def next_nonce(self, source_id: str) -> int:
        """Return the nonce the ledger will accept next for *source_id*."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT nonce FROM ledger_records WHERE source_id = ? ORDER BY id DESC LIMIT 1",
                (source_id,),
            ).fetchone()
        return int(row[0]) + 1 if row else 0

    def pending_count(self) -> int:
        """Return the number of pushed, not yet confirmed records."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM ledger_records WHERE status = ?",
                (RecordStatus.PUSHED.value,),
            ).fetchone()
        return row[0]

    def get_source_records(self, source_id: str) -> list[LedgerRecord]:
        """Return all records for a source, in push order."""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM ledger_records WHERE source_id = ? ORDER BY id ASC",
                (source_id,),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def get_all_source_ids(self) -> list[str]:
        """Return all distinct source ids on the ledger, sorted."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT DISTINCT source_id FROM ledger_records ORDER BY source_id ASC"
            ).fetchall()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self, source_id: str) -> bool:
        """Verify hash links and nonce contiguity for one source.

        Returns True if the chain is valid, raises LedgerIntegrityError
        otherwise.
        """
        prev_hash = ""
        for expected_nonce, record in enumerate(self.get_source_records(source_id)):
            if record.nonce != expected_nonce:
                raise LedgerIntegrityError(
                    f"Nonce gap for {source_id!r} at record {record.record_id}: "
                    f"expected {expected_nonce}, got {record.nonce}"
                )
            if record.previous_record_hash != prev_hash:
                raise LedgerIntegrityError(
                    f"Chain broken at record {record.record_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {record.previous_record_hash!r}"
                )
            expected_hash = compute_record_hash(record.sealed_fields())
            if record.record_hash != expected_hash:
                raise LedgerIntegrityError(
                    f"Tampered record {record.record_id}: "
                    f"expected hash={expected_hash!r}, got {record.record_hash!r}"
                )
            prev_hash = record.record_hash
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: tuple) -> LedgerRecord:
        (
            record_id,
            transaction_id,
            source_id,
            nonce,
            status,
            pushed_at,
            confirmed_at,
            previous_record_hash,
            record_hash,
        ) = row
        return LedgerRecord(
            record_id=record_id,
            transaction_id=transaction_id,
            source_id=source_id,
            nonce=int(nonce),
            status=RecordStatus(status),
            pushed_at=pushed_at,
            confirmed_at=confirmed_at,
            previous_record_hash=previous_record_hash,
            record_hash=record_hash,
        )
