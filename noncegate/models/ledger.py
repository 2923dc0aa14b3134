"""Ledger record model for the reference ``LedgerSink``.

The ledger is append-only per source and hash-chained:
- one record per pushed transaction
- records link to the previous record of the same source via SHA-256
- confirmation flips ``status`` and stamps ``confirmed_at``; the hash
  covers only the fields fixed at push time
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RecordStatus(str, Enum):
    """Lifecycle of a transaction on the ledger."""

    PUSHED = "pushed"
    CONFIRMED = "confirmed"


class LedgerRecord(BaseModel):
    """A single transaction accepted by the ledger."""

    model_config = ConfigDict(frozen=True)

    record_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    transaction_id: str
    source_id: str
    nonce: int
    status: RecordStatus = RecordStatus.PUSHED
    pushed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    confirmed_at: datetime | None = None
    previous_record_hash: str = ""
    record_hash: str = ""  # computed on append, seals this record

    def sealed_fields(self) -> dict:
        """Return the fields covered by ``record_hash``."""
        return self.model_dump(
            mode="json",
            include={
                "record_id",
                "transaction_id",
                "source_id",
                "nonce",
                "pushed_at",
                "previous_record_hash",
            },
        )
