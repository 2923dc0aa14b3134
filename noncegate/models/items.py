"""Submission items — the (source, nonce) pairs the gate orders.

A ``Transaction`` is the only payload the dispatcher understands.  Its
content beyond the identifier, the source wallet and the nonce is out of
scope for the gate.
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field

# Nonces are unsigned 64-bit integers on the downstream ledger.
MAX_NONCE = 2**64 - 1


class Transaction(BaseModel):
    """A single submission for ordered dispatch.

    Two transactions may share a nonce if and only if they belong to
    different source wallets.  Nonce 0 is pushed first, then 1, and so on.
    """

    model_config = ConfigDict(frozen=True)

    transaction_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source_id: str = Field(min_length=1)
    nonce: int = Field(ge=0, le=MAX_NONCE)

    @property
    def label(self) -> str:
        """Short human-readable form, e.g. ``wallet-a#3``."""
        return f"{self.source_id}#{self.nonce}"
