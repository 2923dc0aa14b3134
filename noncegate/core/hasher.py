"""Canonical hashing helpers for the ledger hash chain."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def compute_record_hash(sealed_fields: dict[str, Any]) -> str:
    """SHA-256 of a ledger record's sealed fields.

    Status and confirmation time are excluded by the caller: they change
    after the record is appended and must not break the chain.
    """
    d = {k: v for k, v in sealed_fields.items() if k != "record_hash"}
    return sha256_hex(canonical_json_bytes(d))
