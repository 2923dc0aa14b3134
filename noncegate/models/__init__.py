"""noncegate data models — all Pydantic v2, all frozen (immutable)."""

from noncegate.models.items import MAX_NONCE, Transaction
from noncegate.models.ledger import LedgerRecord, RecordStatus
from noncegate.models.sources import SourceSnapshot

__all__ = [
    # items
    "MAX_NONCE",
    "Transaction",
    # sources
    "SourceSnapshot",
    # ledger
    "LedgerRecord",
    "RecordStatus",
]
