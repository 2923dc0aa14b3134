"""noncegate: per-source nonce ordering gate.

Accepts transactions tagged with a per-wallet nonce, possibly concurrent
and out of order, and forwards them to a downstream sink strictly in
ascending, gapless nonce order per wallet.
"""

__version__ = "0.1.0"
__description__ = "Per-source nonce ordering gate for ledger submissions"

from noncegate.core.dispatcher import (
    DuplicateOrStaleSequenceError,
    OrderedDispatcher,
    PendingBufferFullError,
    SequencingError,
    SinkPushError,
    UnknownSourceError,
)
from noncegate.models.items import Transaction
from noncegate.models.sources import SourceSnapshot
from noncegate.sinks import BaseSink

__all__ = [
    "OrderedDispatcher",
    "Transaction",
    "SourceSnapshot",
    "BaseSink",
    "SequencingError",
    "DuplicateOrStaleSequenceError",
    "UnknownSourceError",
    "PendingBufferFullError",
    "SinkPushError",
    "__version__",
]
