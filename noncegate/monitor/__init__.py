"""noncegate monitor — Rich rendering of gate and ledger state.

The monitor never holds state of its own.  It renders
``SourceSnapshot`` models taken from an ``OrderedDispatcher`` and
``LedgerRecord`` models read from a ``LedgerSink``.
"""
