"""Logging setup for the CLI and scripts.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by the entry point.
"""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the ``noncegate`` logger hierarchy.

    Safe to call repeatedly: a previously attached handler is replaced by
    one writing to the current ``sys.stderr``.  The old stream is never
    touched, since it may already be closed.  Unknown level names fall
    back to INFO.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = level

    root = logging.getLogger("noncegate")
    root.setLevel(resolved)
    for existing in list(root.handlers):
        if getattr(existing, "_noncegate", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._noncegate = True  # type: ignore[attr-defined]
    root.addHandler(handler)
