"""Tests for logging configuration."""

from __future__ import annotations

import logging

from noncegate.logging_setup import configure_logging


class TestConfigureLogging:
    def test_sets_level_and_single_handler(self):
        configure_logging("debug")
        configure_logging("DEBUG")
        logger = logging.getLogger("noncegate")
        assert logger.level == logging.DEBUG
        ours = [h for h in logger.handlers if getattr(h, "_noncegate", False)]
        assert len(ours) == 1

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("LOUD")
        assert logging.getLogger("noncegate").level == logging.INFO

    def test_numeric_level(self):
        configure_logging(logging.WARNING)
        assert logging.getLogger("noncegate").level == logging.WARNING
        configure_logging("INFO")

    def test_reconfigure_after_stream_closed(self, monkeypatch):
        """A handler whose stream was closed is replaced, not flushed."""
        import io

        closed = io.StringIO()
        monkeypatch.setattr("sys.stderr", closed)
        configure_logging("INFO")
        closed.close()

        fresh = io.StringIO()
        monkeypatch.setattr("sys.stderr", fresh)
        configure_logging("INFO")
        logging.getLogger("noncegate.test").info("still logging")

        assert "still logging" in fresh.getvalue()
        ours = [
            h for h in logging.getLogger("noncegate").handlers
            if getattr(h, "_noncegate", False)
        ]
        assert len(ours) == 1
