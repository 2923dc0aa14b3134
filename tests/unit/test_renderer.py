"""Tests for GateRenderer output."""

from __future__ import annotations

from rich.console import Console

from noncegate.models.items import Transaction
from noncegate.models.sources import SourceSnapshot
from noncegate.monitor.renderer import GateRenderer


def _console() -> Console:
    return Console(record=True, width=140, color_system=None)


class TestGateRenderer:
    def test_sources_table(self):
        console = _console()
        GateRenderer(console=console).print_sources(
            [
                SourceSnapshot(source_id="wallet-a", next_expected=3),
                SourceSnapshot(source_id="wallet-b", next_expected=1, pending_nonces=[4, 5]),
            ],
            summary="[bold]Run:[/bold] demo",
        )
        text = console.export_text()
        assert "wallet-a" in text
        assert "wallet-b" in text
        assert "4, 5" in text
        assert "Run: demo" in text

    def test_long_pending_list_is_summarized(self):
        console = _console()
        GateRenderer(console=console).print_sources(
            [SourceSnapshot(source_id="w", pending_nonces=list(range(1, 21)))]
        )
        assert "+12 more" in console.export_text()

    def test_records_table(self, ledger_sink):
        ledger_sink.push(Transaction(source_id="w1", nonce=0))
        console = _console()
        GateRenderer(console=console).print_records("w1", ledger_sink.get_source_records("w1"))
        text = console.export_text()
        assert "Ledger: w1" in text
        assert "PUSHED" in text

    def test_chain_verification_messages(self):
        console = _console()
        renderer = GateRenderer(console=console)
        renderer.print_chain_verification("w1", True)
        renderer.print_chain_verification("w2", False)
        text = console.export_text()
        assert "w1 is valid" in text
        assert "w2 is BROKEN" in text
