"""``noncegate inspect [SOURCE_ID]`` — show ledger records and verify chains."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from noncegate.config import config
from noncegate.monitor.renderer import GateRenderer
from noncegate.sinks.ledger import LedgerIntegrityError, LedgerSink

console = Console()


def inspect_cmd(
    source_id: str = typer.Argument(
        None,
        help="Source wallet to show. All sources when omitted.",
    ),
    ledger_db: str = typer.Option(
        None, "--ledger", "-l", help="Path to the ledger SQLite database."
    ),
    verify_only: bool = typer.Option(
        False, "--verify-only", "-V", help="Only verify hash chains; skip record tables."
    ),
) -> None:
    """Show ledger records per source and verify their hash chains."""
    db_path = Path(ledger_db) if ledger_db else config.ledger_path
    if not db_path.exists():
        console.print(f"[bold red]Ledger not found:[/bold red] {db_path}")
        console.print("[dim]Create one first with: noncegate simulate[/dim]")
        raise typer.Exit(code=1)

    ledger = LedgerSink(db_path)
    renderer = GateRenderer(console=console)

    all_sources = ledger.get_all_source_ids()
    if source_id is not None:
        if source_id not in all_sources:
            console.print(f"[bold red]Source not found:[/bold red] {source_id}")
            raise typer.Exit(code=1)
        targets = [source_id]
    else:
        targets = all_sources

    if not targets:
        console.print("[dim]Ledger is empty.[/dim]")
        return

    broken = 0
    for sid in targets:
        if not verify_only:
            renderer.print_records(sid, ledger.get_source_records(sid))
        try:
            valid = ledger.verify_chain(sid)
        except LedgerIntegrityError as exc:
            console.print(f"[red]{exc}[/red]")
            valid = False
        if not valid:
            broken += 1
        renderer.print_chain_verification(sid, valid)

    if broken:
        raise typer.Exit(code=1)
