"""``noncegate simulate`` — push shuffled, concurrent traffic through the gate.

Schedules transactions for several wallets in random order from a thread
pool, mines blocks while submissions are still arriving, and reports the
final per-source state together with ledger chain verification.
"""

from __future__ import annotations

import typer
from rich.console import Console

from noncegate.config import config
from noncegate.monitor.renderer import GateRenderer
from noncegate.simulation import run_simulation

console = Console()


def simulate_cmd(
    sources: int = typer.Option(4, "--sources", "-s", min=1, help="Number of source wallets."),
    per_source: int = typer.Option(
        25, "--per-source", "-n", min=1, help="Transactions per wallet."
    ),
    workers: int = typer.Option(
        None, "--workers", "-w", min=1, help="Scheduling threads (default from config)."
    ),
    confirm_every: int = typer.Option(
        10,
        "--confirm-every",
        "-c",
        min=0,
        help="Mine a block after this many submissions (0 mines only at the end).",
    ),
    seed: int = typer.Option(None, "--seed", help="Shuffle seed for a reproducible order."),
    ledger_db: str = typer.Option(
        None, "--ledger", "-l", help="Path to the ledger SQLite database."
    ),
) -> None:
    """Run a concurrent ordering simulation against the reference ledger."""
    ledger_path = ledger_db or config.ledger_path
    report = run_simulation(
        ledger_path,
        sources=sources,
        per_source=per_source,
        workers=workers,
        confirm_every=confirm_every,
        seed=seed,
    )

    chain_status = (
        "[green]valid[/green]"
        if not report.broken_chains
        else f"[bold red]BROKEN ({len(report.broken_chains)})[/bold red]"
    )
    summary = "  |  ".join(
        [
            f"[bold]Run:[/bold] {report.run_id}",
            f"[bold]Submitted:[/bold] {report.submitted}",
            f"[bold]Confirmed:[/bold] {report.confirmed}",
            f"[bold]Pending:[/bold] {report.pending}",
            f"[bold]Rejected:[/bold] {report.rejected}",
            f"[bold]Chains:[/bold] {chain_status}",
        ]
    )
    GateRenderer(console=console).print_sources(
        report.snapshots, title="noncegate simulation", summary=summary
    )

    if not report.ok:
        console.print("[bold red]Simulation finished with undelivered or rejected items.[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[green]All {report.submitted} transactions confirmed in order.[/green]")
