"""Rich terminal renderer for gate snapshots and ledger records.

Color scheme
------------
- green   : source fully drained / record confirmed
- yellow  : source holding out-of-order items / record pushed
- bold red: broken hash chain
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from noncegate.models.ledger import LedgerRecord, RecordStatus
from noncegate.models.sources import SourceSnapshot

_STATUS_ICONS: dict[RecordStatus, str] = {
    RecordStatus.PUSHED: "[yellow]PUSHED[/yellow]",
    RecordStatus.CONFIRMED: "[green]CONFIRMED[/green]",
}

# Buffered nonces beyond this many are summarized.
_MAX_LISTED_PENDING = 8


def _format_pending(nonces: Sequence[int]) -> str:
    if not nonces:
        return "[dim]-[/dim]"
    shown = ", ".join(str(n) for n in nonces[:_MAX_LISTED_PENDING])
    if len(nonces) > _MAX_LISTED_PENDING:
        shown += f" [dim](+{len(nonces) - _MAX_LISTED_PENDING} more)[/dim]"
    return shown


class GateRenderer:
    """Renders gate and ledger state as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Source snapshots
    # ------------------------------------------------------------------

    def render_sources(
        self,
        snapshots: Sequence[SourceSnapshot],
        *,
        title: str = "noncegate",
        summary: str = "",
    ) -> Panel:
        """Render per-source snapshots as a Panel containing a Table."""
        table = Table(
            show_header=True,
            header_style="bold cyan",
            expand=True,
            pad_edge=True,
        )
        table.add_column("Source", min_width=20)
        table.add_column("Forwarded", justify="right", width=10)
        table.add_column("Next", justify="right", width=8)
        table.add_column("Buffered", justify="right", width=9)
        table.add_column("Held nonces", min_width=20)

        for snap in snapshots:
            style = "yellow" if snap.pending_nonces else "green"
            table.add_row(
                f"[{style}]{snap.source_id}[/{style}]",
                str(snap.forwarded_count),
                str(snap.next_expected),
                str(snap.pending_count),
                _format_pending(snap.pending_nonces),
            )

        parts: list = [table]
        if summary:
            parts += [Text(""), Text.from_markup(summary)]

        return Panel(
            Group(*parts),
            title=f"[bold]{title}[/bold]",
            border_style="blue",
            padding=(1, 2),
        )

    def print_sources(self, snapshots: Sequence[SourceSnapshot], **kwargs) -> None:
        self.console.print(self.render_sources(snapshots, **kwargs))

    # ------------------------------------------------------------------
    # Ledger records
    # ------------------------------------------------------------------

    def render_records(self, source_id: str, records: Sequence[LedgerRecord]) -> Table:
        """Build a Rich Table of one source's ledger records."""
        table = Table(
            title=f"Ledger: {source_id}",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("Nonce", justify="right", width=8)
        table.add_column("Transaction", min_width=36)
        table.add_column("Status", justify="center", min_width=10)
        table.add_column("Pushed", min_width=8)
        table.add_column("Hash", style="dim", width=14)

        for record in records:
            table.add_row(
                str(record.nonce),
                record.transaction_id,
                _STATUS_ICONS.get(record.status, record.status.value),
                record.pushed_at.strftime("%H:%M:%S"),
                f"{record.record_hash[:12]}...",
            )
        return table

    def print_records(self, source_id: str, records: Sequence[LedgerRecord]) -> None:
        self.console.print(self.render_records(source_id, records))

    def print_chain_verification(self, source_id: str, valid: bool) -> None:
        """Print a chain verification result."""
        if valid:
            self.console.print(
                f"[green]Hash chain for source {source_id} is valid.[/green]"
            )
        else:
            self.console.print(
                f"[bold red]Hash chain for source {source_id} is BROKEN![/bold red]"
            )
