"""Main Typer application — imports and registers all CLI commands.

Entry point: ``noncegate`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from noncegate.cli.commands.inspect_cmd import inspect_cmd
from noncegate.cli.commands.simulate import simulate_cmd
from noncegate.config import config
from noncegate.logging_setup import configure_logging

app = typer.Typer(
    name="noncegate",
    help="noncegate: per-source nonce ordering gate in front of a ledger.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _main(
    log_level: str = typer.Option(
        None, "--log-level", help="Override NONCEGATE_LOG_LEVEL for this run."
    ),
) -> None:
    configure_logging(log_level or config.log_level)


# Register subcommands
app.command(name="simulate", help="Run a concurrent ordering simulation.")(simulate_cmd)
app.command(name="inspect", help="Show ledger records and verify hash chains.")(inspect_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
