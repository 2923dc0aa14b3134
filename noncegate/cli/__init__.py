"""noncegate CLI — Typer-based command-line interface.

Provides the ``noncegate`` command with subcommands for running a
concurrent ordering simulation against the reference ledger and for
inspecting ledger contents.

All output uses Rich for formatted terminal display.
"""
