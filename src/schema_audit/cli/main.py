"""Main CLI application entry point."""

from __future__ import annotations

import typer

from schema_audit.cli.commands import history, init

app = typer.Typer(
    name="schema-audit",
    help="schema-audit - inspect the history of auto-migrated schema changes.",
    no_args_is_help=True,
)

# Register commands
app.command()(init.init)
app.command()(history.history)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
