"""History command - show recorded schema versions."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table as RichTable

from schema_audit.cli.common import (
    DatabaseUrlOption,
    JsonFlag,
    VerboseOption,
    console,
    get_engine_or_exit,
    setup_logging,
)
from schema_audit.tracking import MigrationRecord, get_migration_history


def history(
    database_url: DatabaseUrlOption = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Show only the N most recent versions"),
    ] = None,
    json_output: JsonFlag = False,
    verbose: VerboseOption = 0,
) -> None:
    """Show the schema version history, newest first.

    Examples:

        schema-audit history -d sqlite:///./app.db

        schema-audit history --json -n 5
    """
    setup_logging(verbose)
    engine = get_engine_or_exit(database_url)

    try:
        result = get_migration_history(engine)
    finally:
        engine.dispose()

    if not result.success:
        console.print(f"[red]{escape(result.error or '')}[/red]")
        raise typer.Exit(1)

    records = result.unwrap()
    if limit is not None:
        records = records[:limit]

    if json_output:
        _history_json(records)
    else:
        _history_rich(records)


def _history_json(records: list[MigrationRecord]) -> None:
    """Output history as JSON."""
    print(json.dumps([r.model_dump(mode="json") for r in records], indent=2))


def _history_rich(records: list[MigrationRecord]) -> None:
    """Output history as a table."""
    if not records:
        console.print("[yellow]No schema versions recorded[/yellow]")
        return

    table = RichTable(title="Schema versions")
    table.add_column("ID", justify="right")
    table.add_column("Version")
    table.add_column("Applied at")
    table.add_column("Changes")

    for record in records:
        table.add_row(
            str(record.id),
            record.version,
            record.applied_at.isoformat(sep=" ", timespec="seconds"),
            escape(record.changes),
        )

    console.print(table)
