"""Init command - create the schema version ledger."""

from __future__ import annotations

import typer
from rich.markup import escape

from schema_audit.cli.common import (
    DatabaseUrlOption,
    VerboseOption,
    console,
    get_engine_or_exit,
    setup_logging,
)


def init(
    database_url: DatabaseUrlOption = None,
    verbose: VerboseOption = 0,
) -> None:
    """Create the schema_versions table if it does not exist.

    Safe to run repeatedly.

    Examples:

        schema-audit init -d sqlite:///./app.db
    """
    from schema_audit.storage import LEDGER_TABLE
    from schema_audit.tracking import StorageError, VersionLedger

    setup_logging(verbose)
    engine = get_engine_or_exit(database_url)

    try:
        VersionLedger(engine).ensure_initialized()
    except StorageError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e
    finally:
        engine.dispose()

    console.print(f"[green]Ledger table {LEDGER_TABLE} is ready[/green]")
