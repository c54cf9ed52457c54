"""Shared CLI utilities and constants."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from schema_audit.core.logging import configure_logging

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

# Load .env file from current directory (SCHEMA_AUDIT_* settings)
load_dotenv()

# Shared console instance
console = Console()

DatabaseUrlOption = Annotated[
    str | None,
    typer.Option(
        "--database-url",
        "-d",
        help="SQLAlchemy database URL (default: SCHEMA_AUDIT_DATABASE_URL)",
    ),
]

JsonFlag = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Output as JSON for scripting",
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-v=INFO, -vv=DEBUG)",
    ),
]


def setup_logging(verbosity: int = 0, log_format: str | None = None) -> None:
    """Configure structured logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG
        log_format: "console" for development, "json" for production/cloud.
                    Defaults to settings.log_format.
    """
    if log_format is None:
        from schema_audit.core.config import get_settings

        log_format = get_settings().log_format

    if verbosity >= 2:
        level = "DEBUG"
    elif verbosity >= 1:
        level = "INFO"
    else:
        level = "WARNING"

    configure_logging(
        log_level=level,
        log_format=log_format,
        show_timestamps=verbosity >= 1,
        color=log_format == "console",
    )


def get_engine_or_exit(database_url: str | None) -> Engine:
    """Create an engine, exiting with an error message on a bad URL."""
    from sqlalchemy.exc import ArgumentError

    from schema_audit.storage import get_engine

    try:
        return get_engine(database_url)
    except ArgumentError as e:
        console.print(f"[red]Invalid database URL: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e
