"""CLI command implementations."""

from schema_audit.cli.commands import history, init

__all__ = [
    "history",
    "init",
]
