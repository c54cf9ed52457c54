"""CLI for schema-audit.

Provides commands for creating and inspecting the schema version ledger.

Usage:
    schema-audit init -d sqlite:///./app.db
    schema-audit history -d sqlite:///./app.db --json

Environment:
    Loads .env file from current directory if present.
    Set SCHEMA_AUDIT_DATABASE_URL to skip --database-url.
"""

from schema_audit.cli.main import app, main

__all__ = ["app", "main"]
