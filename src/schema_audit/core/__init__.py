"""Core module - configuration, logging, and shared models."""

from schema_audit.core.config import Settings, get_settings
from schema_audit.core.models import Result

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Models
    "Result",
]
