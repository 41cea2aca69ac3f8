"""SQLite storage for the application state snapshot."""

from .schema import ensure_schema
from .state import StateDB

__all__ = [
    "StateDB",
    "ensure_schema",
]
