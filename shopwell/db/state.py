"""Whole-state snapshot storage."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from ..models import AppSettings, AppState
from .schema import ensure_schema

logger = logging.getLogger(__name__)

STATE_KEY = "shopwell_app_state"


class StateDB:
    """Saves and loads the application state as one JSON blob."""

    def __init__(self, db_path: str | Path = "~/.config/shopwell/shopwell.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def save_state(self, state: AppState) -> None:
        """Replace the stored snapshot with ``state``."""
        conn = self._get_conn()
        blob = json.dumps(state.to_dict(), ensure_ascii=False)
        conn.execute(
            """INSERT INTO app_state (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET
                 value=excluded.value,
                 updated_at=datetime('now', 'localtime')""",
            (STATE_KEY, blob),
        )
        conn.commit()

    def load_state(
        self, default_settings: AppSettings | None = None
    ) -> AppState | None:
        """Return the stored snapshot, or None if there is none.

        A snapshot that cannot be decoded is logged and treated as missing.
        """
        conn = self._get_conn()
        row = conn.execute(
            "SELECT value FROM app_state WHERE key = ?", (STATE_KEY,)
        ).fetchone()
        if row is None:
            return None
        try:
            data = json.loads(row["value"])
            return AppState.from_dict(data, default_settings=default_settings)
        except (json.JSONDecodeError, TypeError, AttributeError):
            logger.exception("Could not decode saved state")
            return None

    def clear_state(self) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM app_state WHERE key = ?", (STATE_KEY,))
        conn.commit()
