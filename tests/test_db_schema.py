"""Tests for database schema creation and migration."""

from shopwell.db.schema import _SCHEMA_VERSION, ensure_schema


def test_ensure_schema_creates_tables(tmp_path):
    """Schema creates the state and version tables."""
    db_path = tmp_path / "test.db"
    conn = ensure_schema(db_path)

    tables = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    ).fetchall()
    table_names = {row["name"] for row in tables}

    assert "app_state" in table_names
    assert "schema_version" in table_names

    conn.close()


def test_ensure_schema_creates_parent_dirs(tmp_path):
    db_path = tmp_path / "sub" / "dir" / "test.db"
    conn = ensure_schema(db_path)
    assert db_path.exists()
    conn.close()


def test_ensure_schema_sets_version(tmp_path):
    db_path = tmp_path / "test.db"
    conn = ensure_schema(db_path)

    row = conn.execute("SELECT version FROM schema_version").fetchone()
    assert row["version"] == _SCHEMA_VERSION

    conn.close()


def test_ensure_schema_idempotent(tmp_path):
    """Calling ensure_schema twice doesn't error or duplicate the version row."""
    db_path = tmp_path / "test.db"
    conn1 = ensure_schema(db_path)
    conn1.close()

    conn2 = ensure_schema(db_path)
    rows = conn2.execute("SELECT version FROM schema_version").fetchall()
    assert len(rows) == 1
    assert rows[0]["version"] == _SCHEMA_VERSION
    conn2.close()


def test_ensure_schema_wal_mode(tmp_path):
    db_path = tmp_path / "test.db"
    conn = ensure_schema(db_path)

    mode = conn.execute("PRAGMA journal_mode").fetchone()
    assert mode[0] == "wal"

    conn.close()


def test_app_state_columns(tmp_path):
    db_path = tmp_path / "test.db"
    conn = ensure_schema(db_path)

    info = conn.execute("PRAGMA table_info(app_state)").fetchall()
    col_names = {row["name"] for row in info}

    assert {"key", "value", "updated_at"}.issubset(col_names)

    conn.close()
