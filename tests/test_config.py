"""Tests for shopwell config loading."""

import os
import tempfile

from shopwell.config import DEFAULT_DB_PATH, ShopWellConfig, load_config
from shopwell.models import AppSettings


def test_load_config_defaults(monkeypatch):
    """Loading with no path returns all defaults."""
    monkeypatch.delenv("SHOPWELL_DB_PATH", raising=False)
    monkeypatch.delenv("SHOPWELL_CURRENCY", raising=False)

    config = load_config()
    assert isinstance(config, ShopWellConfig)
    assert config.storage.path == DEFAULT_DB_PATH
    assert config.storage.backup_dir == "~/.config/shopwell/backups"
    assert config.defaults.currency == "€"
    assert config.defaults.default_geofence_radius == 200
    assert config.defaults.location_notifications_enabled is False
    assert config.notifications.cooldown_minutes == 30
    assert config.notifications.history_limit == 50
    assert config.scheduler.orphan_check_schedule == "0 3 * * *"


def test_load_config_nonexistent_file(monkeypatch):
    monkeypatch.delenv("SHOPWELL_CURRENCY", raising=False)
    config = load_config("/nonexistent/path.toml")
    assert config.defaults.currency == "€"


def test_load_config_from_toml():
    toml_content = """\
[storage]
path = "/var/lib/shopwell/state.db"
backup_dir = "/var/backups/shopwell"

[defaults]
currency = "£"
default_geofence_radius = 350
location_notifications_enabled = true

[notifications]
cooldown_minutes = 10
history_limit = 5

[scheduler]
orphan_check_schedule = "30 4 * * 1"
""".encode()
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(toml_content)
        f.flush()
        config = load_config(f.name)

    os.unlink(f.name)

    assert config.storage.path == "/var/lib/shopwell/state.db"
    assert config.storage.backup_dir == "/var/backups/shopwell"
    assert config.defaults.currency == "£"
    assert config.defaults.default_geofence_radius == 350
    assert config.defaults.location_notifications_enabled is True
    assert config.notifications.cooldown_minutes == 10
    assert config.notifications.history_limit == 5
    assert config.scheduler.orphan_check_schedule == "30 4 * * 1"


def test_load_config_env_override(monkeypatch):
    """Environment variables fill values the file leaves unset."""
    monkeypatch.setenv("SHOPWELL_DB_PATH", "/tmp/env.db")
    monkeypatch.setenv("SHOPWELL_CURRENCY", "$")

    config = load_config()
    assert config.storage.path == "/tmp/env.db"
    assert config.defaults.currency == "$"


def test_load_config_file_takes_precedence(monkeypatch):
    monkeypatch.setenv("SHOPWELL_DB_PATH", "/tmp/env.db")
    monkeypatch.setenv("SHOPWELL_CURRENCY", "$")

    toml_content = b"""\
[storage]
path = "/tmp/file.db"

[defaults]
currency = "CHF "
"""
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(toml_content)
        f.flush()
        config = load_config(f.name)

    os.unlink(f.name)
    assert config.storage.path == "/tmp/file.db"
    assert config.defaults.currency == "CHF "


def test_load_config_partial_toml(monkeypatch):
    """Partial TOML uses defaults for missing sections."""
    monkeypatch.delenv("SHOPWELL_CURRENCY", raising=False)
    toml_content = b"""\
[notifications]
cooldown_minutes = 5
"""
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(toml_content)
        f.flush()
        config = load_config(f.name)

    os.unlink(f.name)
    assert config.notifications.cooldown_minutes == 5
    assert config.notifications.history_limit == 50
    assert config.defaults.currency == "€"
    assert config.scheduler.orphan_check_schedule == "0 3 * * *"


def test_defaults_to_settings(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[defaults]\ncurrency = "$"\ndefault_geofence_radius = 75\n',
        encoding="utf-8",
    )
    settings = load_config(path).defaults.to_settings()
    assert settings == AppSettings(
        location_notifications_enabled=False,
        default_geofence_radius=75,
        currency="$",
    )
