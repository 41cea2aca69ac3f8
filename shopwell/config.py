"""TOML configuration loader."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .models import DEFAULT_CURRENCY, DEFAULT_GEOFENCE_RADIUS, AppSettings

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

DEFAULT_DB_PATH = "~/.config/shopwell/shopwell.db"


@dataclass
class StorageConfig:
    path: str = DEFAULT_DB_PATH
    backup_dir: str = "~/.config/shopwell/backups"


@dataclass
class DefaultsConfig:
    """Settings used for a fresh state and for values missing from a saved one."""

    currency: str = DEFAULT_CURRENCY
    default_geofence_radius: int = DEFAULT_GEOFENCE_RADIUS
    location_notifications_enabled: bool = False

    def to_settings(self) -> AppSettings:
        return AppSettings(
            location_notifications_enabled=self.location_notifications_enabled,
            default_geofence_radius=self.default_geofence_radius,
            currency=self.currency,
        )


@dataclass
class NotificationsConfig:
    cooldown_minutes: int = 30
    history_limit: int = 50


@dataclass
class SchedulerConfig:
    orphan_check_schedule: str = "0 3 * * *"


@dataclass
class ShopWellConfig:
    storage: StorageConfig = field(default_factory=StorageConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)


def load_config(path: str | Path | None = None) -> ShopWellConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path and currency can be overridden via environment
    variables when the file leaves them unset.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    sto = raw.get("storage", {})
    dfl = raw.get("defaults", {})
    ntf = raw.get("notifications", {})
    sch = raw.get("scheduler", {})

    # Resolve config file → environment variable → default
    db_path = (
        sto.get("path", "") or os.environ.get("SHOPWELL_DB_PATH", "") or DEFAULT_DB_PATH
    )
    currency = (
        dfl.get("currency", "")
        or os.environ.get("SHOPWELL_CURRENCY", "")
        or DEFAULT_CURRENCY
    )

    return ShopWellConfig(
        storage=StorageConfig(
            path=db_path,
            backup_dir=sto.get("backup_dir", "~/.config/shopwell/backups"),
        ),
        defaults=DefaultsConfig(
            currency=currency,
            default_geofence_radius=dfl.get(
                "default_geofence_radius", DEFAULT_GEOFENCE_RADIUS
            ),
            location_notifications_enabled=dfl.get(
                "location_notifications_enabled", False
            ),
        ),
        notifications=NotificationsConfig(
            cooldown_minutes=ntf.get("cooldown_minutes", 30),
            history_limit=ntf.get("history_limit", 50),
        ),
        scheduler=SchedulerConfig(
            orphan_check_schedule=sch.get("orphan_check_schedule", "0 3 * * *"),
        ),
    )
