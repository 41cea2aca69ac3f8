"""CSV backup and restore.

A backup is a single text file made of sections::

    [Products]
    id,name,category,...
    p1,Milk,food,...

    [Shops]
    ...

Each section holds a header row followed by standard CSV rows. Column names
are camelCase so files stay compatible with backups made by the mobile app.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from .errors import BackupFormatError
from .models import (
    DEFAULT_CURRENCY,
    DEFAULT_GEOFENCE_RADIUS,
    AppSettings,
    AppState,
    PriceRecord,
    Product,
    Schedule,
    Shop,
)

logger = logging.getLogger(__name__)

# (csv column, attribute name)
PRODUCT_COLUMNS = [
    ("id", "id"),
    ("name", "name"),
    ("category", "category"),
    ("isAvailable", "is_available"),
    ("notes", "notes"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
]
SHOP_COLUMNS = [
    ("id", "id"),
    ("name", "name"),
    ("address", "address"),
    ("category", "category"),
    ("notes", "notes"),
    ("isFavorite", "is_favorite"),
    ("isOnline", "is_online"),
    ("url", "url"),
    ("latitude", "latitude"),
    ("longitude", "longitude"),
    ("geofenceRadius", "geofence_radius"),
    ("notifyOnNearby", "notify_on_nearby"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
]
SCHEDULE_COLUMNS = [
    ("id", "id"),
    ("title", "title"),
    ("shopId", "shop_id"),
    ("date", "date"),
    ("time", "time"),
    ("isRecurring", "is_recurring"),
    ("recurringPattern", "recurring_pattern"),
    ("reminder", "reminder"),
    ("reminderMinutes", "reminder_minutes"),
    ("notes", "notes"),
    ("isCompleted", "is_completed"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
    ("listId", "list_id"),
]
PRICE_COLUMNS = [
    ("id", "id"),
    ("productId", "product_id"),
    ("shopId", "shop_id"),
    ("brand", "brand"),
    ("price", "price"),
    ("currency", "currency"),
    ("lastUpdated", "last_updated"),
]
SETTINGS_COLUMNS = [
    ("locationNotificationsEnabled", "location_notifications_enabled"),
    ("defaultGeofenceRadius", "default_geofence_radius"),
    ("currency", "currency"),
]

_SECTION_RE = re.compile(r"^\[(\w+)\]$")


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _build_section(name: str, columns: list[tuple[str, str]], rows: list[Any]) -> str:
    buf = io.StringIO()
    buf.write(f"[{name}]\n")
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow([col for col, _ in columns])
    for row in rows:
        writer.writerow([_format_value(getattr(row, attr)) for _, attr in columns])
    return buf.getvalue()


def export_csv(state: AppState) -> str:
    """Serialize catalogs, prices, schedules and settings to backup CSV."""
    sections = [
        _build_section("Products", PRODUCT_COLUMNS, list(state.products)),
        _build_section("Shops", SHOP_COLUMNS, list(state.shops)),
        _build_section("Schedules", SCHEDULE_COLUMNS, list(state.schedules)),
        _build_section("ShopProductBrands", PRICE_COLUMNS, list(state.price_records)),
        _build_section("Settings", SETTINGS_COLUMNS, [state.settings]),
    ]
    return "\n".join(sections)


# -- parsing -------------------------------------------------------------


def _opt(value: str) -> str | None:
    return value or None


def _bool(value: str) -> bool:
    return value == "true"


def _opt_float(value: str) -> float | None:
    try:
        return float(value) if value else None
    except ValueError:
        return None


def _opt_int(value: str) -> int | None:
    try:
        return int(value) if value else None
    except ValueError:
        return None


def _to_product(row: dict[str, str]) -> Product:
    return Product(
        id=row["id"],
        name=row["name"],
        category=row["category"] or "other",
        is_available=_bool(row["isAvailable"]),
        notes=_opt(row["notes"]),
        created_at=row["createdAt"],
        updated_at=row["updatedAt"],
    )


def _to_shop(row: dict[str, str]) -> Shop:
    return Shop(
        id=row["id"],
        name=row["name"],
        address=_opt(row["address"]),
        category=row["category"] or "other",
        notes=_opt(row["notes"]),
        is_favorite=_bool(row["isFavorite"]),
        is_online=_bool(row["isOnline"]),
        url=_opt(row["url"]),
        latitude=_opt_float(row["latitude"]),
        longitude=_opt_float(row["longitude"]),
        geofence_radius=_opt_int(row["geofenceRadius"]),
        notify_on_nearby=_bool(row["notifyOnNearby"]),
        created_at=row["createdAt"],
        updated_at=row["updatedAt"],
    )


def _to_schedule(row: dict[str, str]) -> Schedule:
    return Schedule(
        id=row["id"],
        title=row["title"],
        shop_id=_opt(row["shopId"]),
        list_id=_opt(row["listId"]),
        date=row["date"],
        time=_opt(row["time"]),
        is_recurring=_bool(row["isRecurring"]),
        recurring_pattern=_opt(row["recurringPattern"]),
        reminder=_bool(row["reminder"]),
        reminder_minutes=_opt_int(row["reminderMinutes"]),
        notes=_opt(row["notes"]),
        is_completed=_bool(row["isCompleted"]),
        created_at=row["createdAt"],
        updated_at=row["updatedAt"],
    )


def _to_price_record(row: dict[str, str]) -> PriceRecord:
    price = _opt_float(row["price"]) or 0.0
    if price < 0:
        logger.warning("Negative price %s for record %s read as 0", price, row["id"])
        price = 0.0
    return PriceRecord(
        id=row["id"],
        product_id=row["productId"],
        shop_id=row["shopId"],
        brand=_opt(row["brand"]),
        price=price,
        currency=row["currency"] or DEFAULT_CURRENCY,
        last_updated=row["lastUpdated"],
    )


def _to_settings(row: dict[str, str]) -> AppSettings:
    return AppSettings(
        location_notifications_enabled=_bool(row["locationNotificationsEnabled"]),
        default_geofence_radius=(
            _opt_int(row["defaultGeofenceRadius"]) or DEFAULT_GEOFENCE_RADIUS
        ),
        currency=row["currency"] or DEFAULT_CURRENCY,
    )


def _split_sections(text: str) -> dict[str, list[dict[str, str]]]:
    """Read the whole backup with one CSV reader and group rows by section.

    Quoted values may span lines, so a section header is only a record
    whose single field is ``[Name]``. The first record after a header
    names the columns.
    """
    sections: dict[str, list[dict[str, str]]] = {}
    rows: list[dict[str, str]] | None = None
    header: list[str] | None = None
    for record in csv.reader(io.StringIO(text, newline="")):
        if not any(field.strip() for field in record):
            continue
        if len(record) == 1:
            m = _SECTION_RE.match(record[0].strip())
            if m:
                rows = sections.setdefault(m.group(1), [])
                header = None
                continue
        if rows is None:
            continue
        if header is None:
            header = [col.strip() for col in record]
            continue
        rows.append(_Row(zip(header, record)))
    return sections


class _Row(dict):
    """Row mapping that yields "" for columns missing from the file."""

    def __missing__(self, key: str) -> str:
        return ""


def _convert(
    rows: list[dict[str, str]], convert: Callable[[dict[str, str]], Any]
) -> list[Any]:
    return [convert(row) for row in rows]


def import_csv(text: str) -> AppState:
    """Parse backup CSV into a fresh state.

    Raises:
        BackupFormatError: If the text has neither a Products nor a Shops section.
    """
    sections = _split_sections(text)
    if "Products" not in sections and "Shops" not in sections:
        raise BackupFormatError(
            "Invalid backup file: no [Products] or [Shops] section found"
        )

    price_rows = sections.get("ShopProductBrands") or sections.get("ShopProducts", [])
    settings_rows = _convert(sections.get("Settings", []), _to_settings)

    for name in sections:
        if name not in (
            "Products", "Shops", "Schedules", "ShopProductBrands",
            "ShopProducts", "Settings",
        ):
            logger.info("Ignoring unknown backup section [%s]", name)

    return AppState(
        products=tuple(_convert(sections.get("Products", []), _to_product)),
        shops=tuple(_convert(sections.get("Shops", []), _to_shop)),
        schedules=tuple(_convert(sections.get("Schedules", []), _to_schedule)),
        price_records=tuple(_convert(price_rows, _to_price_record)),
        settings=settings_rows[0] if settings_rows else AppSettings(),
    )


def export_to_file(state: AppState, directory: str | Path) -> Path:
    """Write a timestamped backup file into ``directory``.

    Returns:
        Path of the written file.
    """
    directory = Path(directory).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
    path = directory / f"ShopWell_Backup_{timestamp}.csv"
    path.write_text(export_csv(state), encoding="utf-8")
    logger.info("Backup written to %s", path)
    return path


def import_from_file(path: str | Path) -> AppState:
    """Read a backup file.

    Raises:
        FileNotFoundError: If the file does not exist.
        BackupFormatError: If the file is not a ShopWell backup.
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Backup file not found: {path}")
    return import_csv(path.read_text(encoding="utf-8-sig"))
