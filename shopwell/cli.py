"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from .backup import export_to_file, import_from_file
from .config import ShopWellConfig, load_config
from .db import StateDB
from .errors import BackupFormatError
from .location import shops_in_range
from .models import Product, Shop
from .pricing import (
    all_options_for_product,
    cheaper_elsewhere,
    compare,
    format_distance,
    format_price,
    list_total_at_shop,
    price_range,
    rank_shops_for_list,
)
from .store import AppStore


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="shopwell",
        description="ShopWell: compare prices across your shops and plan trips",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to a TOML config file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("compare", help="Compare a product's price at a shop")
    p.add_argument("product", help="Product id or name")
    p.add_argument("shop", help="Shop id or name")
    p.add_argument("--json", action="store_true", help="Output JSON")

    p = sub.add_parser("options", help="Show every shop carrying a product")
    p.add_argument("product", help="Product id or name")
    p.add_argument("--json", action="store_true", help="Output JSON")

    p = sub.add_parser("range", help="Show a product's price range")
    p.add_argument("product", help="Product id or name")

    p = sub.add_parser("alternatives", help="Products cheaper elsewhere than at a shop")
    p.add_argument("shop", help="Shop id or name")
    p.add_argument("--json", action="store_true", help="Output JSON")

    p = sub.add_parser("best-shop", help="Rank shops for the current shopping list")
    p.add_argument("--json", action="store_true", help="Output JSON")

    p = sub.add_parser("list-total", help="Total cost of a shopping list at a shop")
    p.add_argument("list_id", help="Shopping list id")
    p.add_argument("shop", help="Shop id or name")

    p = sub.add_parser("nearby", help="Shops within their geofence of a position")
    p.add_argument("lat", type=float)
    p.add_argument("lon", type=float)

    sub.add_parser("orphans", help="List price records with missing products or shops")

    p = sub.add_parser("export", help="Write a CSV backup")
    p.add_argument("--dir", type=str, default=None, help="Output directory")

    p = sub.add_parser("import", help="Restore from a CSV backup")
    p.add_argument("file", help="Backup CSV file")

    sub.add_parser("watch", help="Run the reminder scheduler in the foreground")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()
    config = load_config(args.config)

    db = StateDB(config.storage.path)
    try:
        store = AppStore.open(db, default_settings=config.defaults.to_settings())
        match args.command:
            case "compare":
                _cmd_compare(store, args)
            case "options":
                _cmd_options(store, args)
            case "range":
                _cmd_range(store, args)
            case "alternatives":
                _cmd_alternatives(store, args)
            case "best-shop":
                _cmd_best_shop(store, args)
            case "list-total":
                _cmd_list_total(store, args)
            case "nearby":
                _cmd_nearby(store, args)
            case "orphans":
                _cmd_orphans(store)
            case "export":
                _cmd_export(store, config, args)
            case "import":
                _cmd_import(store, args)
            case "watch":
                try:
                    asyncio.run(_cmd_watch(store, config))
                except KeyboardInterrupt:
                    pass
    finally:
        db.close()


def _find_product(store: AppStore, key: str) -> Product:
    for p in store.products:
        if p.id == key or p.name.lower() == key.lower():
            return p
    print(f"Product not found: {key}", file=sys.stderr)
    sys.exit(1)


def _find_shop(store: AppStore, key: str) -> Shop:
    for s in store.shops:
        if s.id == key or s.name.lower() == key.lower():
            return s
    print(f"Shop not found: {key}", file=sys.stderr)
    sys.exit(1)


def _cmd_compare(store: AppStore, args) -> None:
    product = _find_product(store, args.product)
    shop = _find_shop(store, args.shop)
    result = compare(product.id, shop.id, store.price_records, store.shops)
    currency = store.settings.currency

    if result is None:
        print(f"No price for {product.name} at {shop.name}.")
        return

    if args.json:
        data = {
            "product_id": product.id,
            "shop_id": shop.id,
            "current_price": result.current_price,
            "cheapest_price": result.cheapest_price,
            "cheapest_shop_id": result.cheapest_shop_id,
            "cheapest_shop_name": result.cheapest_shop_name,
            "savings": round(result.savings, 2),
            "savings_percent": round(result.savings_percent, 2),
            "is_cheapest": result.is_cheapest,
        }
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    print(f"{product.name} at {shop.name}: {format_price(result.current_price, currency)}")
    if result.is_cheapest:
        print("  Best price")
    elif result.savings > 0:
        print(
            f"  Cheaper at {result.cheapest_shop_name}: "
            f"{format_price(result.cheapest_price, currency)} "
            f"(save {format_price(result.savings, currency)}, "
            f"{result.savings_percent:.1f}%)"
        )
    else:
        print(f"  Same price at {result.cheapest_shop_name}")


def _cmd_options(store: AppStore, args) -> None:
    product = _find_product(store, args.product)
    options = all_options_for_product(product.id, store.price_records, store.shops)
    currency = store.settings.currency

    if args.json:
        data = [
            {
                "shop_id": o.shop.id,
                "shop_name": o.shop.name,
                "price": o.price,
                "brands": [
                    {"brand": r.brand, "price": r.price} for r in o.records
                ],
            }
            for o in options
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not options:
        print(f"No shop carries {product.name} yet.")
        return
    print(f"{product.name}: {len(options)} shop(s)")
    for o in options:
        print(f"  {o.shop.name:<20} from {format_price(o.price, currency)}")
        for r in o.records:
            print(f"    {r.brand or '-':<18} {format_price(r.price, currency)}")


def _cmd_range(store: AppStore, args) -> None:
    product = _find_product(store, args.product)
    pr = price_range(product.id, store.price_records)
    if pr is None:
        print(f"No prices for {product.name}.")
        return
    currency = store.settings.currency
    print(
        f"{product.name}: {format_price(pr.min, currency)}"
        f" - {format_price(pr.max, currency)}"
    )


def _cmd_alternatives(store: AppStore, args) -> None:
    shop = _find_shop(store, args.shop)
    alternatives = cheaper_elsewhere(
        shop.id, store.price_records, store.shops, store.products
    )
    currency = store.settings.currency

    if args.json:
        data = [
            {
                "product_id": a.product.id,
                "product_name": a.product.name,
                "current_price": a.current_price,
                "cheapest_price": a.cheapest_price,
                "cheapest_shop_id": a.cheapest_shop.id,
                "cheapest_shop_name": a.cheapest_shop.name,
                "cheapest_brand": a.cheapest_record.brand,
                "savings": round(a.savings, 2),
            }
            for a in alternatives
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not alternatives:
        print(f"Everything at {shop.name} is at the best price.")
        return
    print(f"{len(alternatives)} item(s) cheaper elsewhere than at {shop.name}:")
    for a in alternatives:
        brand = f" ({a.cheapest_record.brand})" if a.cheapest_record.brand else ""
        print(
            f"  {a.product.name:<20} {format_price(a.current_price, currency)}"
            f" -> {format_price(a.cheapest_price, currency)} at"
            f" {a.cheapest_shop.name}{brand}, save {format_price(a.savings, currency)}"
        )


def _cmd_best_shop(store: AppStore, args) -> None:
    needed = store.shopping_list()
    rankings = rank_shops_for_list(needed, store.price_records, store.shops)
    currency = store.settings.currency

    if args.json:
        data = [
            {
                "shop_id": r.shop.id,
                "shop_name": r.shop.name,
                "products_available": r.products_available,
                "cheapest_products_count": r.cheapest_products_count,
                "estimated_total": round(r.estimated_total, 2),
                "products_missing": r.products_missing,
            }
            for r in rankings
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not needed:
        print("Your shopping list is empty.")
        return
    if not rankings:
        print("No shop has prices for the products on your list.")
        return
    best = rankings[0]
    print(f"Best place to shop: {best.shop.name}")
    for r in rankings:
        print(
            f"  {r.shop.name:<20} {r.products_available}/{len(needed)} items,"
            f" {r.cheapest_products_count} cheapest,"
            f" ~{format_price(r.estimated_total, currency)}"
        )


def _cmd_list_total(store: AppStore, args) -> None:
    shop = _find_shop(store, args.shop)
    shopping_list = next(
        (sl for sl in store.snapshot().shopping_lists if sl.id == args.list_id), None
    )
    if shopping_list is None:
        print(f"Shopping list not found: {args.list_id}", file=sys.stderr)
        sys.exit(1)

    total = list_total_at_shop(shopping_list.items, shop.id, store.price_records)
    print(
        f"{shopping_list.name} at {shop.name}: "
        f"{format_price(total.total, store.settings.currency)}"
    )
    print(
        f"  {total.items_with_prices} priced, "
        f"{total.items_without_prices} without price"
    )


def _cmd_nearby(store: AppStore, args) -> None:
    radius = store.settings.default_geofence_radius
    nearby = shops_in_range(args.lat, args.lon, store.shops, default_radius=radius)
    if not nearby:
        print("No shops nearby.")
        return
    for item in nearby:
        print(f"  {item.shop.name:<20} {format_distance(item.distance)}")


def _cmd_orphans(store: AppStore) -> None:
    orphans = store.orphan_records()
    if not orphans:
        print("No orphan price records.")
        return
    print(f"{len(orphans)} orphan price record(s):")
    for r in orphans:
        print(f"  {r.id}: product={r.product_id} shop={r.shop_id} price={r.price}")


def _cmd_export(store: AppStore, config: ShopWellConfig, args) -> None:
    directory = args.dir or config.storage.backup_dir
    path = export_to_file(store.snapshot(), directory)
    print(f"Backup written: {path}")


def _cmd_import(store: AppStore, args) -> None:
    try:
        state = import_from_file(args.file)
    except (FileNotFoundError, BackupFormatError) as e:
        print(f"Import error: {e}", file=sys.stderr)
        sys.exit(1)
    store.replace_state(state)
    print(
        f"Imported {len(state.products)} products, {len(state.shops)} shops, "
        f"{len(state.price_records)} prices"
    )


async def _cmd_watch(store: AppStore, config: ShopWellConfig) -> None:
    from datetime import timedelta

    from .notifications import NotificationCenter
    from .scheduler import ReminderScheduler

    center = NotificationCenter(
        cooldown=timedelta(minutes=config.notifications.cooldown_minutes),
        history_limit=config.notifications.history_limit,
    )
    try:
        scheduler = ReminderScheduler(config, store, center=center)
    except ImportError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    scheduler.start()
    print("Scheduler running. Press Ctrl+C to stop.")
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
