# tracker_backend/cli.py
"""
Database maintenance commands.

    order-tracker-db backup
    order-tracker-db restore [FILE] [--yes]
    order-tracker-db export-sql
    order-tracker-db export --format csv --month 3 --year 2025 [--output FILE]
    order-tracker-db auto-backup
"""

import argparse
import logging
import os
import sys
import time
from typing import List, Optional

from .config.settings import AUTO_BACKUP_INTERVAL_HOURS, BACKUP_DIR, MAX_BACKUPS
from .database.session import SessionLocal, init_db
from .logging_config import setup_logging
from .queries.order_queries import order_queries
from .services import export_service
from .services.backup_service import AutoBackupScheduler, BackupError, BackupService, serialize_orders

logger = logging.getLogger(__name__)

RESTORE_GRACE_SECONDS = 5


def _cmd_backup(service: BackupService, args) -> int:
    db = SessionLocal()
    try:
        path = service.create_backup(db)
    finally:
        db.close()
    service.rotate_backups()
    print(path)
    return 0


def _cmd_restore(service: BackupService, args) -> int:
    if not args.yes and sys.stdin.isatty():
        print("WARNING: this deletes every current order.")
        print(f"Press Ctrl+C to cancel, or wait {RESTORE_GRACE_SECONDS} seconds...")
        time.sleep(RESTORE_GRACE_SECONDS)

    db = SessionLocal()
    try:
        count = service.restore(db, args.file)
    finally:
        db.close()
    print(f"{count} orders restored")
    return 0


def _cmd_export_sql(service: BackupService, args) -> int:
    db = SessionLocal()
    try:
        path = service.export_sql(db)
    finally:
        db.close()
    print(path)
    return 0


def _cmd_export(service: BackupService, args) -> int:
    db = SessionLocal()
    try:
        orders = serialize_orders(order_queries.list_orders(db))
    finally:
        db.close()

    selected = export_service.filter_by_month(orders, args.month, args.year)
    if not selected:
        logger.error("No orders found for %02d/%d", args.month, args.year)
        return 1

    if args.format == "csv":
        content = export_service.to_csv_bytes(selected)
    else:
        content = export_service.to_json_bytes(selected, args.month, args.year)

    output = args.output or export_service.export_filename(args.format, args.month, args.year)
    with open(output, "wb") as f:
        f.write(content)
    print(f"{len(selected)} orders exported to {os.path.abspath(output)}")
    return 0


def _cmd_auto_backup(service: BackupService, args) -> int:
    scheduler = AutoBackupScheduler(service, SessionLocal, interval=args.interval_hours * 3600)
    scheduler.start()
    try:
        while scheduler.is_alive():
            scheduler.join(timeout=1.0)
    except KeyboardInterrupt:
        scheduler.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="order-tracker-db", description="Order tracker database utilities")
    ap.add_argument("--backup-dir", default=BACKUP_DIR)
    ap.add_argument("--max-backups", type=int, default=MAX_BACKUPS)
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("backup", help="write a JSON snapshot of all orders")
    p.set_defaults(func=_cmd_backup)

    p = sub.add_parser("restore", help="replace all orders with a snapshot")
    p.add_argument("file", nargs="?", help="snapshot to restore (latest when omitted)")
    p.add_argument("--yes", action="store_true", help="skip the grace period")
    p.set_defaults(func=_cmd_restore)

    p = sub.add_parser("export-sql", help="write an SQL dump of all orders")
    p.set_defaults(func=_cmd_export_sql)

    p = sub.add_parser("export", help="export one month of orders as CSV or JSON")
    p.add_argument("--format", choices=["csv", "json"], default="csv")
    p.add_argument("--month", type=int, required=True, choices=range(1, 13), metavar="MONTH")
    p.add_argument("--year", type=int, required=True)
    p.add_argument("--output")
    p.set_defaults(func=_cmd_export)

    p = sub.add_parser("auto-backup", help="back up now and then on a fixed interval")
    p.add_argument("--interval-hours", type=float, default=AUTO_BACKUP_INTERVAL_HOURS)
    p.set_defaults(func=_cmd_auto_backup)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)
    init_db()
    service = BackupService(backup_dir=args.backup_dir, max_backups=args.max_backups)
    try:
        return args.func(service, args)
    except (BackupError, OSError, ValueError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
