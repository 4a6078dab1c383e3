# tracker_backend/services/backup_service.py
"""
JSON snapshots of the orders table, restore from a snapshot and plain SQL
dumps.

File names: backup-<UTC timestamp>.json / .sql, with ':' replaced by '-'
so they sort chronologically and are valid on every filesystem. Only the
newest MAX_BACKUPS JSON snapshots are kept.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..config.settings import BACKUP_DIR, MAX_BACKUPS
from ..models.order_model import Order
from ..queries.order_queries import order_queries
from ..schemas.orders import OrderResponse

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
BACKUP_PREFIX = "backup-"


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


def _sql_str(value: Optional[str]) -> str:
    if value is None:
        return "NULL"
    return "'" + str(value).replace("'", "''") + "'"


def _sql_json(values: Optional[List[str]]) -> str:
    # items/images are JSON columns, so lists are written as JSON text
    if values is None:
        return "NULL"
    return _sql_str(json.dumps(list(values), ensure_ascii=False))


def serialize_orders(orders: List[Order]) -> List[Dict[str, Any]]:
    return [OrderResponse.model_validate(o).model_dump(by_alias=True, mode="json") for o in orders]


class BackupError(RuntimeError):
    pass


class BackupService:
    """
    Snapshot/restore of the orders table.

    Usage:
        service = BackupService()
        path = service.create_backup(db)
        service.rotate_backups()
    """

    def __init__(self, backup_dir: str = BACKUP_DIR, max_backups: int = MAX_BACKUPS):
        self.backup_dir = backup_dir
        self.max_backups = max_backups

    def _ensure_dir(self) -> None:
        os.makedirs(self.backup_dir, exist_ok=True)

    def list_backups(self) -> List[str]:
        """JSON snapshot paths, newest first."""
        if not os.path.isdir(self.backup_dir):
            return []
        names = [
            f for f in os.listdir(self.backup_dir)
            if f.startswith(BACKUP_PREFIX) and f.endswith(".json")
        ]
        names.sort(reverse=True)
        return [os.path.join(self.backup_dir, n) for n in names]

    def latest_backup(self) -> Optional[str]:
        backups = self.list_backups()
        return backups[0] if backups else None

    # ---------- backup ----------
    def create_backup(self, db: Session) -> str:
        orders = order_queries.list_orders(db)
        payload = {
            "version": BACKUP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "orders": serialize_orders(orders),
        }

        self._ensure_dir()
        path = os.path.join(self.backup_dir, f"{BACKUP_PREFIX}{_timestamp()}.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

        logger.info("Backup written: %s (%d orders)", path, len(orders))
        return path

    def rotate_backups(self) -> List[str]:
        """Delete JSON snapshots beyond the newest max_backups; returns removed paths."""
        removed = []
        for path in self.list_backups()[self.max_backups:]:
            os.remove(path)
            removed.append(path)
            logger.info("Old backup removed: %s", os.path.basename(path))
        return removed

    # ---------- restore ----------
    def load_backup(self, path: str) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict) or not isinstance(data.get("orders"), list):
            raise BackupError(f"Not a backup file: {path}")
        return data

    def restore(self, db: Session, path: Optional[str] = None) -> int:
        """Replace every order with the snapshot's (latest snapshot when path is None)."""
        if path is None:
            path = self.latest_backup()
            if path is None:
                raise BackupError(f"No backup found in {self.backup_dir}")
            logger.info("Using backup %s", os.path.basename(path))

        data = self.load_backup(path)
        orders = [self._to_model(raw) for raw in data["orders"]]
        count = order_queries.replace_all(db, orders)
        logger.info("Restored %d orders from %s (snapshot of %s)", count, path, data.get("timestamp"))
        return count

    @staticmethod
    def _to_model(raw: Dict[str, Any]) -> Order:
        o = OrderResponse.model_validate(raw)
        return Order(
            id=o.id,
            customer=o.customer,
            items=list(o.items),
            total_amount=o.total_amount,
            paid_amount=o.paid_amount,
            status=o.status,
            note=o.note,
            images=o.images,
            created_at=o.created_at,
        )

    # ---------- SQL dump ----------
    def render_sql(self, orders: List[Order]) -> str:
        lines = [
            "-- Orders export",
            f"-- Date: {datetime.now(timezone.utc).isoformat()}",
            f"-- Orders: {len(orders)}",
            "",
            "DELETE FROM orders;",
            "",
        ]
        for o in orders:
            created = o.created_at.isoformat(sep=" ") if o.created_at else None
            lines.append(
                "INSERT INTO orders (id, customer, items, total_amount, paid_amount, status, note, images, created_at) VALUES (\n"
                f"  {_sql_str(o.id)},\n"
                f"  {_sql_str(o.customer)},\n"
                f"  {_sql_json(o.items or [])},\n"
                f"  {int(o.total_amount)},\n"
                f"  {int(o.paid_amount)},\n"
                f"  {_sql_str(o.status)},\n"
                f"  {_sql_str(o.note) if o.note else 'NULL'},\n"
                f"  {_sql_json(o.images) if o.images else 'NULL'},\n"
                f"  {_sql_str(created)}\n"
                ");\n"
            )
        return "\n".join(lines)

    def export_sql(self, db: Session) -> str:
        orders = order_queries.list_orders(db)
        self._ensure_dir()
        path = os.path.join(self.backup_dir, f"{BACKUP_PREFIX}{_timestamp()}.sql")
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.render_sql(orders))
        logger.info("SQL export written: %s (%d orders)", path, len(orders))
        return path


class AutoBackupScheduler(threading.Thread):
    """Backs up immediately, then every `interval` seconds until stopped."""

    def __init__(self, service: BackupService, session_factory, interval: float):
        super().__init__(daemon=True, name="AutoBackup")
        self.service = service
        self.session_factory = session_factory
        self.interval = interval
        self._stop_event = threading.Event()

    def run_once(self) -> Optional[str]:
        db = self.session_factory()
        try:
            path = self.service.create_backup(db)
            self.service.rotate_backups()
            return path
        except Exception:
            logger.exception("Automatic backup failed")
            return None
        finally:
            db.close()

    def run(self) -> None:
        logger.info("Automatic backup service started (every %.0f s)", self.interval)
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self.interval)

    def stop(self) -> None:
        self._stop_event.set()
