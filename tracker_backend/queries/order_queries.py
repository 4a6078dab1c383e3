# tracker_backend/queries/order_queries.py
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..models.order_model import Order
from ..services.payment_status import derive_status

logger = logging.getLogger(__name__)

# columns a partial update may touch
_UPDATABLE = ("customer", "items", "total_amount", "paid_amount", "note", "images")
_NOT_NULL = {"customer", "items", "total_amount", "paid_amount"}


class OrderQueries:
    """Typed access to the orders table. Callers own the session."""

    def list_orders(self, db: Session) -> List[Order]:
        return db.query(Order).order_by(Order.created_at.asc()).all()

    def get_order(self, db: Session, order_id: str) -> Optional[Order]:
        return db.get(Order, order_id)

    def create_order(self, db: Session, data: Dict[str, Any]) -> Order:
        total = data["total_amount"]
        paid = data.get("paid_amount") or 0
        status = derive_status(paid, total)
        if data.get("status") and data["status"] != status:
            logger.debug("Client status %r overridden with %r", data["status"], status)

        o = Order(
            customer=data["customer"],
            items=list(data.get("items") or []),
            total_amount=total,
            paid_amount=paid,
            status=status,
            note=data.get("note"),
            images=data.get("images"),
        )
        db.add(o)
        db.commit()
        db.refresh(o)
        return o

    def update_order(self, db: Session, order_id: str, changes: Dict[str, Any]) -> Optional[Order]:
        o = self.get_order(db, order_id)
        if o is None:
            return None

        for field in _UPDATABLE:
            if field in changes:
                value = changes[field]
                if value is None and field in _NOT_NULL:
                    continue
                if field == "items" and value is not None:
                    value = list(value)
                setattr(o, field, value)

        status = derive_status(o.paid_amount, o.total_amount)
        if changes.get("status") and changes["status"] != status:
            logger.debug("Client status %r overridden with %r", changes["status"], status)
        o.status = status

        db.commit()
        db.refresh(o)
        return o

    def delete_order(self, db: Session, order_id: str) -> bool:
        o = self.get_order(db, order_id)
        if o is None:
            return False
        db.delete(o)
        db.commit()
        return True

    def replace_all(self, db: Session, orders: Iterable[Order]) -> int:
        """Drop every order and insert the given ones in a single transaction."""
        try:
            db.expunge_all()
            db.query(Order).delete(synchronize_session=False)
            count = 0
            for o in orders:
                db.add(o)
                count += 1
            db.commit()
            return count
        except Exception:
            db.rollback()
            raise


order_queries = OrderQueries()
