# tracker_backend/models/order_model.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime, JSON, String
from sqlalchemy.types import Unicode, UnicodeText

from ..database.session import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"

    id          = Column(String(36), primary_key=True, default=_new_id)
    customer    = Column(UnicodeText, nullable=False)
    items       = Column(JSON, nullable=False, default=list)   # ordered list of text
    total_amount = Column(Integer, nullable=False)
    paid_amount = Column(Integer, nullable=False, default=0)
    status      = Column(Unicode(20), nullable=False)          # "paid" / "partial" / "pending"
    note        = Column(UnicodeText, nullable=True)
    images      = Column(JSON, nullable=True)                  # URLs of uploaded images
    created_at  = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
