# tracker_backend/schemas/orders.py
from typing import List, Literal, Optional
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator
from pydantic.alias_generators import to_camel

OrderStatus = Literal["paid", "partial", "pending"]
PushEventType = Literal["order_created", "order_updated", "order_deleted"]

CustomerStr = constr(strip_whitespace=True, min_length=1)


class _CamelModel(BaseModel):
    # wire format is camelCase (totalAmount, paidAmount, createdAt)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class OrderCreate(_CamelModel):
    customer: CustomerStr
    items: List[str]
    total_amount: int = Field(ge=0)
    paid_amount: int = Field(default=0, ge=0)
    # accepted for compatibility; the server recomputes it from the amounts
    status: Optional[OrderStatus] = None
    note: Optional[str] = None
    images: Optional[List[str]] = None


class OrderUpdate(_CamelModel):
    customer: Optional[CustomerStr] = None
    items: Optional[List[str]] = None
    total_amount: Optional[int] = Field(default=None, ge=0)
    paid_amount: Optional[int] = Field(default=None, ge=0)
    status: Optional[OrderStatus] = None
    note: Optional[str] = None
    images: Optional[List[str]] = None

    @field_validator("customer", "items", "total_amount", "paid_amount")
    @classmethod
    def _not_null(cls, v):
        # omit a field to keep it; these columns cannot be cleared
        if v is None:
            raise ValueError("may not be null")
        return v


class OrderResponse(_CamelModel):
    id: str
    customer: str
    items: List[str]
    total_amount: int
    paid_amount: int
    status: OrderStatus
    note: Optional[str] = None
    images: Optional[List[str]] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        # SQLite returns naive datetimes; they are stored in UTC
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


class OrderDeleted(BaseModel):
    id: str

