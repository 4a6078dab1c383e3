# tracker_backend/schemas/__init__.py

# orders
from .orders import (
    OrderStatus, OrderCreate, OrderUpdate, OrderResponse, OrderDeleted, PushEventType,
)

# uploads
from .uploads import UploadResponse

__all__ = [
    # orders
    "OrderStatus", "OrderCreate", "OrderUpdate", "OrderResponse",
    "OrderDeleted", "PushEventType",
    # uploads
    "UploadResponse",
]
