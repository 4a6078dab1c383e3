# tracker_backend/models/__init__.py
from .order_model import Order

__all__ = ["Order"]
