# tracker_frontend/services/orders_service.py
"""
Dashboard helpers: payload building, search/status filtering, sorting and
summary figures over the cached order list.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

STATUS_ORDER = {"pending": 0, "partial": 1, "paid": 2}

SORT_OPTIONS = (
    "date-desc", "date-asc", "customer-asc", "customer-desc",
    "amount-desc", "amount-asc", "status",
)


def derive_status(paid_amount: int, total_amount: int) -> str:
    if paid_amount >= total_amount:
        return "paid"
    if paid_amount == 0:
        return "pending"
    return "partial"


def build_order_payload(customer: str, items: List[str], total_amount: int, paid_amount: int = 0,
                        note: Optional[str] = None, images: Optional[List[str]] = None) -> Dict[str, Any]:
    """Create-order body with blank items dropped and status derived from the amounts."""
    payload: Dict[str, Any] = {
        "customer": customer.strip(),
        "items": [i.strip() for i in items if i and i.strip()],
        "totalAmount": total_amount,
        "paidAmount": paid_amount,
        "status": derive_status(paid_amount, total_amount),
    }
    if note:
        payload["note"] = note
    if images:
        payload["images"] = list(images)
    return payload


def _created(order: Dict[str, Any]) -> datetime:
    return datetime.fromisoformat(str(order.get("createdAt", "")).replace("Z", "+00:00"))


def filter_orders(orders: List[Dict[str, Any]], search: str = "", status: str = "all") -> List[Dict[str, Any]]:
    term = (search or "").lower()
    filtered = []
    for order in orders:
        if term:
            in_customer = term in order.get("customer", "").lower()
            in_items = any(term in item.lower() for item in order.get("items") or [])
            if not (in_customer or in_items):
                continue
        if status != "all" and order.get("status") != status:
            continue
        filtered.append(order)
    return filtered


def sort_orders(orders: List[Dict[str, Any]], sort_by: str = "date-desc") -> List[Dict[str, Any]]:
    if sort_by == "date-desc":
        return sorted(orders, key=_created, reverse=True)
    if sort_by == "date-asc":
        return sorted(orders, key=_created)
    if sort_by == "customer-asc":
        return sorted(orders, key=lambda o: o.get("customer", "").casefold())
    if sort_by == "customer-desc":
        return sorted(orders, key=lambda o: o.get("customer", "").casefold(), reverse=True)
    if sort_by == "amount-desc":
        return sorted(orders, key=lambda o: o.get("totalAmount", 0), reverse=True)
    if sort_by == "amount-asc":
        return sorted(orders, key=lambda o: o.get("totalAmount", 0))
    if sort_by == "status":
        return sorted(orders, key=lambda o: STATUS_ORDER.get(o.get("status"), 0))
    raise ValueError(f"unknown sort option: {sort_by}")


def summarize(orders: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "total_orders": len(orders),
        "total_revenue": sum(o.get("paidAmount", 0) for o in orders),
        "total_due": sum(o.get("totalAmount", 0) - o.get("paidAmount", 0) for o in orders),
        "customers": sorted({o.get("customer", "") for o in orders}),
    }
