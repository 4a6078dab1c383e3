# tracker_backend/services/export_service.py
"""
CSV / JSON exports of orders for a given month.

CSV uses ';' as delimiter and a UTF-8 BOM so spreadsheet software opens it
with the right encoding. JSON wraps the orders in a summary envelope.
"""

import io
import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

import pandas as pd

from .payment_status import PAID, PARTIAL

CSV_COLUMNS = [
    "Date", "Client", "Articles", "Montant Total", "Montant Payé",
    "Reste à Payer", "Statut", "Note",
]

STATUS_LABELS = {PAID: "Payée", PARTIAL: "Partielle"}
DEFAULT_STATUS_LABEL = "En attente"


def _created(order: Dict[str, Any]) -> datetime:
    value = order["createdAt"]
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def filter_by_month(orders: Iterable[Dict[str, Any]], month: int, year: int) -> List[Dict[str, Any]]:
    return [o for o in orders if _created(o).month == month and _created(o).year == year]


def prepare_csv_rows(orders: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    rows = []
    for order in orders:
        total = order.get("totalAmount", 0) or 0
        paid = order.get("paidAmount", 0) or 0
        rows.append({
            "Date": _created(order).strftime("%d/%m/%Y"),
            "Client": order.get("customer", ""),
            "Articles": " | ".join(order.get("items") or []),
            "Montant Total": total,
            "Montant Payé": paid,
            "Reste à Payer": total - paid,
            "Statut": STATUS_LABELS.get(order.get("status"), DEFAULT_STATUS_LABEL),
            "Note": order.get("note") or "",
        })
    return rows


def to_csv_bytes(orders: Iterable[Dict[str, Any]]) -> bytes:
    df = pd.DataFrame(prepare_csv_rows(orders), columns=CSV_COLUMNS)
    buf = io.StringIO()
    df.to_csv(buf, sep=";", index=False)
    # utf-8-sig prepends the BOM
    return buf.getvalue().encode("utf-8-sig")


def build_json_export(orders: List[Dict[str, Any]], month: int, year: int) -> Dict[str, Any]:
    return {
        "periode": f"{month} {year}",
        "date_export": datetime.now(timezone.utc).isoformat(),
        "total_commandes": len(orders),
        "total_revenu": sum(o.get("paidAmount", 0) for o in orders),
        "total_dette": sum(o.get("totalAmount", 0) - o.get("paidAmount", 0) for o in orders),
        "commandes": [
            {
                "id": o.get("id"),
                "date": o.get("createdAt"),
                "client": o.get("customer"),
                "articles": o.get("items"),
                "montant_total": o.get("totalAmount"),
                "montant_paye": o.get("paidAmount"),
                "reste_a_payer": o.get("totalAmount", 0) - o.get("paidAmount", 0),
                "statut": o.get("status"),
                "note": o.get("note"),
                "images": o.get("images"),
            }
            for o in orders
        ],
    }


def to_json_bytes(orders: List[Dict[str, Any]], month: int, year: int) -> bytes:
    envelope = build_json_export(orders, month, year)
    return json.dumps(envelope, ensure_ascii=False, indent=2, default=str).encode("utf-8")


def export_filename(fmt: str, month: int, year: int) -> str:
    return f"commandes_{month}_{year}.{fmt}"
