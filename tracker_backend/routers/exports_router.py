# tracker_backend/routers/exports_router.py
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..database.session import get_db
from ..queries.order_queries import order_queries
from ..services import export_service
from ..services.backup_service import serialize_orders

router = APIRouter(tags=["export"])

MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "json": "application/json",
}


@router.get("/export")
def export_orders(
    fmt: Literal["csv", "json"] = Query("csv", alias="format"),
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1970),
    db: Session = Depends(get_db),
):
    orders = serialize_orders(order_queries.list_orders(db))
    selected = export_service.filter_by_month(orders, month, year)
    if not selected:
        raise HTTPException(status_code=404, detail="No orders found for this period")

    if fmt == "csv":
        content = export_service.to_csv_bytes(selected)
    else:
        content = export_service.to_json_bytes(selected, month, year)

    filename = export_service.export_filename(fmt, month, year)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
