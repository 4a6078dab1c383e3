# tracker_backend/routers/orders_router.py
import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..database.session import get_db
from ..models.order_model import Order
from ..queries.order_queries import order_queries
from ..schemas.orders import OrderCreate, OrderUpdate, OrderResponse, OrderDeleted
from ..services.connection_manager import ConnectionManager, get_connection_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

ORDER_NOT_FOUND = "Order not found"


def _to_response(o: Order) -> OrderResponse:
    return OrderResponse.model_validate(o)


@router.get("", response_model=List[OrderResponse])
def list_orders(db: Session = Depends(get_db)):
    return [_to_response(o) for o in order_queries.list_orders(db)]


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, db: Session = Depends(get_db)):
    o = order_queries.get_order(db, order_id)
    if not o:
        raise HTTPException(status_code=404, detail=ORDER_NOT_FOUND)
    return _to_response(o)


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    body: OrderCreate,
    bg: BackgroundTasks,
    db: Session = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    o = order_queries.create_order(db, body.model_dump())
    out = _to_response(o)
    # sent after the response, on the event loop
    bg.add_task(manager.broadcast, "order_created", out.model_dump(by_alias=True))
    logger.info("Order %s created for %r (%s)", o.id, o.customer, o.status)
    return out


@router.patch("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: str,
    body: OrderUpdate,
    bg: BackgroundTasks,
    db: Session = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    o = order_queries.update_order(db, order_id, body.model_dump(exclude_unset=True))
    if not o:
        raise HTTPException(status_code=404, detail=ORDER_NOT_FOUND)
    out = _to_response(o)
    bg.add_task(manager.broadcast, "order_updated", out.model_dump(by_alias=True))
    logger.info("Order %s updated (%s)", o.id, o.status)
    return out


@router.delete("/{order_id}", status_code=204)
def delete_order(
    order_id: str,
    bg: BackgroundTasks,
    db: Session = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    if not order_queries.delete_order(db, order_id):
        raise HTTPException(status_code=404, detail=ORDER_NOT_FOUND)
    bg.add_task(manager.broadcast, "order_deleted", OrderDeleted(id=order_id).model_dump())
    logger.info("Order %s deleted", order_id)
    return Response(status_code=204)
