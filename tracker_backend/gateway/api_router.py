# tracker_backend/gateway/api_router.py
from fastapi import APIRouter

from ..routers.orders_router import router as orders_router
from ..routers.uploads_router import router as uploads_router
from ..routers.exports_router import router as exports_router

api_router = APIRouter(prefix="/api")

api_router.include_router(orders_router)      # /api/orders/...
api_router.include_router(uploads_router)     # /api/upload
api_router.include_router(exports_router)     # /api/export
