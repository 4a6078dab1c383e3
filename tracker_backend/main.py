# tracker_backend/main.py
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config.settings import CORS_ORIGINS, DEBUG, HOST, PORT, UPLOADS_DIR, UPLOADS_URL_PREFIX
from .database.session import check_connection, init_db
from .gateway.api_router import api_router
from .logging_config import setup_logging
from .routers.push_router import router as push_router
from .services.connection_manager import connection_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Order tracker API is starting (v%s)", __version__)
    init_db()
    if check_connection():
        logger.info("Database connected")
    yield
    # Shutdown
    logger.info("Shutting down (%d push clients open)", connection_manager.connection_count)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # drop the "body"/"query" prefix so the message names the field itself
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "Validation error: " + "; ".join(parts)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = _format_validation_errors(exc)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"detail": message})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Order Tracker",
        description="Orders, payments and image attachments with live push updates",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health")
    async def health():
        status = {
            "status": "healthy",
            "service": "order-tracker-api",
            "version": __version__,
            "push_clients": connection_manager.connection_count,
        }
        if check_connection():
            status["database"] = "connected"
        else:
            status["database"] = "error"
            status["status"] = "degraded"
        return status

    @app.get("/")
    async def root():
        return {
            "message": "Order Tracker API",
            "version": __version__,
            "docs": "/docs",
            "endpoints": {
                "health": "/health",
                "orders": "/api/orders",
                "upload": "/api/upload",
                "export": "/api/export",
                "push": "/ws",
            },
        }

    app.include_router(api_router)
    app.include_router(push_router)

    os.makedirs(UPLOADS_DIR, exist_ok=True)
    app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=UPLOADS_DIR), name="uploads")

    return app


setup_logging()
app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "tracker_backend.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
        log_level="debug" if DEBUG else "info",
    )


if __name__ == "__main__":
    run()
