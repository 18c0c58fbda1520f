import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from . import __version__
from .config import Settings, load_settings
from .db import Database
from .errors import register_error_handlers
from .routes.export import router as export_router
from .routes.feedback import router as feedback_router

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"{request.method} {request.url.path} failed: {e}")
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


def now_utc():
    return datetime.now(timezone.utc)


def create_app(settings: Settings) -> FastAPI:
    configure_logging(settings)
    database = Database(settings.database_url, echo=settings.sql_echo)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            await database.create_all()
            logger.info("Database initialized")
        except Exception as e:
            logger.critical(f"Failed to initialize database: {e}", exc_info=True)
            raise
        try:
            yield
        finally:
            await database.dispose()
            logger.info("Application shutdown")

    app = FastAPI(
        title="BNCC Feedback API",
        description="Feedback management API for events and divisions",
        version=__version__,
        docs_url="/api-docs",
        openapi_url="/api-docs/openapi.json",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLogMiddleware)
    register_error_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"success": True, "message": "Server is running", "timestamp": now_utc().isoformat()}

    app.include_router(export_router, prefix=settings.feedback_path)
    app.include_router(feedback_router, prefix=settings.feedback_path)
    return app


def run() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())
