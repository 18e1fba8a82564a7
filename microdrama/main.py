# microdrama/main.py
from __future__ import annotations

"""
# MicroDrama API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the entitlement & subscription
engine.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Middleware order (outermost first): strip `Server` → request id → CORS → gzip.
- Centralized problem+json exception handling.

## Probes
- `/healthz`: liveness (process up).
- `/readyz`: readiness (subscription store ping).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable
import logging
import os
import sys

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, Response

# Importing sets up Loguru handlers and the stdlib intercept.
from microdrama.core import logger as _logsetup  # noqa: F401
from microdrama.api.v1.routers import router as api_v1_router
from microdrama.core.config import settings
from microdrama.core.exception_handlers import (
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from microdrama.core.exceptions import StorageUnavailableException
from microdrama.dependencies.services import get_subscription_repo
from microdrama.middleware.request_id import RequestIDMiddleware
from microdrama.repositories.subscriptions import SubscriptionRepositoryProtocol, get_subscription_repository

logger = logging.getLogger("microdrama")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("MicroDrama API starting up (env=%s)", settings.ENV)
    repo = get_subscription_repository()
    logger.info("Subscription store: %s", type(repo).__name__)
    try:
        yield
    finally:
        # The engine exists only if a SQL repository imported the session module.
        session_mod = sys.modules.get("microdrama.db.session")
        if session_mod is not None:
            try:
                await session_mod.async_engine.dispose()
                logger.info("Database engine disposed")
            except Exception:
                logger.exception("Error disposing DB engine")
        logger.info("MicroDrama API shutting down")


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """Build the FastAPI app with middleware, exception handlers, routers and probes."""
    enable_docs = settings.ENABLE_DOCS and not settings.is_production

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (last added runs first) ─────────────────────────────────
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.frontend_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Link"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.middleware("http")
    async def _strip_server_header(request: Request, call_next: Callable) -> Response:
        response: Response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        """Liveness probe; no external checks."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    async def readyz(repo: SubscriptionRepositoryProtocol = Depends(get_subscription_repo)) -> JSONResponse:
        """Readiness probe: the subscription store must answer a ping."""
        try:
            store_ok = bool(await repo.ping())
        except StorageUnavailableException:
            store_ok = False
        body = {"ready": store_ok, "checks": {"subscription_store": store_ok}}
        return JSONResponse(body, status_code=200 if store_ok else 503)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse({"name": settings.PROJECT_NAME, "docs": app.docs_url or "", "version": settings.VERSION})

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()

__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn microdrama.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "microdrama.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info"),
    )
