"""
🧭 MicroDrama • API v1 Router Aggregator
=======================================

Exports the combined `router` and each sub-router so callers can mount them
as needed.

Quick usage
-----------
    from microdrama.api.v1.routers import router as v1_router
    app.include_router(v1_router, prefix="/api/v1")

Auth lives in child routers: content routes take an optional identity,
subscription routes require one, admin routes require the admin role.
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .content import router as content_router
from .subscriptions import router as subscriptions_router


def build_v1_router() -> APIRouter:
    """
    Compose the API v1 surface into a single `APIRouter`.

    Includes:
      • Content access (`/episodes`, `/series`)
      • Viewer subscriptions under `/subscriptions`
      • Admin endpoints under `/admin`
    """
    r = APIRouter()
    r.include_router(content_router)
    r.include_router(subscriptions_router)
    r.include_router(admin_router, prefix="/admin")
    return r


router = build_v1_router()


__all__ = [
    "router",
    "build_v1_router",
    "content_router",
    "subscriptions_router",
    "admin_router",
]
