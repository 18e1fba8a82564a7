from __future__ import annotations

"""
Admin router package (v1)
=========================

Admin dashboard endpoints by domain:
- revenue: bucketed revenue report
- subscriptions: subscription stats and subscriber listing

Design
------
• Each submodule defines its own `APIRouter` and applies `require_admin`.
• This package aggregates them into a single `router` export.
• Mount with a base path in your app:
    app.include_router(admin_v1.router, prefix="/api/v1/admin")
"""

from typing import Any, Dict

from fastapi import APIRouter, status

from .revenue import router as revenue_router
from .subscriptions import router as subscriptions_router


# ─────────────────────────────────────────────────────────────────────────────
# 📋 Common OpenAPI responses (docs-only; behavior unchanged)
# ─────────────────────────────────────────────────────────────────────────────

COMMON_ADMIN_RESPONSES: Dict[int, Dict[str, Any]] = {
    status.HTTP_401_UNAUTHORIZED: {"description": "Unauthorized"},
    status.HTTP_403_FORBIDDEN: {"description": "Admin role required"},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Storage unavailable"},
}

router = APIRouter()  # callers mount with prefix="/api/v1/admin"
router.include_router(revenue_router, responses=COMMON_ADMIN_RESPONSES)
router.include_router(subscriptions_router, responses=COMMON_ADMIN_RESPONSES)


__all__ = ["router", "revenue_router", "subscriptions_router", "COMMON_ADMIN_RESPONSES"]
