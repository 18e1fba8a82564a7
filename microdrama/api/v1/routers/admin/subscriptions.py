# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 🛡️ MicroDrama · Admin Subscriptions API                                  ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║  - GET /subscriptions/stats  → active counts by plan, MRR estimate       ║
# ║  - GET /subscriptions        → paginated subscriber list (newest first)  ║
# ║                                 with `X-Total-Count` + `Link`            ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from microdrama.api.http_utils import json_no_store, pagination_headers
from microdrama.dependencies.admin import require_admin
from microdrama.dependencies.services import get_lifecycle_manager, get_revenue_aggregator
from microdrama.schemas.auth import Identity
from microdrama.schemas.enums import SubscriptionPlan, SubscriptionStatus
from microdrama.schemas.revenue import SubscriptionStatsOut
from microdrama.schemas.subscription import PaginatedSubscriptions, SubscriptionOut
from microdrama.services.revenue_service import RevenueAggregator
from microdrama.services.subscription_service import SubscriptionLifecycleManager

router = APIRouter(prefix="/subscriptions", tags=["Admin Subscriptions"])


@router.get("/stats", response_model=SubscriptionStatsOut, summary="Subscription analytics")
async def subscription_stats(
    _admin: Identity = Depends(require_admin),
    aggregator: RevenueAggregator = Depends(get_revenue_aggregator),
) -> JSONResponse:
    stats = await aggregator.subscription_stats()
    return json_no_store(SubscriptionStatsOut.model_validate(stats))


@router.get("", response_model=PaginatedSubscriptions, summary="List subscriptions")
async def list_subscriptions(
    request: Request,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    plan: Optional[SubscriptionPlan] = Query(None),
    status: Optional[SubscriptionStatus] = Query(None),
    user_id: Optional[str] = Query(None, min_length=1, max_length=64),
    _admin: Identity = Depends(require_admin),
    manager: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
) -> JSONResponse:
    items, total = await manager.list_subscriptions(
        page=page, page_size=page_size, plan=plan, status=status, user_id=user_id,
    )
    body = PaginatedSubscriptions(
        items=[SubscriptionOut.model_validate(r) for r in items],
        page=page,
        page_size=page_size,
        total=total,
    )
    return json_no_store(body, headers=pagination_headers(request, page=page, page_size=page_size, total=total))
