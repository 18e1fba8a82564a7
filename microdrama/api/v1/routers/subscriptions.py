# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 💳 MicroDrama · Subscriptions API                                        ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Endpoints (user-authenticated):                                          ║
# ║  - POST /subscriptions/subscribe   → Buy a plan (201 + subscription)     ║
# ║  - POST /subscriptions/cancel      → Cancel current subscription         ║
# ║  - GET  /subscriptions/me          → Current subscription (or null)      ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Notes                                                                    ║
# ║  - Billing is simulated; subscribe always succeeds for a known plan.     ║
# ║  - All responses are `Cache-Control: no-store`.                          ║
# ║  - Reads may lazily expire a lapsed subscription.                        ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from microdrama.api.http_utils import json_no_store
from microdrama.core.dependencies import get_current_identity
from microdrama.dependencies.services import get_lifecycle_manager
from microdrama.schemas.auth import Identity
from microdrama.schemas.subscription import SubscribeInput, SubscriptionOut
from microdrama.services.subscription_service import SubscriptionLifecycleManager

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/subscriptions",
    tags=["Subscriptions"],
    responses={
        400: {"description": "Invalid plan"},
        401: {"description": "Unauthorized"},
        404: {"description": "No active subscription"},
        503: {"description": "Storage unavailable"},
    },
)


@router.post(
    "/subscribe",
    status_code=status.HTTP_201_CREATED,
    response_model=SubscriptionOut,
    summary="Subscribe to a plan",
)
async def subscribe(
    payload: SubscribeInput,
    identity: Identity = Depends(get_current_identity),
    manager: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
) -> JSONResponse:
    row = await manager.subscribe(identity.user_id, payload.plan.strip().lower())
    return json_no_store(SubscriptionOut.model_validate(row), status_code=status.HTTP_201_CREATED)


@router.post("/cancel", response_model=SubscriptionOut, summary="Cancel the current subscription")
async def cancel(
    identity: Identity = Depends(get_current_identity),
    manager: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
) -> JSONResponse:
    row = await manager.cancel(identity.user_id)
    return json_no_store(SubscriptionOut.model_validate(row))


@router.get("/me", response_model=Optional[SubscriptionOut], summary="Current subscription")
async def my_subscription(
    identity: Identity = Depends(get_current_identity),
    manager: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
) -> JSONResponse:
    """The current row after lazy expiry, or `null` when the user never subscribed."""
    row = await manager.current_subscription(identity.user_id)
    return json_no_store(SubscriptionOut.model_validate(row) if row else None)


__all__ = ["router"]
