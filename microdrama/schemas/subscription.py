from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from microdrama.schemas.enums import SubscriptionPlan, SubscriptionStatus


class SubscribeInput(BaseModel):
    # Free-form so an unknown plan surfaces as InvalidPlan (400), not a 422.
    plan: str = Field(..., min_length=1, max_length=32, description="weekly | monthly")


class SubscriptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    plan: SubscriptionPlan
    status: SubscriptionStatus
    start_date: datetime
    renews_at: datetime
    amount: int
    auto_renew: bool
    created_at: datetime
    updated_at: datetime


class PaginatedSubscriptions(BaseModel):
    items: List[SubscriptionOut]
    page: int
    page_size: int
    total: int
