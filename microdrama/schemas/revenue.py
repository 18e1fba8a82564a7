from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from microdrama.schemas.enums import ReportPeriod


class RevenueBucketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    start: datetime
    amount: int
    count: int


class RevenueReportOut(BaseModel):
    """Admin dashboard payload; JSON keys follow the dashboard's camelCase."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    period: ReportPeriod
    bucketed: List[RevenueBucketOut]
    total_revenue: int = Field(..., serialization_alias="totalRevenue")
    active_subscribers: int = Field(..., serialization_alias="activeSubscribers")
    generated_at: datetime = Field(..., serialization_alias="generatedAt")


class SubscriptionStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    weekly: int
    monthly: int
    inactive: int
    estimated_monthly_revenue: int = Field(..., serialization_alias="estimatedMonthlyRevenue")
    currency: str
    by_status: Dict[str, int] = Field(default_factory=dict, serialization_alias="byStatus")
