# microdrama/services/revenue_service.py
from __future__ import annotations

"""
MicroDrama — Revenue Aggregator
===============================

Read-only reporting over the whole subscription store for the admin
dashboard.

- Revenue is bucketed by `start_date` (UTC), regardless of row status, so a
  canceled or expired purchase still counts toward the period it was bought in.
- Month buckets are labelled ``"March 2025"``. Week buckets start on Monday
  and are labelled ``"March 2025 - Week 2"``: the Monday's month and year plus
  ``ceil(monday.day / 7)``. Month names are fixed English so labels do not
  depend on the process locale.
- "Active" always means the user's current row after lazy expiry at `now`;
  a `now` ahead of the clock is projected and never written.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from microdrama.repositories.subscriptions import SubscriptionRecord
from microdrama.schemas.enums import ReportPeriod, SubscriptionPlan, SubscriptionStatus, TERMINAL_STATUSES
from microdrama.services.subscription_service import SubscriptionLifecycleManager
from microdrama.utils.time import ensure_utc

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


@dataclass(frozen=True)
class RevenueBucket:
    label: str
    start: datetime
    amount: int
    count: int


@dataclass(frozen=True)
class RevenueReport:
    period: ReportPeriod
    bucketed: List[RevenueBucket]
    total_revenue: int
    active_subscribers: int
    generated_at: datetime


@dataclass(frozen=True)
class SubscriptionStats:
    weekly: int
    monthly: int
    inactive: int
    estimated_monthly_revenue: int
    currency: str = "INR"
    by_status: Dict[str, int] = field(default_factory=dict)


# ─────────────────────────────────────────────────────────────
# 🗓️ Bucketing
# ─────────────────────────────────────────────────────────────
def bucket_start(moment: datetime, period: ReportPeriod) -> datetime:
    """UTC midnight at the start of the bucket containing `moment`."""
    day = ensure_utc(moment).replace(hour=0, minute=0, second=0, microsecond=0)
    if period == ReportPeriod.MONTH:
        return day.replace(day=1)
    return day - timedelta(days=day.weekday())


def bucket_label(start: datetime, period: ReportPeriod) -> str:
    month = MONTH_NAMES[start.month - 1]
    if period == ReportPeriod.MONTH:
        return f"{month} {start.year}"
    return f"{month} {start.year} - Week {math.ceil(start.day / 7)}"


def bucket_rows(rows: Iterable[SubscriptionRecord], period: ReportPeriod) -> List[RevenueBucket]:
    amounts: Dict[datetime, int] = defaultdict(int)
    counts: Dict[datetime, int] = defaultdict(int)
    for row in rows:
        start = bucket_start(row.start_date, period)
        amounts[start] += row.amount
        counts[start] += 1
    return [
        RevenueBucket(label=bucket_label(start, period), start=start, amount=amounts[start], count=counts[start])
        for start in sorted(amounts)
    ]


def _current_rows(rows: Iterable[SubscriptionRecord]) -> List[SubscriptionRecord]:
    latest: Dict[str, SubscriptionRecord] = {}
    for row in rows:
        seen = latest.get(row.user_id)
        if seen is None or row.sort_key > seen.sort_key:
            latest[row.user_id] = row
    return list(latest.values())


class RevenueAggregator:
    def __init__(self, manager: SubscriptionLifecycleManager) -> None:
        self.manager = manager

    async def _rows_as_of(self, now: datetime) -> List[SubscriptionRecord]:
        """Every row with its status as of `now`.

        Current rows go through `reconcile`, which persists a lapse only when
        `now` is not ahead of the clock. Superseded rows are projected in
        memory so a lapsed one never reads as `active`.
        """
        rows = await self.manager.repo.list_all()
        current_ids = {row.id for row in _current_rows(rows)}
        out = []
        for row in rows:
            if row.id in current_ids:
                out.append(await self.manager.reconcile(row, now=now))
            else:
                out.append(self.manager.project(row, now))
        return out

    async def revenue_report(self, period: ReportPeriod | str, now: Optional[datetime] = None) -> RevenueReport:
        period = ReportPeriod(period)
        now = ensure_utc(now or self.manager.clock())
        rows = await self._rows_as_of(now)

        active_users = {
            row.user_id for row in _current_rows(rows) if row.status == SubscriptionStatus.ACTIVE
        }
        report = RevenueReport(
            period=period,
            bucketed=bucket_rows(rows, period),
            total_revenue=sum(row.amount for row in rows),
            active_subscribers=len(active_users),
            generated_at=now,
        )
        logger.debug(
            "Revenue report period=%s buckets=%d total=%d active=%d",
            period.value, len(report.bucketed), report.total_revenue, report.active_subscribers,
        )
        return report

    async def subscription_stats(self, now: Optional[datetime] = None) -> SubscriptionStats:
        now = ensure_utc(now or self.manager.clock())
        rows = await self._rows_as_of(now)

        active_by_plan: Dict[SubscriptionPlan, int] = defaultdict(int)
        for row in _current_rows(rows):
            if row.status == SubscriptionStatus.ACTIVE:
                active_by_plan[row.plan] += 1

        by_status: Dict[str, int] = {s.value: 0 for s in SubscriptionStatus}
        for row in rows:
            by_status[row.status.value] += 1

        catalog = self.manager.catalog
        weekly = active_by_plan[SubscriptionPlan.WEEKLY]
        monthly = active_by_plan[SubscriptionPlan.MONTHLY]
        estimated = weekly * catalog.price(SubscriptionPlan.WEEKLY) * 4 + monthly * catalog.price(SubscriptionPlan.MONTHLY)

        return SubscriptionStats(
            weekly=weekly,
            monthly=monthly,
            inactive=sum(by_status[s.value] for s in TERMINAL_STATUSES),
            estimated_monthly_revenue=estimated,
            currency=catalog.currency,
            by_status=by_status,
        )


__all__ = [
    "MONTH_NAMES",
    "RevenueBucket",
    "RevenueReport",
    "SubscriptionStats",
    "RevenueAggregator",
    "bucket_start",
    "bucket_label",
    "bucket_rows",
]
