# microdrama/services/subscription_service.py
from __future__ import annotations

"""
MicroDrama — Subscription Lifecycle Manager
===========================================

Purpose
-------
The state machine over a user's subscription rows, and the only writer of
the subscription store.

Rules
-----
- `subscribe` always appends a new `active` row; older rows are kept and the
  new one becomes "current" (latest `start_date`, then highest `id`).
- `active → canceled` and `active → expired` are the only transitions; both
  are terminal. `trial` rows are never entitled and cannot be canceled.
- Expiry is lazy: reading the current row after `renews_at` flips it to
  `expired` with a compare-and-set from `active`. If a concurrent cancel won,
  the stored row is re-read and returned untouched.
- Reads for a `now` ahead of the clock are projected in memory and never
  written.

Usage
-----
    manager = SubscriptionLifecycleManager(repo, PlanCatalog.from_settings(settings))
    sub = await manager.subscribe("user-1", "weekly")
    await manager.is_entitled("user-1")   # True until sub.renews_at
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, List, Optional, Tuple

from microdrama.core.exceptions import NoActiveSubscriptionException
from microdrama.repositories.subscriptions import (
    SubscriptionRecord,
    SubscriptionRepositoryProtocol,
    status_as_of,
)
from microdrama.schemas.enums import SubscriptionPlan, SubscriptionStatus
from microdrama.services.plans import PlanCatalog
from microdrama.utils.time import Clock, ensure_utc, utcnow

logger = logging.getLogger(__name__)


class SubscriptionLifecycleManager:
    def __init__(
        self,
        repo: SubscriptionRepositoryProtocol,
        catalog: PlanCatalog,
        clock: Clock = utcnow,
    ) -> None:
        self.repo = repo
        self.catalog = catalog
        self.clock = clock

    # ─────────────────────────────────────────────────────────────
    # ✍️ Writes
    # ─────────────────────────────────────────────────────────────
    async def subscribe(self, user_id: str, plan: Any) -> SubscriptionRecord:
        """Append an `active` row for `plan` starting now. Raises `InvalidPlanException`."""
        term = self.catalog.term_for(plan)
        start = ensure_utc(self.clock())
        row = await self.repo.add(
            user_id=user_id,
            plan=term.plan,
            status=SubscriptionStatus.ACTIVE,
            start_date=start,
            renews_at=term.renews_at(start),
            amount=term.price,
            auto_renew=True,
        )
        logger.info(
            "Subscription created id=%s user=%s plan=%s amount=%s renews_at=%s",
            row.id, user_id, term.plan.value, term.price, row.renews_at.isoformat(),
        )
        return row

    async def cancel(self, user_id: str) -> SubscriptionRecord:
        """Cancel the current subscription immediately.

        Raises `NoActiveSubscriptionException` when the current row (after lazy
        expiry) is missing or not `active`, including when it lost a race.
        """
        current = await self.current_subscription(user_id)
        if current is None or current.status != SubscriptionStatus.ACTIVE:
            raise NoActiveSubscriptionException(
                user_id=user_id,
                current_status=current.status.value if current else None,
            )

        updated = await self.repo.compare_and_set_status(
            current.id,
            expected=SubscriptionStatus.ACTIVE,
            new=SubscriptionStatus.CANCELED,
        )
        if updated is None:
            latest = await self.repo.get(current.id)
            raise NoActiveSubscriptionException(
                user_id=user_id,
                current_status=latest.status.value if latest else None,
            )

        logger.info("Subscription canceled id=%s user=%s plan=%s", updated.id, user_id, updated.plan.value)
        return updated

    # ─────────────────────────────────────────────────────────────
    # 🔎 Reads (may lazily expire)
    # ─────────────────────────────────────────────────────────────
    @staticmethod
    def is_lapsed(row: SubscriptionRecord, now: datetime) -> bool:
        """Still `active` in storage but past `renews_at` at `now`."""
        return status_as_of(row, now) != row.status

    def project(self, row: SubscriptionRecord, now: Optional[datetime] = None) -> SubscriptionRecord:
        """The row as lazy expiry would leave it at `now`, without writing anything."""
        if self.is_lapsed(row, now or self.clock()):
            return replace(row, status=SubscriptionStatus.EXPIRED)
        return row

    async def reconcile(self, row: SubscriptionRecord, now: Optional[datetime] = None) -> SubscriptionRecord:
        """Apply lazy expiry to a single row and return what the store now holds.

        A `now` ahead of the clock is only projected: `expired` is terminal and
        is never written for a moment that has not happened yet.
        """
        clock_now = ensure_utc(self.clock())
        now = ensure_utc(now or clock_now)
        if not self.is_lapsed(row, now):
            return row
        if now > clock_now:
            return self.project(row, now)

        updated = await self.repo.compare_and_set_status(
            row.id,
            expected=SubscriptionStatus.ACTIVE,
            new=SubscriptionStatus.EXPIRED,
        )
        if updated is not None:
            logger.info("Subscription expired id=%s user=%s plan=%s", row.id, row.user_id, row.plan.value)
            return updated

        # Someone else moved it first (cancel or another reader's expiry).
        latest = await self.repo.get(row.id)
        return latest if latest is not None else row

    async def current_subscription(self, user_id: str) -> Optional[SubscriptionRecord]:
        row = await self.repo.latest_for_user(user_id)
        if row is None:
            return None
        return await self.reconcile(row)

    async def entitlement_status(self, user_id: str) -> Tuple[bool, Optional[SubscriptionStatus]]:
        """(entitled, status of the current row or None) from a single read."""
        current = await self.current_subscription(user_id)
        if current is None:
            return False, None
        return current.status == SubscriptionStatus.ACTIVE, current.status

    async def is_entitled(self, user_id: str) -> bool:
        entitled, _ = await self.entitlement_status(user_id)
        return entitled

    # ─────────────────────────────────────────────────────────────
    # 🛡️ Admin listing (read-only; statuses as of the clock, nothing written)
    # ─────────────────────────────────────────────────────────────
    async def list_subscriptions(
        self,
        *,
        page: int = 1,
        page_size: int = 50,
        plan: Optional[SubscriptionPlan] = None,
        status: Optional[SubscriptionStatus] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[List[SubscriptionRecord], int]:
        page = max(1, int(page))
        page_size = max(1, min(int(page_size), 200))
        now = ensure_utc(self.clock())
        items, total = await self.repo.list(
            page=page, page_size=page_size, plan=plan, status=status, user_id=user_id, as_of=now,
        )
        return [self.project(row, now) for row in items], total


__all__ = ["SubscriptionLifecycleManager"]
