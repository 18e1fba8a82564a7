from __future__ import annotations

"""Subscription store.

Append-only log of purchased subscription terms. Rows are created by
`add`, and afterwards only their `status` may change, exclusively through
`compare_and_set_status` so a lazy-expiry write can never clobber a
concurrent cancel (or vice versa).

The in-memory implementation is the process default; the SQL implementation
lives in `microdrama.repositories.subscriptions_sql`.
"""

import itertools
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from microdrama.core.config import settings
from microdrama.repositories import import_string, resolve_impl_path
from microdrama.schemas.enums import SubscriptionPlan, SubscriptionStatus
from microdrama.utils.time import ensure_utc


@dataclass(frozen=True)
class SubscriptionRecord:
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

    @property
    def sort_key(self) -> Tuple[datetime, int]:
        """Ordering used to pick the current row: latest start, then newest id."""
        return (self.start_date, self.id)


def status_as_of(row: SubscriptionRecord, as_of: Optional[datetime]) -> SubscriptionStatus:
    """Status lazy expiry would give `row` at `as_of` (stored status when `as_of` is None)."""
    if as_of is not None and row.status == SubscriptionStatus.ACTIVE and ensure_utc(as_of) > ensure_utc(row.renews_at):
        return SubscriptionStatus.EXPIRED
    return row.status


class SubscriptionRepositoryProtocol:
    async def add(
        self,
        *,
        user_id: str,
        plan: SubscriptionPlan,
        status: SubscriptionStatus,
        start_date: datetime,
        renews_at: datetime,
        amount: int,
        auto_renew: bool,
    ) -> SubscriptionRecord:
        raise NotImplementedError

    async def get(self, subscription_id: int) -> Optional[SubscriptionRecord]:
        raise NotImplementedError

    async def latest_for_user(self, user_id: str) -> Optional[SubscriptionRecord]:
        raise NotImplementedError

    async def compare_and_set_status(
        self,
        subscription_id: int,
        *,
        expected: SubscriptionStatus,
        new: SubscriptionStatus,
    ) -> Optional[SubscriptionRecord]:
        """Set `status` to `new` only if it currently equals `expected`.

        Returns the updated row, or None when the row is missing or its status
        no longer matches.
        """
        raise NotImplementedError

    async def list_all(self) -> List[SubscriptionRecord]:
        raise NotImplementedError

    async def list(
        self,
        *,
        page: int,
        page_size: int,
        plan: Optional[SubscriptionPlan] = None,
        status: Optional[SubscriptionStatus] = None,
        user_id: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> Tuple[List[SubscriptionRecord], int]:
        """Newest first. With `as_of`, the `status` filter treats lapsed `active` rows as `expired`."""
        raise NotImplementedError

    async def ping(self) -> bool:
        raise NotImplementedError


class MemorySubscriptionRepository(SubscriptionRepositoryProtocol):
    """Thread-safe in-memory store; ids are a process-local monotonic counter."""

    def __init__(self) -> None:
        self._rows: Dict[int, SubscriptionRecord] = {}
        self._by_user: Dict[str, List[int]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def add(
        self,
        *,
        user_id: str,
        plan: SubscriptionPlan,
        status: SubscriptionStatus,
        start_date: datetime,
        renews_at: datetime,
        amount: int,
        auto_renew: bool,
    ) -> SubscriptionRecord:
        now = self._now()
        with self._lock:
            row = SubscriptionRecord(
                id=next(self._ids),
                user_id=user_id,
                plan=plan,
                status=status,
                start_date=start_date,
                renews_at=renews_at,
                amount=amount,
                auto_renew=auto_renew,
                created_at=now,
                updated_at=now,
            )
            self._rows[row.id] = row
            self._by_user.setdefault(user_id, []).append(row.id)
        return row

    async def get(self, subscription_id: int) -> Optional[SubscriptionRecord]:
        with self._lock:
            return self._rows.get(subscription_id)

    async def latest_for_user(self, user_id: str) -> Optional[SubscriptionRecord]:
        with self._lock:
            rows = [self._rows[i] for i in self._by_user.get(user_id, [])]
        if not rows:
            return None
        return max(rows, key=lambda r: r.sort_key)

    async def compare_and_set_status(
        self,
        subscription_id: int,
        *,
        expected: SubscriptionStatus,
        new: SubscriptionStatus,
    ) -> Optional[SubscriptionRecord]:
        with self._lock:
            row = self._rows.get(subscription_id)
            if row is None or row.status != expected:
                return None
            updated = replace(row, status=new, updated_at=self._now())
            self._rows[subscription_id] = updated
            return updated

    async def list_all(self) -> List[SubscriptionRecord]:
        with self._lock:
            return sorted(self._rows.values(), key=lambda r: r.id)

    async def list(
        self,
        *,
        page: int,
        page_size: int,
        plan: Optional[SubscriptionPlan] = None,
        status: Optional[SubscriptionStatus] = None,
        user_id: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> Tuple[List[SubscriptionRecord], int]:
        with self._lock:
            items = [
                r
                for r in self._rows.values()
                if (plan is None or r.plan == plan)
                and (status is None or status_as_of(r, as_of) == status)
                and (user_id is None or r.user_id == user_id)
            ]
        items.sort(key=lambda r: r.sort_key, reverse=True)
        total = len(items)
        start = (page - 1) * page_size
        return items[start : start + page_size], total

    async def ping(self) -> bool:
        return True


@lru_cache(maxsize=1)
def get_subscription_repository() -> SubscriptionRepositoryProtocol:
    """Process-wide store; the in-memory default must be shared across requests."""
    impl_path = resolve_impl_path("SUBSCRIPTION_REPOSITORY_IMPL", settings.SUBSCRIPTION_REPOSITORY_IMPL)
    if impl_path:
        cls = import_string(impl_path, env_name="SUBSCRIPTION_REPOSITORY_IMPL")
        return cls()  # type: ignore
    return MemorySubscriptionRepository()


__all__ = [
    "SubscriptionRecord",
    "SubscriptionRepositoryProtocol",
    "status_as_of",
    "MemorySubscriptionRepository",
    "get_subscription_repository",
]
