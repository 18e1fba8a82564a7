from __future__ import annotations

"""PostgreSQL-backed subscription store (SQLAlchemy async).

Enable with:

    SUBSCRIPTION_REPOSITORY_IMPL=microdrama.repositories.subscriptions_sql:SqlSubscriptionRepository

Every method runs in its own short transaction. Status changes are a single
conditional UPDATE (`WHERE id = :id AND status = :expected`), which gives the
per-row compare-and-set the lifecycle manager relies on without holding
locks across calls. Connection-level driver failures surface as
`StorageUnavailableException`; nothing is retried here.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from microdrama.db.models.subscription import Subscription
from microdrama.repositories import storage_guard
from microdrama.repositories.subscriptions import SubscriptionRecord, SubscriptionRepositoryProtocol
from microdrama.schemas.enums import SubscriptionPlan, SubscriptionStatus


def _to_record(row: Subscription) -> SubscriptionRecord:
    return SubscriptionRecord(
        id=row.id,
        user_id=row.user_id,
        plan=SubscriptionPlan(row.plan),
        status=SubscriptionStatus(row.status),
        start_date=row.start_date,
        renews_at=row.renews_at,
        amount=row.amount,
        auto_renew=row.auto_renew,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _status_filter(status: SubscriptionStatus, as_of: Optional[datetime]):
    """SQL twin of `status_as_of`: lapsed `active` rows match `expired`, not `active`."""
    if as_of is None or status not in (SubscriptionStatus.ACTIVE, SubscriptionStatus.EXPIRED):
        return Subscription.status == status
    lapsed = and_(Subscription.status == SubscriptionStatus.ACTIVE, Subscription.renews_at < as_of)
    if status == SubscriptionStatus.ACTIVE:
        return and_(Subscription.status == SubscriptionStatus.ACTIVE, Subscription.renews_at >= as_of)
    return or_(Subscription.status == SubscriptionStatus.EXPIRED, lapsed)


class SqlSubscriptionRepository(SubscriptionRepositoryProtocol):
    def __init__(self, session_factory: Optional[async_sessionmaker] = None) -> None:
        if session_factory is None:
            from microdrama.db.session import async_session_maker  # deferred: engine only when SQL is selected

            session_factory = async_session_maker
        self._session_factory = session_factory

    @asynccontextmanager
    async def _tx(self, operation: str) -> AsyncIterator[AsyncSession]:
        with storage_guard("Subscription", operation):
            async with self._session_factory() as session:
                async with session.begin():
                    yield session

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
        async with self._tx("add") as session:
            row = Subscription(
                user_id=user_id,
                plan=plan,
                status=status,
                start_date=start_date,
                renews_at=renews_at,
                amount=amount,
                auto_renew=auto_renew,
            )
            session.add(row)
            await session.flush()
            return _to_record(row)

    async def get(self, subscription_id: int) -> Optional[SubscriptionRecord]:
        async with self._tx("get") as session:
            row = await session.get(Subscription, subscription_id)
            return _to_record(row) if row else None

    async def latest_for_user(self, user_id: str) -> Optional[SubscriptionRecord]:
        stmt = (
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.start_date.desc(), Subscription.id.desc())
            .limit(1)
        )
        async with self._tx("latest_for_user") as session:
            row = (await session.execute(stmt)).scalars().first()
            return _to_record(row) if row else None

    async def compare_and_set_status(
        self,
        subscription_id: int,
        *,
        expected: SubscriptionStatus,
        new: SubscriptionStatus,
    ) -> Optional[SubscriptionRecord]:
        stmt = (
            update(Subscription)
            .where(Subscription.id == subscription_id, Subscription.status == expected)
            .values(status=new, updated_at=func.now())
            .returning(Subscription)
            .execution_options(synchronize_session=False)
        )
        async with self._tx("compare_and_set_status") as session:
            row = (await session.execute(stmt)).scalars().first()
            return _to_record(row) if row else None

    async def list_all(self) -> List[SubscriptionRecord]:
        async with self._tx("list_all") as session:
            rows = (await session.execute(select(Subscription).order_by(Subscription.id))).scalars().all()
            return [_to_record(r) for r in rows]

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
        filters = []
        if plan is not None:
            filters.append(Subscription.plan == plan)
        if status is not None:
            filters.append(_status_filter(status, as_of))
        if user_id is not None:
            filters.append(Subscription.user_id == user_id)

        stmt = (
            select(Subscription)
            .where(*filters)
            .order_by(Subscription.start_date.desc(), Subscription.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        count_stmt = select(func.count()).select_from(Subscription).where(*filters)
        async with self._tx("list") as session:
            total = (await session.execute(count_stmt)).scalar_one()
            rows = (await session.execute(stmt)).scalars().all()
            return [_to_record(r) for r in rows], int(total)

    async def ping(self) -> bool:
        async with self._tx("ping") as session:
            await session.execute(select(1))
            return True


__all__ = ["SqlSubscriptionRepository"]
