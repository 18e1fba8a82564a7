# tests/test_subscriptions/test_lifecycle_manager.py

from datetime import timedelta

import pytest

from microdrama.core.exceptions import InvalidPlanException, NoActiveSubscriptionException
from microdrama.repositories.subscriptions import MemorySubscriptionRepository
from microdrama.schemas.enums import SubscriptionPlan, SubscriptionStatus
from microdrama.services.plans import PlanCatalog
from microdrama.services.subscription_service import SubscriptionLifecycleManager

pytestmark = pytest.mark.anyio


# ─────────────────────────────────────────────────────────────
# subscribe
# ─────────────────────────────────────────────────────────────

async def test_subscribe_weekly_creates_active_row(manager, clock):
    sub = await manager.subscribe("u1", "weekly")

    assert sub.status == SubscriptionStatus.ACTIVE
    assert sub.plan == SubscriptionPlan.WEEKLY
    assert sub.amount == 99
    assert sub.auto_renew is True
    assert sub.start_date == clock.now
    assert sub.renews_at - sub.start_date == timedelta(days=7)


async def test_subscribe_monthly_amount_independent_of_time(manager, clock):
    first = await manager.subscribe("u1", "monthly")
    clock.advance(days=200)
    second = await manager.subscribe("u2", SubscriptionPlan.MONTHLY)
    assert first.amount == second.amount == 199


async def test_subscribe_unknown_plan_raises_and_writes_nothing(manager, sub_repo):
    with pytest.raises(InvalidPlanException):
        await manager.subscribe("u1", "yearly")
    assert await sub_repo.list_all() == []


async def test_second_subscribe_supersedes_but_keeps_history(manager, sub_repo, clock):
    await manager.subscribe("u1", "weekly")
    clock.advance(days=1)
    later = await manager.subscribe("u1", "monthly")

    rows = await sub_repo.list_all()
    assert len(rows) == 2
    current = await manager.current_subscription("u1")
    assert current.id == later.id
    assert current.plan == SubscriptionPlan.MONTHLY


async def test_same_start_date_tie_breaks_on_newest_row(manager):
    await manager.subscribe("u1", "weekly")
    newer = await manager.subscribe("u1", "monthly")  # clock not advanced
    assert (await manager.current_subscription("u1")).id == newer.id


async def test_injected_catalog_prices_are_used(sub_repo, clock):
    manager = SubscriptionLifecycleManager(sub_repo, PlanCatalog.default(weekly=5, monthly=15), clock)
    assert (await manager.subscribe("u1", "weekly")).amount == 5
    assert (await manager.subscribe("u2", "monthly")).amount == 15


# ─────────────────────────────────────────────────────────────
# current subscription & lazy expiry
# ─────────────────────────────────────────────────────────────

async def test_no_subscription_returns_none(manager):
    assert await manager.current_subscription("nobody") is None
    assert await manager.is_entitled("nobody") is False
    assert await manager.entitlement_status("nobody") == (False, None)


async def test_weekly_read_after_eight_days_is_expired(manager, clock):
    await manager.subscribe("u1", "weekly")
    clock.advance(days=8)

    current = await manager.current_subscription("u1")
    assert current.status == SubscriptionStatus.EXPIRED
    assert await manager.is_entitled("u1") is False
    assert await manager.entitlement_status("u1") == (False, SubscriptionStatus.EXPIRED)


async def test_still_active_exactly_at_renewal_instant(manager, clock):
    sub = await manager.subscribe("u1", "weekly")
    clock.set(sub.renews_at)
    assert await manager.is_entitled("u1") is True


async def test_expiry_is_persisted(manager, sub_repo, clock):
    sub = await manager.subscribe("u1", "weekly")
    clock.advance(days=8)
    await manager.current_subscription("u1")
    assert (await sub_repo.get(sub.id)).status == SubscriptionStatus.EXPIRED


async def test_current_subscription_is_idempotent_without_time_passing(manager, clock):
    await manager.subscribe("u1", "monthly")
    a = await manager.current_subscription("u1")
    b = await manager.current_subscription("u1")
    assert a == b

    clock.advance(days=40)
    c = await manager.current_subscription("u1")
    d = await manager.current_subscription("u1")
    assert c.status == d.status == SubscriptionStatus.EXPIRED
    assert c.updated_at == d.updated_at


async def test_terminal_rows_never_return_to_active(manager, sub_repo, clock):
    sub = await manager.subscribe("u1", "weekly")
    await manager.cancel("u1")
    clock.advance(days=30)
    await manager.current_subscription("u1")
    assert (await sub_repo.get(sub.id)).status == SubscriptionStatus.CANCELED


# ─────────────────────────────────────────────────────────────
# cancel
# ─────────────────────────────────────────────────────────────

async def test_cancel_revokes_immediately(manager):
    await manager.subscribe("u1", "monthly")
    canceled = await manager.cancel("u1")

    assert canceled.status == SubscriptionStatus.CANCELED
    assert await manager.is_entitled("u1") is False


async def test_cancel_without_subscription_raises_404(manager):
    with pytest.raises(NoActiveSubscriptionException) as ei:
        await manager.cancel("u1")
    assert ei.value.status_code == 404


async def test_cancel_twice_raises(manager):
    await manager.subscribe("u1", "weekly")
    await manager.cancel("u1")
    with pytest.raises(NoActiveSubscriptionException) as ei:
        await manager.cancel("u1")
    assert ei.value.details["current_status"] == "canceled"


async def test_cancel_after_lapse_raises_and_leaves_expired(manager, sub_repo, clock):
    sub = await manager.subscribe("u1", "weekly")
    clock.advance(days=8)
    with pytest.raises(NoActiveSubscriptionException):
        await manager.cancel("u1")
    assert (await sub_repo.get(sub.id)).status == SubscriptionStatus.EXPIRED


async def test_cancel_only_touches_current_row(manager, sub_repo, clock):
    older = await manager.subscribe("u1", "weekly")
    clock.advance(hours=1)
    newer = await manager.subscribe("u1", "monthly")
    await manager.cancel("u1")

    assert (await sub_repo.get(older.id)).status == SubscriptionStatus.ACTIVE
    assert (await sub_repo.get(newer.id)).status == SubscriptionStatus.CANCELED


async def test_trial_rows_are_not_entitled_nor_cancellable(manager, sub_repo, clock):
    await sub_repo.add(
        user_id="u1",
        plan=SubscriptionPlan.MONTHLY,
        status=SubscriptionStatus.TRIAL,
        start_date=clock.now,
        renews_at=clock.now + timedelta(days=30),
        amount=0,
        auto_renew=False,
    )
    assert await manager.entitlement_status("u1") == (False, SubscriptionStatus.TRIAL)
    with pytest.raises(NoActiveSubscriptionException):
        await manager.cancel("u1")


# ─────────────────────────────────────────────────────────────
# races
# ─────────────────────────────────────────────────────────────

class _CancelDuringReadRepo(MemorySubscriptionRepository):
    """Cancels the row right after it is read, before the reader's expiry write."""

    def __init__(self):
        super().__init__()
        self.armed = False

    async def latest_for_user(self, user_id):
        row = await super().latest_for_user(user_id)
        if self.armed and row is not None:
            self.armed = False
            await self.compare_and_set_status(
                row.id, expected=SubscriptionStatus.ACTIVE, new=SubscriptionStatus.CANCELED
            )
        return row


async def test_lazy_expiry_never_overwrites_concurrent_cancel(catalog, clock):
    repo = _CancelDuringReadRepo()
    manager = SubscriptionLifecycleManager(repo, catalog, clock)
    sub = await manager.subscribe("u1", "weekly")
    clock.advance(days=8)

    repo.armed = True
    current = await manager.current_subscription("u1")

    assert current.status == SubscriptionStatus.CANCELED
    assert (await repo.get(sub.id)).status == SubscriptionStatus.CANCELED


async def test_cancel_losing_race_raises_no_active(catalog, clock):
    repo = _CancelDuringReadRepo()
    manager = SubscriptionLifecycleManager(repo, catalog, clock)
    await manager.subscribe("u1", "weekly")

    repo.armed = True
    with pytest.raises(NoActiveSubscriptionException) as ei:
        await manager.cancel("u1")
    assert ei.value.details["current_status"] == "canceled"


# ─────────────────────────────────────────────────────────────
# admin listing
# ─────────────────────────────────────────────────────────────

async def test_list_subscriptions_filters_and_clamps_paging(manager, clock):
    await manager.subscribe("u1", "weekly")
    clock.advance(minutes=1)
    await manager.subscribe("u2", "monthly")
    clock.advance(minutes=1)
    await manager.subscribe("u3", "weekly")

    items, total = await manager.list_subscriptions(plan=SubscriptionPlan.WEEKLY)
    assert total == 2
    assert [r.user_id for r in items] == ["u3", "u1"]

    items, total = await manager.list_subscriptions(page=0, page_size=1)
    assert total == 3
    assert [r.user_id for r in items] == ["u3"]


async def test_list_subscriptions_reports_lapse_without_writing(manager, sub_repo, clock):
    old = await manager.subscribe("u1", "weekly")
    clock.advance(days=1)
    await manager.subscribe("u1", "monthly")  # supersedes the weekly row
    clock.advance(days=10)

    active, total = await manager.list_subscriptions(status=SubscriptionStatus.ACTIVE)
    assert total == 1
    assert [r.plan for r in active] == [SubscriptionPlan.MONTHLY]

    expired, total = await manager.list_subscriptions(status=SubscriptionStatus.EXPIRED)
    assert total == 1
    assert expired[0].id == old.id
    assert expired[0].status == SubscriptionStatus.EXPIRED
    assert (await sub_repo.get(old.id)).status == SubscriptionStatus.ACTIVE


# ─────────────────────────────────────────────────────────────
# reads for a future moment
# ─────────────────────────────────────────────────────────────

async def test_reconcile_ahead_of_clock_is_projected_only(manager, sub_repo, clock):
    sub = await manager.subscribe("u1", "weekly")

    seen = await manager.reconcile(sub, now=clock.now + timedelta(days=30))
    assert seen.status == SubscriptionStatus.EXPIRED
    assert (await sub_repo.get(sub.id)).status == SubscriptionStatus.ACTIVE
    assert await manager.is_entitled("u1") is True


async def test_project_leaves_live_and_terminal_rows_alone(manager, clock):
    sub = await manager.subscribe("u1", "weekly")
    assert manager.project(sub) is sub
    canceled = await manager.cancel("u1")
    assert manager.project(canceled, clock.now + timedelta(days=30)).status == SubscriptionStatus.CANCELED
