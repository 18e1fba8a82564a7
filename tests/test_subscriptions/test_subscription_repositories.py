# tests/test_subscriptions/test_subscription_repositories.py

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from microdrama.core.exceptions import StorageUnavailableException
from microdrama.repositories import import_string, resolve_impl_path
from microdrama.repositories.subscriptions import MemorySubscriptionRepository
from microdrama.repositories.subscriptions_sql import SqlSubscriptionRepository
from microdrama.schemas.enums import SubscriptionPlan, SubscriptionStatus

pytestmark = pytest.mark.anyio


async def _add(repo, user_id, start, *, plan=SubscriptionPlan.WEEKLY, status=SubscriptionStatus.ACTIVE):
    return await repo.add(
        user_id=user_id,
        plan=plan,
        status=status,
        start_date=start,
        renews_at=start + timedelta(days=7),
        amount=99,
        auto_renew=status == SubscriptionStatus.ACTIVE,
    )


# ─────────────────────────────────────────────────────────────
# Memory store
# ─────────────────────────────────────────────────────────────

async def test_ids_are_monotonic(clock):
    repo = MemorySubscriptionRepository()
    a = await _add(repo, "u1", clock.now)
    b = await _add(repo, "u2", clock.now)
    assert b.id > a.id


async def test_latest_for_user_prefers_latest_start_then_highest_id(clock):
    repo = MemorySubscriptionRepository()
    later_start = await _add(repo, "u1", clock.now + timedelta(days=1))
    await _add(repo, "u1", clock.now)  # newer id, older start
    assert (await repo.latest_for_user("u1")).id == later_start.id
    assert await repo.latest_for_user("u2") is None


async def test_compare_and_set_only_applies_on_expected_status(clock):
    repo = MemorySubscriptionRepository()
    row = await _add(repo, "u1", clock.now)

    assert await repo.compare_and_set_status(row.id, expected=SubscriptionStatus.TRIAL, new=SubscriptionStatus.CANCELED) is None
    updated = await repo.compare_and_set_status(row.id, expected=SubscriptionStatus.ACTIVE, new=SubscriptionStatus.CANCELED)
    assert updated.status == SubscriptionStatus.CANCELED
    assert updated.amount == row.amount and updated.start_date == row.start_date
    assert await repo.compare_and_set_status(row.id, expected=SubscriptionStatus.ACTIVE, new=SubscriptionStatus.EXPIRED) is None
    assert await repo.compare_and_set_status(999, expected=SubscriptionStatus.ACTIVE, new=SubscriptionStatus.EXPIRED) is None


async def test_list_status_filter_as_of_treats_lapsed_active_as_expired(clock):
    repo = MemorySubscriptionRepository()
    lapsed = await _add(repo, "u1", clock.now - timedelta(days=10))
    live = await _add(repo, "u2", clock.now)

    active, total = await repo.list(page=1, page_size=10, status=SubscriptionStatus.ACTIVE, as_of=clock.now)
    assert total == 1 and active[0].id == live.id

    expired, total = await repo.list(page=1, page_size=10, status=SubscriptionStatus.EXPIRED, as_of=clock.now)
    assert total == 1 and expired[0].id == lapsed.id
    # filtering never rewrites the stored row
    assert (await repo.get(lapsed.id)).status == SubscriptionStatus.ACTIVE

    _, total = await repo.list(page=1, page_size=10, status=SubscriptionStatus.ACTIVE)
    assert total == 2


async def test_list_filters_paginates_newest_first(clock):
    repo = MemorySubscriptionRepository()
    for i in range(5):
        await _add(repo, f"u{i}", clock.now + timedelta(minutes=i))
    await _add(repo, "u9", clock.now, plan=SubscriptionPlan.MONTHLY, status=SubscriptionStatus.CANCELED)

    page1, total = await repo.list(page=1, page_size=2)
    assert total == 6
    assert [r.user_id for r in page1] == ["u4", "u3"]

    page3, _ = await repo.list(page=3, page_size=2)
    assert len(page3) == 2

    canceled, total = await repo.list(page=1, page_size=10, status=SubscriptionStatus.CANCELED)
    assert total == 1 and canceled[0].user_id == "u9"

    by_user, total = await repo.list(page=1, page_size=10, user_id="u2")
    assert total == 1 and by_user[0].user_id == "u2"


# ─────────────────────────────────────────────────────────────
# SQL store error mapping (no database needed)
# ─────────────────────────────────────────────────────────────

class _FailingSession:
    def __init__(self, exc):
        self.exc = exc

    async def __aenter__(self):
        raise self.exc

    async def __aexit__(self, *exc_info):
        return False


def _factory(exc):
    return lambda: _FailingSession(exc)


async def test_sql_connection_failure_maps_to_storage_unavailable():
    repo = SqlSubscriptionRepository(session_factory=_factory(OperationalError("SELECT 1", {}, Exception("down"))))
    with pytest.raises(StorageUnavailableException) as ei:
        await repo.latest_for_user("u1")
    assert ei.value.status_code == 503
    assert ei.value.details == {"operation": "latest_for_user"}


async def test_sql_socket_error_maps_to_storage_unavailable():
    repo = SqlSubscriptionRepository(session_factory=_factory(ConnectionRefusedError("refused")))
    with pytest.raises(StorageUnavailableException):
        await repo.ping()


async def test_sql_integrity_error_is_not_masked():
    repo = SqlSubscriptionRepository(session_factory=_factory(IntegrityError("INSERT", {}, Exception("dup"))))
    with pytest.raises(IntegrityError):
        await repo.list_all()


# ─────────────────────────────────────────────────────────────
# Dotted-path overrides
# ─────────────────────────────────────────────────────────────

def test_import_string_resolves_module_class():
    cls = import_string("microdrama.repositories.subscriptions:MemorySubscriptionRepository")
    assert cls is MemorySubscriptionRepository


def test_import_string_rejects_malformed_path():
    with pytest.raises(ValueError):
        import_string("microdrama.repositories.subscriptions.MemorySubscriptionRepository")


def test_env_override_wins_over_settings(monkeypatch):
    monkeypatch.setenv("SUBSCRIPTION_REPOSITORY_IMPL", "pkg.mod:FromEnv")
    assert resolve_impl_path("SUBSCRIPTION_REPOSITORY_IMPL", "pkg.mod:FromSettings") == "pkg.mod:FromEnv"
    monkeypatch.delenv("SUBSCRIPTION_REPOSITORY_IMPL")
    assert resolve_impl_path("SUBSCRIPTION_REPOSITORY_IMPL", "pkg.mod:FromSettings") == "pkg.mod:FromSettings"
