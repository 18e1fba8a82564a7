# tests/test_subscriptions/test_plan_catalog.py

from datetime import datetime, timedelta, timezone

import pytest

from microdrama.core.exceptions import InvalidPlanException
from microdrama.schemas.enums import SubscriptionPlan
from microdrama.services.plans import PlanCatalog, PlanTerm
from microdrama.utils.time import add_months


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_default_prices_are_99_weekly_and_199_monthly():
    catalog = PlanCatalog.default()
    assert catalog.price("weekly") == 99
    assert catalog.price(SubscriptionPlan.MONTHLY) == 199
    assert catalog.currency == "INR"


def test_unknown_plan_raises_invalid_plan_with_400():
    catalog = PlanCatalog.default()
    with pytest.raises(InvalidPlanException) as ei:
        catalog.term_for("yearly")
    assert ei.value.status_code == 400
    assert ei.value.details["plan"] == "yearly"
    assert set(ei.value.details["allowed"]) == {"weekly", "monthly"}


@pytest.mark.parametrize("plan", ["", "WEEKLY ", None, 7])
def test_non_catalog_values_are_rejected(plan):
    with pytest.raises(InvalidPlanException):
        PlanCatalog.default().term_for(plan)


def test_weekly_term_is_seven_days():
    start = _utc(2025, 3, 12, 10, 30)
    term = PlanCatalog.default().term_for("weekly")
    assert term.renews_at(start) - start == timedelta(days=7)


def test_monthly_term_is_one_calendar_month():
    start = _utc(2025, 3, 12, 10, 30)
    assert PlanCatalog.default().term_for("monthly").renews_at(start) == _utc(2025, 4, 12, 10, 30)


@pytest.mark.parametrize(
    "start, expected",
    [
        (_utc(2025, 1, 31), _utc(2025, 2, 28)),
        (_utc(2024, 1, 31), _utc(2024, 2, 29)),
        (_utc(2025, 3, 31), _utc(2025, 4, 30)),
        (_utc(2025, 12, 15), _utc(2026, 1, 15)),
    ],
)
def test_add_months_clamps_to_month_end(start, expected):
    assert add_months(start, 1) == expected


def test_alternate_price_table_is_honoured():
    catalog = PlanCatalog.default(weekly=49, monthly=149, currency="usd")
    assert catalog.price("weekly") == 49
    assert catalog.price("monthly") == 149


def test_from_settings_reads_prices():
    class _S:
        PLAN_PRICE_WEEKLY = 10
        PLAN_PRICE_MONTHLY = 30
        CURRENCY = "EUR"

    catalog = PlanCatalog.from_settings(_S())
    assert (catalog.price("weekly"), catalog.price("monthly"), catalog.currency) == (10, 30, "EUR")


def test_catalog_is_immutable():
    catalog = PlanCatalog.default()
    with pytest.raises(Exception):
        catalog.currency = "USD"  # type: ignore[misc]


def test_invalid_terms_are_rejected_at_construction():
    with pytest.raises(ValueError):
        PlanCatalog(terms=(PlanTerm(SubscriptionPlan.WEEKLY, price=-1, days=7),))
    with pytest.raises(ValueError):
        PlanCatalog(terms=(PlanTerm(SubscriptionPlan.WEEKLY, price=99),))
