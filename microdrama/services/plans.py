from __future__ import annotations

"""Plan catalog: the immutable plan → (price, term) table.

The catalog is a value, not a module global. The lifecycle manager receives
one at construction; production builds it from settings, tests build their
own to exercise alternate price tables.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Tuple

from microdrama.core.exceptions import InvalidPlanException
from microdrama.schemas.enums import SubscriptionPlan
from microdrama.utils.time import add_months

DEFAULT_WEEKLY_PRICE = 99
DEFAULT_MONTHLY_PRICE = 199


@dataclass(frozen=True)
class PlanTerm:
    plan: SubscriptionPlan
    price: int
    days: int = 0
    months: int = 0

    def renews_at(self, start: datetime) -> datetime:
        end = start
        if self.months:
            end = add_months(end, self.months)
        if self.days:
            end = end + timedelta(days=self.days)
        return end


@dataclass(frozen=True)
class PlanCatalog:
    terms: Tuple[PlanTerm, ...]
    currency: str = "INR"

    def __post_init__(self) -> None:
        for term in self.terms:
            if term.price < 0:
                raise ValueError(f"Negative price for plan {term.plan.value}")
            if term.days <= 0 and term.months <= 0:
                raise ValueError(f"Plan {term.plan.value} must have a positive term")

    @classmethod
    def default(cls, *, weekly: int = DEFAULT_WEEKLY_PRICE, monthly: int = DEFAULT_MONTHLY_PRICE, currency: str = "INR") -> "PlanCatalog":
        return cls(
            terms=(
                PlanTerm(SubscriptionPlan.WEEKLY, price=weekly, days=7),
                PlanTerm(SubscriptionPlan.MONTHLY, price=monthly, months=1),
            ),
            currency=currency,
        )

    @classmethod
    def from_settings(cls, settings: Any) -> "PlanCatalog":
        return cls.default(
            weekly=settings.PLAN_PRICE_WEEKLY,
            monthly=settings.PLAN_PRICE_MONTHLY,
            currency=settings.CURRENCY,
        )

    @property
    def plans(self) -> Tuple[SubscriptionPlan, ...]:
        return tuple(t.plan for t in self.terms)

    def find(self, plan: Any) -> Optional[PlanTerm]:
        value = plan.value if isinstance(plan, SubscriptionPlan) else plan
        for term in self.terms:
            if term.plan.value == value:
                return term
        return None

    def term_for(self, plan: Any) -> PlanTerm:
        """Return the term for `plan` or raise `InvalidPlanException`."""
        term = self.find(plan)
        if term is None:
            raise InvalidPlanException(plan=plan, allowed=[p.value for p in self.plans])
        return term

    def price(self, plan: Any) -> int:
        return self.term_for(plan).price


__all__ = ["PlanTerm", "PlanCatalog", "DEFAULT_WEEKLY_PRICE", "DEFAULT_MONTHLY_PRICE"]
