from __future__ import annotations

"""
Service providers
-----------------
FastAPI dependencies that wire the engine together per request. Services are
cheap wrappers around the process-wide repositories, so they are rebuilt on
each call; tests swap them with `app.dependency_overrides`.
"""

from fastapi import Depends

from microdrama.core.config import settings
from microdrama.repositories.episodes import EpisodeRepositoryProtocol, get_episode_repository
from microdrama.repositories.subscriptions import SubscriptionRepositoryProtocol, get_subscription_repository
from microdrama.services.entitlement_service import EntitlementResolver
from microdrama.services.plans import PlanCatalog
from microdrama.services.revenue_service import RevenueAggregator
from microdrama.services.subscription_service import SubscriptionLifecycleManager


def get_plan_catalog() -> PlanCatalog:
    return PlanCatalog.from_settings(settings)


def get_subscription_repo() -> SubscriptionRepositoryProtocol:
    return get_subscription_repository()


def get_episode_repo() -> EpisodeRepositoryProtocol:
    return get_episode_repository()


def get_lifecycle_manager(
    repo: SubscriptionRepositoryProtocol = Depends(get_subscription_repo),
    catalog: PlanCatalog = Depends(get_plan_catalog),
) -> SubscriptionLifecycleManager:
    return SubscriptionLifecycleManager(repo, catalog)


def get_entitlement_resolver(
    manager: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
) -> EntitlementResolver:
    return EntitlementResolver(manager, free_preview_limit=settings.FREE_PREVIEW_LIMIT)


def get_revenue_aggregator(
    manager: SubscriptionLifecycleManager = Depends(get_lifecycle_manager),
) -> RevenueAggregator:
    return RevenueAggregator(manager)


__all__ = [
    "get_plan_catalog",
    "get_subscription_repo",
    "get_episode_repo",
    "get_lifecycle_manager",
    "get_entitlement_resolver",
    "get_revenue_aggregator",
]
