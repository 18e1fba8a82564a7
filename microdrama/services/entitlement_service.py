# microdrama/services/entitlement_service.py
from __future__ import annotations

"""
MicroDrama — Entitlement Resolver
=================================

Answers "may this viewer watch this episode?" for every content request.

Rules (first match wins)
------------------------
1. episode not `published`                → deny  `unpublished`
2. `order <= free_preview_limit`          → allow `guest-preview`
3. no identity (guest)                    → deny  `no-subscription`
4. admin                                  → allow `admin-override`
5. entitled subscriber                    → allow `subscriber`
   current row `expired`                  → deny  `expired`
   current row `canceled` / `trial`       → deny  `free-tier-blocked`
   never subscribed                       → deny  `no-subscription`

Entitlement is read through the lifecycle manager, so a decision can flip a
lapsed row to `expired` as a side effect.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Tuple

from microdrama.schemas.auth import Identity
from microdrama.schemas.enums import AccessReason, EpisodeStatus, SubscriptionStatus
from microdrama.services.subscription_service import SubscriptionLifecycleManager

logger = logging.getLogger(__name__)

DEFAULT_FREE_PREVIEW_LIMIT = 2


class EpisodeLike(Protocol):
    order: int
    status: EpisodeStatus


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: AccessReason

    @classmethod
    def allow(cls, reason: AccessReason) -> "Decision":
        return cls(True, reason)

    @classmethod
    def deny(cls, reason: AccessReason) -> "Decision":
        return cls(False, reason)


@dataclass(frozen=True)
class _ViewerState:
    """What rules 3-5 need about a viewer, resolved once per call."""

    identity: Optional[Identity]
    entitled: bool = False
    current_status: Optional[SubscriptionStatus] = None


class EntitlementResolver:
    def __init__(
        self,
        manager: SubscriptionLifecycleManager,
        free_preview_limit: int = DEFAULT_FREE_PREVIEW_LIMIT,
    ) -> None:
        self.manager = manager
        self.free_preview_limit = free_preview_limit

    async def _viewer_state(self, identity: Optional[Identity]) -> _ViewerState:
        if identity is None or identity.is_admin:
            return _ViewerState(identity=identity)
        entitled, current_status = await self.manager.entitlement_status(identity.user_id)
        return _ViewerState(identity=identity, entitled=entitled, current_status=current_status)

    def _decide(self, viewer: _ViewerState, episode: EpisodeLike) -> Decision:
        if episode.status != EpisodeStatus.PUBLISHED:
            return Decision.deny(AccessReason.UNPUBLISHED)
        if episode.order <= self.free_preview_limit:
            return Decision.allow(AccessReason.GUEST_PREVIEW)
        if viewer.identity is None:
            return Decision.deny(AccessReason.NO_SUBSCRIPTION)
        if viewer.identity.is_admin:
            return Decision.allow(AccessReason.ADMIN_OVERRIDE)
        if viewer.entitled:
            return Decision.allow(AccessReason.SUBSCRIBER)
        if viewer.current_status == SubscriptionStatus.EXPIRED:
            return Decision.deny(AccessReason.EXPIRED)
        if viewer.current_status is not None:
            return Decision.deny(AccessReason.FREE_TIER_BLOCKED)
        return Decision.deny(AccessReason.NO_SUBSCRIPTION)

    def _needs_viewer(self, episode: EpisodeLike) -> bool:
        return episode.status == EpisodeStatus.PUBLISHED and episode.order > self.free_preview_limit

    async def can_watch(self, identity: Optional[Identity], episode: EpisodeLike) -> Decision:
        # Rules 1-2 never touch the subscription store.
        if self._needs_viewer(episode):
            viewer = await self._viewer_state(identity)
        else:
            viewer = _ViewerState(identity=identity)
        decision = self._decide(viewer, episode)
        if not decision.allowed:
            logger.debug(
                "Access denied user=%s order=%s reason=%s",
                identity.user_id if identity else "guest", episode.order, decision.reason.value,
            )
        return decision

    async def annotate_episodes(
        self,
        identity: Optional[Identity],
        episodes: Iterable[EpisodeLike],
    ) -> List[Tuple[EpisodeLike, Decision]]:
        """Decide every episode against a single entitlement lookup."""
        items = list(episodes)
        if any(self._needs_viewer(e) for e in items):
            viewer = await self._viewer_state(identity)
        else:
            viewer = _ViewerState(identity=identity)
        return [(e, self._decide(viewer, e)) for e in items]


__all__ = ["Decision", "EntitlementResolver", "DEFAULT_FREE_PREVIEW_LIMIT"]
