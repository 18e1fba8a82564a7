# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 🎬 MicroDrama · Content Access API                                       ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Endpoints (optional auth; guests allowed):                               ║
# ║  - GET /episodes/{episode_id}/access   → Entitlement decision            ║
# ║  - GET /episodes/{episode_id}          → Episode metadata (403 if denied)║
# ║  - GET /series/{series_id}/episodes    → Published episodes + lock flags ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Notes                                                                    ║
# ║  - A missing or invalid bearer token means "guest", never a 401.        ║
# ║  - Decisions depend on the caller, so responses are `no-store`.         ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import JSONResponse

from microdrama.api.http_utils import json_no_store, sanitize_id
from microdrama.core.dependencies import get_optional_identity
from microdrama.core.exceptions import EpisodeAccessDeniedException
from microdrama.dependencies.services import get_entitlement_resolver, get_episode_repo
from microdrama.repositories.episodes import EpisodeRecord, EpisodeRepositoryProtocol
from microdrama.schemas.auth import Identity
from microdrama.schemas.entitlement import (
    EpisodeAccessOut,
    EpisodeListItem,
    EpisodeOut,
    SeriesEpisodes,
)
from microdrama.schemas.enums import EpisodeStatus
from microdrama.services.entitlement_service import EntitlementResolver

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Content"],
    responses={
        400: {"description": "Bad Request"},
        403: {"description": "Access denied"},
        404: {"description": "Not Found"},
        503: {"description": "Storage unavailable"},
    },
)


async def _load_episode(repo: EpisodeRepositoryProtocol, episode_id: str) -> EpisodeRecord:
    episode = await repo.get(sanitize_id(episode_id, field="episode_id"))
    if episode is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Episode not found")
    return episode


@router.get("/episodes/{episode_id}/access", response_model=EpisodeAccessOut, summary="Can the caller watch this episode?")
async def episode_access(
    episode_id: str = Path(..., min_length=1, max_length=128),
    identity: Optional[Identity] = Depends(get_optional_identity),
    repo: EpisodeRepositoryProtocol = Depends(get_episode_repo),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver),
) -> JSONResponse:
    episode = await _load_episode(repo, episode_id)
    decision = await resolver.can_watch(identity, episode)
    return json_no_store(EpisodeAccessOut(episode_id=episode.id, allowed=decision.allowed, reason=decision.reason))


@router.get("/episodes/{episode_id}", response_model=EpisodeOut, summary="Episode detail (entitlement-gated)")
async def get_episode(
    episode_id: str = Path(..., min_length=1, max_length=128),
    identity: Optional[Identity] = Depends(get_optional_identity),
    repo: EpisodeRepositoryProtocol = Depends(get_episode_repo),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver),
) -> JSONResponse:
    episode = await _load_episode(repo, episode_id)
    decision = await resolver.can_watch(identity, episode)
    if not decision.allowed:
        raise EpisodeAccessDeniedException(
            reason=decision.reason.value,
            episode_id=episode.id,
            user_id=identity.user_id if identity else None,
        )
    return json_no_store(EpisodeOut.model_validate(episode))


@router.get("/series/{series_id}/episodes", response_model=SeriesEpisodes, summary="Published episodes with lock state")
async def list_series_episodes(
    series_id: str = Path(..., min_length=1, max_length=128),
    identity: Optional[Identity] = Depends(get_optional_identity),
    repo: EpisodeRepositoryProtocol = Depends(get_episode_repo),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver),
) -> JSONResponse:
    series_id = sanitize_id(series_id, field="series_id")
    episodes = [e for e in await repo.list_for_series(series_id) if e.status == EpisodeStatus.PUBLISHED]
    episodes.sort(key=lambda e: e.order)

    items = []
    for episode, decision in await resolver.annotate_episodes(identity, episodes):
        items.append(
            EpisodeListItem(
                **EpisodeOut.model_validate(episode).model_dump(),
                is_locked=not decision.allowed,
                lock_reason=None if decision.allowed else decision.reason,
            )
        )
    return json_no_store(SeriesEpisodes(series_id=series_id, items=items))


__all__ = ["router"]
