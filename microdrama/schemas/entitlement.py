from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from microdrama.schemas.enums import AccessReason, EpisodeStatus


class EpisodeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    series_id: str
    order: int
    status: EpisodeStatus
    title: Optional[str] = None


class EpisodeAccessOut(BaseModel):
    episode_id: str
    allowed: bool
    reason: AccessReason


class EpisodeListItem(EpisodeOut):
    is_locked: bool
    lock_reason: Optional[AccessReason] = None


class SeriesEpisodes(BaseModel):
    series_id: str
    items: List[EpisodeListItem]
