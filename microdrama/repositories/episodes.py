from __future__ import annotations

"""Episode metadata repository.

Read-only access to the content store's episode metadata (`order`, `status`,
series membership). Entitlement decisions never need more than that.

Implementations:
  - `MemoryEpisodeRepository` (default), optionally seeded from JSON.
  - `SqlEpisodeRepository`, reading the `episodes` table.
"""

import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from microdrama.core.config import settings
from microdrama.db.models.episode import Episode
from microdrama.repositories import import_string, resolve_impl_path, storage_guard
from microdrama.schemas.enums import EpisodeStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EpisodeRecord:
    id: str
    series_id: str
    order: int
    status: EpisodeStatus
    title: Optional[str] = None


class EpisodeRepositoryProtocol:
    async def get(self, episode_id: str) -> Optional[EpisodeRecord]:
        raise NotImplementedError

    async def list_for_series(self, series_id: str) -> List[EpisodeRecord]:
        """All episodes of a series regardless of status, ordered by `order`."""
        raise NotImplementedError


class MemoryEpisodeRepository(EpisodeRepositoryProtocol):
    """
    Simple in-memory repository, optionally backed by a JSON file.

    Env:
      - EPISODES_DATA_PATH: Path to a JSON list of objects with keys
        id, series_id, order, status (default "published"), title.
    """

    def __init__(self, data_path: Optional[str] = None, episodes: Optional[List[EpisodeRecord]] = None) -> None:
        self._episodes: Dict[str, EpisodeRecord] = {}
        for ep in episodes or []:
            self.add(ep)
        if episodes is None:
            data_path = data_path or os.environ.get("EPISODES_DATA_PATH") or settings.EPISODES_DATA_PATH
            if data_path and os.path.exists(data_path):
                self._load(data_path)

    def _load(self, data_path: str) -> None:
        try:
            with open(data_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            for item in raw or []:
                self.add(
                    EpisodeRecord(
                        id=str(item["id"]),
                        series_id=str(item["series_id"]),
                        order=int(item["order"]),
                        status=EpisodeStatus(item.get("status", EpisodeStatus.PUBLISHED.value)),
                        title=item.get("title"),
                    )
                )
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Could not load episodes from %s; starting empty", data_path, exc_info=True)
            self._episodes = {}

    def add(self, episode: EpisodeRecord) -> None:
        self._episodes[episode.id] = episode

    async def get(self, episode_id: str) -> Optional[EpisodeRecord]:
        return self._episodes.get(episode_id)

    async def list_for_series(self, series_id: str) -> List[EpisodeRecord]:
        items = [e for e in self._episodes.values() if e.series_id == series_id]
        return sorted(items, key=lambda e: e.order)


class SqlEpisodeRepository(EpisodeRepositoryProtocol):
    def __init__(self, session_factory: Optional[async_sessionmaker] = None) -> None:
        if session_factory is None:
            from microdrama.db.session import async_session_maker

            session_factory = async_session_maker
        self._session_factory = session_factory

    @staticmethod
    def _to_record(row) -> EpisodeRecord:
        return EpisodeRecord(
            id=str(row.id),
            series_id=str(row.series_id),
            order=row.order,
            status=EpisodeStatus(row.status),
            title=row.title,
        )

    @staticmethod
    def _uuid(value: str) -> Optional[UUID]:
        try:
            return UUID(str(value))
        except ValueError:
            return None

    async def _scalars(self, stmt, operation: str):
        with storage_guard("Episode", operation):
            async with self._session_factory() as session:
                return (await session.execute(stmt)).scalars().all()

    async def get(self, episode_id: str) -> Optional[EpisodeRecord]:
        key = self._uuid(episode_id)
        if key is None:
            return None
        rows = await self._scalars(select(Episode).where(Episode.id == key), "episode_get")
        return self._to_record(rows[0]) if rows else None

    async def list_for_series(self, series_id: str) -> List[EpisodeRecord]:
        key = self._uuid(series_id)
        if key is None:
            return []
        stmt = select(Episode).where(Episode.series_id == key).order_by(Episode.order)
        rows = await self._scalars(stmt, "episode_list_for_series")
        return [self._to_record(r) for r in rows]


@lru_cache(maxsize=1)
def get_episode_repository() -> EpisodeRepositoryProtocol:
    impl_path = resolve_impl_path("EPISODE_REPOSITORY_IMPL", settings.EPISODE_REPOSITORY_IMPL)
    if impl_path:
        cls = import_string(impl_path, env_name="EPISODE_REPOSITORY_IMPL")
        return cls()  # type: ignore
    return MemoryEpisodeRepository()


__all__ = [
    "EpisodeRecord",
    "EpisodeRepositoryProtocol",
    "MemoryEpisodeRepository",
    "SqlEpisodeRepository",
    "get_episode_repository",
]
