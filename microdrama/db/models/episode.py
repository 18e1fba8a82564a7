from __future__ import annotations

"""
🎬 MicroDrama — Episode (read model)
===================================

Episode metadata as seen by the entitlement engine. Series/episode authoring
belongs to the content service; this table only needs what access decisions
and series listings read: the series, the 1-based `order` within it, the
publishing `status`, and a display title.

Constraints
-----------
• `(series_id, order)` is unique: one episode per slot in a series.
• `order >= 1`; episodes 1..FREE_PREVIEW_LIMIT are the free preview.
"""

from datetime import datetime
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, Enum, Integer, String, UniqueConstraint, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from microdrama.db.base_class import Base
from microdrama.schemas.enums import EpisodeStatus


class Episode(Base):
    """A single episode within a series."""

    __tablename__ = "episodes"

    id: Mapped[PyUUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    series_id: Mapped[PyUUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)

    order: Mapped[int] = mapped_column("order", Integer, nullable=False, doc="1-based position within the series.")
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[EpisodeStatus] = mapped_column(
        Enum(EpisodeStatus, name="episode_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        server_default=text("'published'"),
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        UniqueConstraint("series_id", "order", name="uq_episodes_series_order"),
        CheckConstraint('"order" >= 1', name="order_positive"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Episode id={self.id} series_id={self.series_id} #{self.order} status={self.status}>"


__all__ = ["Episode"]
