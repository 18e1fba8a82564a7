from __future__ import annotations

"""
💳 MicroDrama — Subscription
===========================

One purchased subscription term. Rows form an append-only log per user:
renewing or switching plan creates a new row, and the *current* subscription
is the row with the latest `start_date` (ties broken by the higher `id`).

Design highlights
-----------------
• `amount` is a price snapshot in minor units taken from the plan catalog at
  purchase time; it is never recomputed.
• `status` is the only mutable column, and only ever moves out of `active`
  (to `canceled` or `expired`). Writers use a conditional UPDATE
  (`WHERE status = :expected`) rather than read-modify-write.
• `(user_id, start_date DESC, id DESC)` backs current-subscription lookups;
  revenue reporting is a full scan.
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from microdrama.db.base_class import Base, PKMixin, TimestampMixin
from microdrama.schemas.enums import SubscriptionPlan, SubscriptionStatus


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class Subscription(PKMixin, TimestampMixin, Base):
    """A single subscription term for one user."""

    __tablename__ = "subscriptions"

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    plan: Mapped[SubscriptionPlan] = mapped_column(
        Enum(SubscriptionPlan, name="subscription_plan", values_callable=_enum_values),
        nullable=False,
    )
    status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus, name="subscription_status", values_callable=_enum_values),
        nullable=False,
        server_default=text("'active'"),
        index=True,
    )

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    renews_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    amount: Mapped[int] = mapped_column(Integer, nullable=False, doc="Price snapshot in minor units.")
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("renews_at > start_date", name="renews_after_start"),
        CheckConstraint("amount >= 0", name="amount_non_negative"),
        Index("ix_subscriptions_user_current", "user_id", text("start_date DESC"), text("id DESC")),
        Index("ix_subscriptions_start_date", "start_date"),
    )


__all__ = ["Subscription"]
