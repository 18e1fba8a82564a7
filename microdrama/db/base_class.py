# microdrama/db/base_class.py
from __future__ import annotations

"""
# MicroDrama · Declarative base

`Base` carries the constraint naming convention the migration relies on
(`pk_subscriptions`, `ck_subscriptions_amount_non_negative`, ...). Models set
`__tablename__` themselves.

Mixins:
- `PKMixin`: BIGINT identity key. Subscription ids double as the tie-breaker
  for rows sharing a `start_date`, so they must only ever grow.
- `TimestampMixin`: `created_at` / `updated_at`, filled by the database.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class PKMixin:
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    # `onupdate` covers ORM flushes; the CAS `update()` sets it explicitly.
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


__all__ = ["Base", "PKMixin", "TimestampMixin", "NAMING_CONVENTION"]
