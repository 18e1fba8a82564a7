# microdrama/db/base.py
"""
MicroDrama — SQLAlchemy Base registry
=====================================

Import all ORM models so their tables are registered on `Base.metadata`.
Used by Alembic autogeneration and the test schema bootstrap.

Keep this file import-only; no runtime logic.
"""

from microdrama.db.base_class import Base

# ───────────────────────────────────────────────────────────────
# Billing
# ───────────────────────────────────────────────────────────────
from microdrama.db.models.subscription import Subscription

# ───────────────────────────────────────────────────────────────
# Catalog (read model)
# ───────────────────────────────────────────────────────────────
from microdrama.db.models.episode import Episode

__all__ = [
    "Base",
    "Subscription",
    "Episode",
]
