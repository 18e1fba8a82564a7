from __future__ import annotations

"""
Central enum definitions used across MicroDrama.

Design notes
------------
• All enums subclass `str, PyEnum` for JSON-friendly serialization.
• VALUE STRINGS are **stable** once deployed (DB enums and clients depend on them).
• Grouped by domain; keep `__all__` in sync when adding new enums.
"""

from enum import Enum as PyEnum


# ──────────────────────────────────────────────────────────────
# Identity
# ──────────────────────────────────────────────────────────────
class UserRole(str, PyEnum):
    """Role carried by a verified access token."""
    VIEWER = "viewer"
    ADMIN = "admin"


# ──────────────────────────────────────────────────────────────
# Subscriptions
# ──────────────────────────────────────────────────────────────
class SubscriptionPlan(str, PyEnum):
    """Purchasable plans. Prices live in the plan catalog, not here."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class SubscriptionStatus(str, PyEnum):
    """Per-row lifecycle status; `canceled` and `expired` are terminal."""
    ACTIVE = "active"
    CANCELED = "canceled"
    TRIAL = "trial"
    EXPIRED = "expired"


TERMINAL_STATUSES = frozenset({SubscriptionStatus.CANCELED, SubscriptionStatus.EXPIRED})


# ──────────────────────────────────────────────────────────────
# Catalog
# ──────────────────────────────────────────────────────────────
class EpisodeStatus(str, PyEnum):
    """Publishing state of an episode."""
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


# ──────────────────────────────────────────────────────────────
# Entitlement & reporting
# ──────────────────────────────────────────────────────────────
class AccessReason(str, PyEnum):
    """Why an entitlement decision came out the way it did."""
    UNPUBLISHED = "unpublished"
    GUEST_PREVIEW = "guest-preview"
    SUBSCRIBER = "subscriber"
    ADMIN_OVERRIDE = "admin-override"
    FREE_TIER_BLOCKED = "free-tier-blocked"
    EXPIRED = "expired"
    NO_SUBSCRIPTION = "no-subscription"


class ReportPeriod(str, PyEnum):
    """Bucket width for revenue reports."""
    WEEK = "week"
    MONTH = "month"


__all__ = [
    "UserRole",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "TERMINAL_STATUSES",
    "EpisodeStatus",
    "AccessReason",
    "ReportPeriod",
]
