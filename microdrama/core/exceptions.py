# microdrama/core/exceptions.py
from __future__ import annotations

"""
MicroDrama — Application Exceptions
===================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets us attach structured metadata and integrate cleanly with the problem+json
shape rendered by `microdrama.core.exception_handlers`.

Key ideas
---------
- One base `AppException` that carries `code`, `request_id`, `user_id`, `details`, `extra`.
- Domain exceptions (plans, subscriptions, storage, access) inherit from it and
  set their HTTP status, so services can raise them and routers stay thin.
- Anything already catching `HTTPException` keeps working.

Usage
-----
    raise InvalidPlanException(plan="yearly")
    raise NoActiveSubscriptionException(user_id=user_id)
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "InvalidPlanException",
    "NoActiveSubscriptionException",
    "StorageUnavailableException",
    "EpisodeAccessDeniedException",
    "PermissionDeniedException",
    "InvalidTokenException",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code (e.g., 400/401/403/404/409/503).
    message : str
        Human-readable error message (serialized as `detail` as well).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    request_id : str | None
        Optional request correlation id.
    user_id : str | None
        User id for auditing/context.
    details : dict | list | str | None
        Machine-readable details (e.g., the rejected plan, the deny reason).
    extra : dict | None
        Additional non-sensitive metadata to surface to clients.
    headers : dict | None
        Optional headers (e.g., `{"WWW-Authenticate": "Bearer"}`).
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[int] = None,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.request_id: Optional[str] = request_id
        self.user_id: Optional[str] = user_id
        self.details: Optional[Any] = details
        self.extra: Dict[str, Any] = extra or {}

    # ── [Helper] Canonical body used by handlers ───────────────────────────
    def to_problem(self, *, fallback_request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return the extension members merged into the problem+json body."""
        body: Dict[str, Any] = {
            "code": self.code,
            "request_id": self.request_id or fallback_request_id or "N/A",
        }
        if self.details is not None:
            body["details"] = self.details
        extra_sanitized = dict(self.extra) if self.extra else {}
        for k in ("token", "authorization", "password", "secret"):
            extra_sanitized.pop(k, None)
        body.update(extra_sanitized)
        return body


# ──────────────────────────────────────────────────────────────
# 💳 Subscription domain
# ──────────────────────────────────────────────────────────────
class InvalidPlanException(AppException):
    """Raised when a subscribe call names a plan outside the catalog."""

    def __init__(self, *, plan: Any, allowed: Optional[list] = None, user_id: Optional[str] = None) -> None:
        allowed = allowed or ["weekly", "monthly"]
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=f"Invalid plan. Must be {' or '.join(allowed)}.",
            code=40001,
            user_id=user_id,
            details={"plan": plan, "allowed": allowed},
        )


class NoActiveSubscriptionException(AppException):
    """Raised when cancel finds nothing active to cancel."""

    def __init__(self, *, user_id: Optional[str] = None, current_status: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message="No active subscription found",
            code=40401,
            user_id=user_id,
            details={"current_status": current_status},
        )


class StorageUnavailableException(AppException):
    """The subscription/episode store could not be reached (fatal to the request only)."""

    def __init__(self, *, operation: str, request_id: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            message="Storage temporarily unavailable",
            code=50301,
            request_id=request_id,
            details={"operation": operation},
        )


# ──────────────────────────────────────────────────────────────
# 🎬 Content access
# ──────────────────────────────────────────────────────────────
class EpisodeAccessDeniedException(AppException):
    """Raised by content routes when the entitlement decision is a deny."""

    _MESSAGES = {
        "unpublished": "Episode is not published",
        "no-subscription": "Sign in and subscribe to watch this episode.",
        "expired": "Your subscription has expired. Renew to keep watching.",
        "free-tier-blocked": "Premium subscription required for this episode.",
    }

    def __init__(self, *, reason: str, episode_id: Optional[str] = None, user_id: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=self._MESSAGES.get(reason, "Access denied"),
            code=40301,
            user_id=user_id,
            details={"reason": reason, "episode_id": episode_id},
        )


# ──────────────────────────────────────────────────────────────
# 🔐 Authorization/Role
# ──────────────────────────────────────────────────────────────
class PermissionDeniedException(AppException):
    """Raised when a user lacks a required permission."""

    def __init__(
        self,
        *,
        permission: str,
        role: str,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=f"Permission '{permission}' denied for role '{role}'",
            code=status.HTTP_403_FORBIDDEN,
            request_id=request_id,
            user_id=user_id,
            details={"permission": permission, "role": role},
        )


# ──────────────────────────────────────────────────────────────
# 🔑 Auth/Token exceptions
# ──────────────────────────────────────────────────────────────
class InvalidTokenException(AppException):
    """Raised for missing, invalid or expired tokens (401 by default)."""

    def __init__(
        self,
        *,
        detail: str = "Invalid or expired token",
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        headers = headers or {"WWW-Authenticate": "Bearer"}
        super().__init__(
            status_code=status_code,
            message=detail,
            code=status_code,
            headers=headers,
        )
