# microdrama/schemas/auth.py

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from microdrama.schemas.enums import UserRole


# ──────────────── Token claims ────────────────
class TokenPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sub: str
    exp: Optional[int | datetime] = None
    role: Optional[str] = None
    token_type: Optional[str] = None  # "access" | "refresh"
    iat: Optional[int | datetime] = None
    iss: Optional[str] = None
    aud: Optional[str | list[str]] = None


# ──────────────── Verified caller ────────────────
class Identity(BaseModel):
    """Verified `(user_id, role)` handed to the core. Guests have no Identity."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole = UserRole.VIEWER

    @field_validator("role", mode="before")
    @classmethod
    def _unknown_role_is_viewer(cls, value: Any) -> Any:
        if isinstance(value, UserRole):
            return value
        try:
            return UserRole(str(value).lower())
        except ValueError:
            return UserRole.VIEWER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_claims(cls, claims: TokenPayload) -> "Identity":
        return cls(user_id=claims.sub, role=claims.role or UserRole.VIEWER)
