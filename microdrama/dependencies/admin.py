from __future__ import annotations

"""
Admin guards
------------
Centralized admin check so every admin router applies the same rule.

Exports
- ensure_admin(identity): raise 403 if not admin
- require_admin: FastAPI dependency returning the authenticated admin identity
"""

from fastapi import Depends

from microdrama.core.dependencies import get_current_identity
from microdrama.core.exceptions import PermissionDeniedException
from microdrama.schemas.auth import Identity


def ensure_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise PermissionDeniedException(
            permission="admin",
            role=identity.role.value,
            user_id=identity.user_id,
        )


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    ensure_admin(identity)
    return identity
