# microdrama/core/dependencies.py
from __future__ import annotations

"""
Request identity dependencies — MicroDrama
==========================================

Turns the `Authorization` header into an `Identity(user_id, role)` for the
core. Bearer parsing and JWT decoding live in `microdrama.core.jwt`; this
module only *uses* them.

- `get_current_identity`: required auth, 401 on a missing or bad token.
- `get_optional_identity`: guest (`None`) on a missing or bad token, so
  public content routes never fail on stale credentials.
"""

from typing import Optional
import logging

from fastapi import Request

from microdrama.core.exceptions import InvalidTokenException
from microdrama.core.jwt import decode_token, get_bearer_token
from microdrama.schemas.auth import Identity, TokenPayload

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPES = ("access",)

__all__ = ["identity_from_request", "get_current_identity", "get_optional_identity"]


async def identity_from_request(request: Request) -> Identity:
    token = get_bearer_token(request)
    claims = await decode_token(token)
    token_type = claims.get("token_type")
    if token_type is not None and token_type not in ACCESS_TOKEN_TYPES:
        raise InvalidTokenException(detail="Invalid token type.")
    identity = Identity.from_claims(TokenPayload(**claims))
    request.state.user_id = identity.user_id
    return identity


async def get_current_identity(request: Request) -> Identity:
    return await identity_from_request(request)


async def get_optional_identity(request: Request) -> Optional[Identity]:
    if not request.headers.get("Authorization"):
        return None
    try:
        return await identity_from_request(request)
    except InvalidTokenException as exc:
        logger.debug("Ignoring unusable token on optional-auth route: %s", exc.detail)
        return None
