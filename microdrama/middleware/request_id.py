# microdrama/middleware/request_id.py
from __future__ import annotations

"""
# MicroDrama — Request ID Middleware (ASGI)

- Reuses a client-supplied `X-Request-ID` / `X-Correlation-ID` when it is a UUIDv4.
- Generates a UUIDv4 otherwise.
- Injects it into `request.state.request_id` and the response header.
- Binds `request_id` into the **loguru** context for the whole request, so
  entitlement and subscription logs can be stitched per request.
- Emits one access line per request (method, path, status, duration).

## Env
- `REQUEST_ID_HEADER_NAME` (default: `X-Request-ID`)
- `REQUEST_ID_TRUST_CLIENT_IDS` ("true"/"false"; default: "true")

## Usage
    from microdrama.middleware.request_id import RequestIDMiddleware
    app.add_middleware(RequestIDMiddleware)
"""

import os
import time
import uuid

from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID")
TRUST_CLIENT_IDS = os.getenv("REQUEST_ID_TRUST_CLIENT_IDS", "true").lower() == "true"


def _valid_uuid4(candidate: str) -> bool:
    if not candidate or len(candidate) > 36:
        return False
    try:
        return uuid.UUID(candidate).version == 4
    except ValueError:
        return False


class RequestIDMiddleware:
    """Pure ASGI middleware managing a per-request correlation id."""

    def __init__(self, app: ASGIApp, header_name: str = HEADER_NAME) -> None:
        self.app = app
        self.header_name = header_name

    def _choose_request_id(self, headers: Headers) -> str:
        if TRUST_CLIENT_IDS:
            incoming = (headers.get(self.header_name) or headers.get("X-Correlation-ID") or "").strip()
            if _valid_uuid4(incoming):
                return str(uuid.UUID(incoming))
        return str(uuid.uuid4())

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        req_id = self._choose_request_id(Headers(scope=scope))
        scope.setdefault("state", {})["request_id"] = req_id
        name_bytes = self.header_name.encode("latin-1")
        started = time.perf_counter()
        status_holder = {"code": 500}

        async def _send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                status_holder["code"] = message.get("status", 500)
                raw = message.setdefault("headers", [])
                message["headers"] = [(k, v) for (k, v) in raw if k.lower() != name_bytes.lower()]
                message["headers"].append((name_bytes, req_id.encode("latin-1")))
            await send(message)

        with logger.contextualize(request_id=req_id):
            try:
                await self.app(scope, receive, _send_wrapper)
            except Exception:
                logger.exception("Unhandled exception during request processing")
                raise
            finally:
                logger.info(
                    "{} {} -> {} ({:.1f} ms)",
                    scope.get("method"),
                    scope.get("path"),
                    status_holder["code"],
                    (time.perf_counter() - started) * 1000,
                )


def get_request_id(request) -> str:
    """Current request id from `request.state`, or "" if absent."""
    return getattr(getattr(request, "state", object()), "request_id", "") or ""


__all__ = ["RequestIDMiddleware", "get_request_id"]
