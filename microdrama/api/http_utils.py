from __future__ import annotations

"""
MicroDrama · HTTP Utilities
===========================

Shared helpers for API routers:

- ID sanitization (slugs & UUIDs)
- No-store JSON helper for subscription and admin responses
- Pagination headers (`X-Total-Count` + RFC 5988 `Link`)

All helpers are side-effect free; validators raise `HTTPException` on failure.
"""

import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from fastapi import HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


__all__ = [
    "sanitize_id",
    "json_no_store",
    "pagination_headers",
]


# ─────────────────────────────────────────────────────────────────────────────
# 🔤 ID sanitization
# ─────────────────────────────────────────────────────────────────────────────

_SANITIZE_SLUG_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
_SANITIZE_UUID_RE = re.compile(r"^[0-9a-fA-F-]{8,36}$")


def sanitize_id(value: str, *, field: str = "id") -> str:
    """Accept slugs (``[A-Za-z0-9_-]{1,128}``) or UUID-like strings; 400 otherwise."""
    if _SANITIZE_SLUG_RE.match(value) or _SANITIZE_UUID_RE.match(value):
        return value
    raise HTTPException(status_code=400, detail=f"Invalid {field} format")


# ─────────────────────────────────────────────────────────────────────────────
# 🧊 No-store JSON
# ─────────────────────────────────────────────────────────────────────────────

def _to_plain(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True)
    if isinstance(obj, (list, tuple)):
        return [_to_plain(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _to_plain(v) for k, v in obj.items()}
    return jsonable_encoder(obj)


def json_no_store(
    payload: Any,
    status_code: int = 200,
    *,
    response: Optional[Response] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Return a JSON response with strict `no-store` caching.

    Propagates `Location`, `X-Total-Count` and `Link` from an upstream
    Response if supplied, then applies any explicit `headers`.
    """
    resp = JSONResponse(content=_to_plain(payload), status_code=status_code)
    resp.headers["Cache-Control"] = "no-store"
    resp.headers["Pragma"] = "no-cache"
    resp.headers["Expires"] = "0"

    if response is not None:
        for key in ("Location", "X-Total-Count", "Link"):
            if key in response.headers:
                resp.headers[key] = response.headers[key]
    for key, value in (headers or {}).items():
        resp.headers[key] = value
    return resp


# ─────────────────────────────────────────────────────────────────────────────
# 📄 Pagination
# ─────────────────────────────────────────────────────────────────────────────

def pagination_headers(request: Request, *, page: int, page_size: int, total: int) -> Dict[str, str]:
    """Return RFC 5988 `Link` and `X-Total-Count` headers for pagination."""
    headers: Dict[str, str] = {"X-Total-Count": str(total)}

    def _q(p: int) -> str:
        qd = dict(request.query_params)
        qd["page"] = str(p)
        qd["page_size"] = str(page_size)
        return urlencode(qd)

    base_url = str(request.url).split("?")[0]
    last_page = max(1, (total + page_size - 1) // page_size)
    links: List[str] = []
    if page > 1:
        links.append(f'<{base_url}?{_q(1)}>; rel="first"')
        links.append(f'<{base_url}?{_q(page - 1)}>; rel="prev"')
    if page < last_page:
        links.append(f'<{base_url}?{_q(page + 1)}>; rel="next"')
        links.append(f'<{base_url}?{_q(last_page)}>; rel="last"')
    if links:
        headers["Link"] = ", ".join(links)
    return headers
