"""Versioned API (v1) aggregator.

The combined router lives in `microdrama.api.v1.routers`; import it from
there:

    from microdrama.api.v1.routers import router as api_v1_router
"""

__all__ = []
