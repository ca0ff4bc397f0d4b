from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service health.
    Also reports cache occupancy and hit/miss counters (never cached values).

    Returns:
        dict: ``{"status": "ok", "cache": {...}}``.
    """

    return {"status": "ok", "cache": request.app.state.cache.stats()}
