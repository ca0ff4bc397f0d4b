"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Policy: every request counts against its client address and, when a ``cnpj``
query parameter is present, against that CNPJ as well (10/min per address and
3/min per CNPJ by default). Admission runs before the CNPJ is validated so
malformed input is throttled like any other request.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Query, Request

from cnpj_finder.adapters.rate_limit.base import (
    CLIENT_FAMILY,
    CNPJ_FAMILY,
    AbstractRateLimiter,
    RateLimitSubject,
)
from cnpj_finder.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from cnpj_finder.core.config import AppSettings, settings
from cnpj_finder.core.errors import RateLimitedAppError
from cnpj_finder.core.logging import hash_identifier
from cnpj_finder.utils.cnpj_validator import CNPJ_LENGTH, clean_cnpj

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Limite de requisições excedido. Tente novamente em 1 minuto."


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Build the limiter configured by ``APP_RATE_LIMIT_*`` settings."""

    cfg = app_settings or settings.app
    return InMemorySlidingWindowRateLimiter(
        limits={
            CLIENT_FAMILY: cfg.rate_limit_requests_per_client,
            CNPJ_FAMILY: cfg.rate_limit_requests_per_cnpj,
        },
        window_seconds=cfg.rate_limit_window_seconds,
        gc_threshold=cfg.rate_limit_gc_threshold,
    )


def get_client_ip(request: Request) -> str:
    """Resolve the caller's address behind proxies.

    Order: first ``X-Forwarded-For`` hop, ``X-Real-IP``, socket peer, then
    ``"unknown"``.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def build_subjects(client_ip: str, raw_cnpj: str | None) -> list[RateLimitSubject]:
    """Subjects a request counts against.

    The CNPJ subject uses the digits of the raw parameter truncated to 14, so
    punctuation variants of one CNPJ share a quota.
    """

    subjects = [RateLimitSubject(CLIENT_FAMILY, client_ip)]
    digits = clean_cnpj(raw_cnpj or "")[:CNPJ_LENGTH]
    if digits:
        subjects.append(RateLimitSubject(CNPJ_FAMILY, digits))
    return subjects


async def enforce_rate_limit(
    request: Request,
    cnpj: Annotated[str | None, Query()] = None,
) -> None:
    """FastAPI dependency enforcing rate limits.

    When enabled, records one request for each subject. If any subject is over
    its quota, the request is rejected without being recorded.

    Raises:
        RateLimitedAppError: 429 Too Many Requests when the limit is exceeded.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter: AbstractRateLimiter = request.app.state.rate_limiter
    client_ip = get_client_ip(request)
    result = limiter.admit(build_subjects(client_ip, cnpj))

    log_extra = {
        "client_hash": hash_identifier(client_ip),
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": settings.app.rate_limit_window_seconds,
    }

    if result.allowed:
        logger.debug("rate_limit.allowed", extra=log_extra)
        return

    retry_after = result.retry_after_seconds or settings.app.rate_limit_window_seconds
    logger.warning(
        "rate_limit.exceeded",
        extra={**log_extra, "family": result.family, "retry_after_s": retry_after},
    )

    raise RateLimitedAppError(
        code="rate_limit_exceeded",
        message=RATE_LIMIT_MESSAGE,
        details={
            "family": result.family or "",
            "limit": result.limit,
            "retry_after": retry_after,
        },
    )
