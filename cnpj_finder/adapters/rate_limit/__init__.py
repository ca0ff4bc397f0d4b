"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory limiter and later migrate to Redis or another shared store
without changing the API layer.
"""

from cnpj_finder.adapters.rate_limit.base import (
    CLIENT_FAMILY,
    CNPJ_FAMILY,
    AbstractRateLimiter,
    RateLimitResult,
    RateLimitSubject,
)
from cnpj_finder.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter

__all__ = [
    "CLIENT_FAMILY",
    "CNPJ_FAMILY",
    "AbstractRateLimiter",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitResult",
    "RateLimitSubject",
]
