"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

CLIENT_FAMILY = "ip"
CNPJ_FAMILY = "cnpj"


@dataclass(frozen=True)
class RateLimitSubject:
    """One dimension a request is counted against.

    Attributes:
        family: Quota family (e.g. ``"ip"`` or ``"cnpj"``); each family has
            its own threshold.
        value: The concrete subject within the family (address, CNPJ digits).
    """

    family: str
    value: str

    @property
    def key(self) -> str:
        return f"{self.family}:{self.value}"


@dataclass(frozen=True)
class RateLimitResult:
    """Result of an admission check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Threshold of the most constrained (or blocking) family.
        remaining: Requests left for that family in the current window.
        reset_at: UNIX epoch seconds when the oldest counted request leaves
            the window.
        retry_after_seconds: Suggested wait time in seconds when blocked.
        family: Family that blocked the request, if any.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None
    family: str | None = None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def admit(self, subjects: Sequence[RateLimitSubject]) -> RateLimitResult:
        """Check every subject and record the request only if all admit it.

        Args:
            subjects: Subjects the request counts against.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self) -> int:
        """Drop entries that left the window; return how many were removed."""
        raise NotImplementedError
