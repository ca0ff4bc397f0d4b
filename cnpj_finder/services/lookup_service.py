"""CNPJ lookup service orchestrating cache, registry calls and mapping.

This service is the core business logic behind ``GET /api/cnpj``:
- Cache fast path keyed by the cleaned CNPJ
- Registry call with an optional fixed-delay retry on timeout/transport errors
- Mapping of the upstream payload and sanity check of the mapped record
- Reclassification of upstream failures into client-facing errors
- Opportunistic cache sweep whenever a lookup fails
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from cnpj_finder.adapters.registry.base import AbstractRegistryClient
from cnpj_finder.core.errors import (
    AppError,
    InternalAppError,
    NotFoundAppError,
    RegistryStatusError,
    RegistryTimeoutError,
    RegistryTransportError,
    UpstreamRateLimitedAppError,
    UpstreamTimeoutAppError,
    UpstreamUnavailableAppError,
)
from cnpj_finder.schemas.company import CompanyRecord
from cnpj_finder.services.mapper import DEFAULT_MAX_ITEMS, map_company
from cnpj_finder.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Erro interno do servidor"


@dataclass(frozen=True)
class LookupResult:
    record: CompanyRecord
    cached: bool


def classify_failure(exc: Exception) -> AppError:
    """Translate a lookup failure into the error returned to the client.

    Args:
        exc: Exception raised while calling the registry or mapping its payload.

    Returns:
        AppError subclass whose type determines the HTTP status. The original
        failure text is kept in ``details["cause"]`` for non-production use.
    """

    cause = exc.message if isinstance(exc, AppError) else str(exc)

    if isinstance(exc, RegistryTimeoutError):
        return UpstreamTimeoutAppError(
            code="upstream_timeout",
            message="Timeout na consulta externa",
            details={"cause": cause},
        )
    if isinstance(exc, RegistryStatusError):
        if exc.status == 404:
            return NotFoundAppError(
                code="company_not_found",
                message="Empresa não encontrada",
                details={"cause": cause, "upstream_status": 404},
            )
        if exc.status == 429:
            return UpstreamRateLimitedAppError(
                code="upstream_rate_limited",
                message="API externa com limite excedido",
                details={"cause": cause, "upstream_status": 429},
            )
        return InternalAppError(
            code="upstream_error",
            message=GENERIC_FAILURE_MESSAGE,
            details={"cause": cause, "upstream_status": exc.status},
        )
    if isinstance(exc, RegistryTransportError):
        return UpstreamUnavailableAppError(
            code="upstream_unavailable",
            message="Serviço temporariamente indisponível",
            details={"cause": cause},
        )
    if isinstance(exc, AppError):
        return exc
    return InternalAppError(
        code="internal_error",
        message=GENERIC_FAILURE_MESSAGE,
        details={"cause": cause, "error_type": type(exc).__name__},
    )


class CnpjLookupService:
    """Serve company records for validated CNPJs.

    Owns no global state: the cache and registry client are injected so each
    application instance (and each test) gets its own.
    """

    def __init__(
        self,
        registry: AbstractRegistryClient,
        cache: SimpleTTLCache,
        *,
        max_retries: int = 0,
        retry_delay_seconds: float = 1.0,
        max_items: int = DEFAULT_MAX_ITEMS,
    ) -> None:
        """Initialize the lookup service.

        Args:
            registry: Client used on cache misses.
            cache: Cache of mapped records keyed by cleaned CNPJ.
            max_retries: Extra attempts after a timeout or transport failure.
            retry_delay_seconds: Fixed wait between attempts.
            max_items: Cap for list-valued fields in mapped records.
        """
        self.registry = registry
        self.cache = cache
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.max_items = max_items

    async def lookup(self, cnpj: str) -> LookupResult:
        """Return the company record for a cleaned, checksum-valid CNPJ.

        Args:
            cnpj: 14-digit CNPJ (already validated).

        Returns:
            LookupResult with the record and whether it came from cache.

        Raises:
            AppError: Classified failure (see :func:`classify_failure`).
        """
        cached = self.cache.get(cnpj)
        if cached is not None:
            logger.info("lookup.cache_hit", extra={"cnpj": cnpj})
            return LookupResult(record=cached, cached=True)

        start = time.perf_counter()
        try:
            raw = await self._fetch_with_retry(cnpj)
            record = map_company(raw, max_items=self.max_items)
            if not record.tax_id:
                raise InternalAppError(
                    code="invalid_upstream_record",
                    message=GENERIC_FAILURE_MESSAGE,
                    details={"cause": "Dados inválidos retornados pela API"},
                )
        except Exception as exc:
            error = classify_failure(exc)
            removed = self.cache.sweep()
            logger.warning(
                "lookup.failed",
                extra={
                    "cnpj": cnpj,
                    "error_code": error.code,
                    "error_type": type(exc).__name__,
                    "swept_entries": removed,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            if error is exc:
                raise
            raise error from exc

        self.cache.set(cnpj, record)
        logger.info(
            "lookup.completed",
            extra={
                "cnpj": cnpj,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                "cache_size": len(self.cache),
            },
        )
        return LookupResult(record=record, cached=False)

    async def _fetch_with_retry(self, cnpj: str) -> dict:
        attempt = 0
        while True:
            try:
                return await self.registry.fetch(cnpj)
            except (RegistryTimeoutError, RegistryTransportError) as exc:
                if attempt >= self.max_retries:
                    raise
                attempt += 1
                logger.info(
                    "lookup.retry",
                    extra={
                        "cnpj": cnpj,
                        "attempt": attempt,
                        "error_code": exc.code,
                        "delay_s": self.retry_delay_seconds,
                    },
                )
                await asyncio.sleep(self.retry_delay_seconds)
