"""publica.cnpj.ws registry client adapter."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from cnpj_finder.adapters.registry.base import AbstractRegistryClient
from cnpj_finder.core.errors import (
    RegistryStatusError,
    RegistryTimeoutError,
    RegistryTransportError,
)

logger = logging.getLogger(__name__)


class CnpjWsClient(AbstractRegistryClient):
    """Client for ``GET {base_url}/cnpj/{cnpj}`` on the public CNPJ API.

    Uses a shared ``httpx.AsyncClient``. Each lookup is a single request with
    no retries; the whole call (connect, send, read) is bounded by
    ``timeout_seconds`` and cancelled when the budget runs out.
    """

    def __init__(
        self,
        base_url: str = "https://publica.cnpj.ws",
        *,
        timeout_seconds: float = 10.0,
        user_agent: str = "CNPJ-Finder-App/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async HTTP client.

        Args:
            base_url: Registry base URL.
            timeout_seconds: Total time budget per lookup.
            user_agent: User-Agent header sent upstream.
            transport: Optional custom transport (tests use ``httpx.MockTransport``).
        """
        self.timeout_seconds = timeout_seconds
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Accept": "application/json", "User-Agent": user_agent},
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def fetch(self, cnpj: str) -> dict[str, Any]:
        """Fetch the registry payload for ``cnpj``.

        Raises:
            RegistryTimeoutError: On expiry of the time budget.
            RegistryStatusError: On a non-2xx response (status in details).
            RegistryTransportError: On network failures or invalid JSON.
        """
        path = f"/cnpj/{cnpj}"
        start = time.perf_counter()
        logger.info("registry.request", extra={"cnpj": cnpj})

        try:
            response = await asyncio.wait_for(self.client.get(path), timeout=self.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning(
                "registry.timeout",
                extra={"cnpj": cnpj, "timeout_s": self.timeout_seconds},
            )
            raise RegistryTimeoutError(
                code="registry_timeout",
                message="Timeout na consulta da API externa",
                details={"error_type": type(exc).__name__},
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "registry.transport_error",
                extra={"cnpj": cnpj, "error_type": type(exc).__name__},
            )
            raise RegistryTransportError(
                code="registry_transport_error",
                message=f"Falha de rede ao consultar a API externa: {exc}",
                details={"error_type": type(exc).__name__},
            ) from exc

        duration_ms = (time.perf_counter() - start) * 1000

        if not response.is_success:
            logger.warning(
                "registry.error_status",
                extra={
                    "cnpj": cnpj,
                    "upstream_status": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                    "upstream_body": response.text[:200],
                },
            )
            raise RegistryStatusError(
                code="registry_status_error",
                message=f"API externa retornou status {response.status_code}",
                details={"upstream_status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise RegistryTransportError(
                code="registry_invalid_body",
                message="API externa retornou um corpo que não é JSON válido",
                details={"error_type": type(exc).__name__},
            ) from exc

        if not isinstance(data, dict):
            raise RegistryTransportError(
                code="registry_invalid_body",
                message="API externa retornou um JSON inesperado",
                details={"error_type": type(data).__name__},
            )

        logger.info(
            "registry.response",
            extra={
                "cnpj": cnpj,
                "duration_ms": round(duration_ms, 2),
                "body_bytes": len(response.content),
            },
        )
        return data

    async def aclose(self) -> None:
        await self.client.aclose()
