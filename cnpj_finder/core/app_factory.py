"""Application factory for FastAPI app.

Centralizes app construction (state, middleware, handlers, routers) so every
app instance owns its own cache, rate limiter and registry client. Tests
build isolated apps and can inject a fake registry client.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from cnpj_finder.adapters.registry import AbstractRegistryClient, create_registry_client
from cnpj_finder.api.routes import cnpj_router, health_router
from cnpj_finder.core.config import settings
from cnpj_finder.core.exception_handlers import setup_exception_handlers
from cnpj_finder.core.logging import configure_logging
from cnpj_finder.core.middleware import request_id_middleware, security_headers_middleware
from cnpj_finder.core.openapi import apply_openapi_customizations
from cnpj_finder.core.rate_limit import build_rate_limiter
from cnpj_finder.services.lookup_service import CnpjLookupService
from cnpj_finder.services.maintenance import MaintenanceSweeper
from cnpj_finder.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the periodic sweeper and close the registry client on shutdown."""
    sweeper: MaintenanceSweeper = app.state.sweeper
    await sweeper.start()
    logger.info(
        "app.started",
        extra={
            "app_env": settings.app_env,
            "cache_max_entries": settings.app.cache_max_entries,
            "cache_ttl_s": settings.app.cache_ttl_seconds,
        },
    )
    try:
        yield
    finally:
        await sweeper.stop()
        await app.state.registry_client.aclose()
        logger.info("app.stopped")


def create_app(*, registry_client: AbstractRegistryClient | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        registry_client: Optional client override; defaults to the client
            built from ``REGISTRY_*`` settings.

    Returns:
        Configured FastAPI app with state, middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="CNPJ Finder API",
        description=(
            "Consulta de empresas brasileiras por CNPJ. Valida os dígitos "
            "verificadores, aplica limite de requisições por cliente e por CNPJ, "
            "consulta a API pública de CNPJ e devolve um registro normalizado, "
            "com cache em memória."
        ),
        version="1.0.0",
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Per-instance state
    cache = SimpleTTLCache(
        ttl_seconds=settings.app.cache_ttl_seconds,
        max_entries=settings.app.cache_max_entries,
    )
    rate_limiter = build_rate_limiter(settings.app)
    registry = registry_client or create_registry_client(settings.registry)

    app.state.cache = cache
    app.state.rate_limiter = rate_limiter
    app.state.registry_client = registry
    app.state.lookup_service = CnpjLookupService(
        registry,
        cache,
        max_retries=settings.registry.max_retries,
        retry_delay_seconds=settings.registry.retry_delay_seconds,
        max_items=settings.app.max_list_items,
    )
    app.state.sweeper = MaintenanceSweeper(
        cache,
        rate_limiter,
        interval_seconds=settings.app.sweep_interval_seconds,
    )

    # Middleware (last registered runs first)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(cnpj_router, prefix="/api")
    app.include_router(health_router)

    # OpenAPI customizations (tags, preflight docs)
    apply_openapi_customizations(app)

    return app
