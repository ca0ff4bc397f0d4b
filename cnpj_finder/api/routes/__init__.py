from __future__ import annotations

from cnpj_finder.api.routes.cnpj import router as cnpj_router
from cnpj_finder.api.routes.health import router as health_router

__all__ = ["cnpj_router", "health_router"]
