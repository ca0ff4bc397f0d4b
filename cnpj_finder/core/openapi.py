"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Documentation of the CORS preflight (``OPTIONS``), which is answered by
  middleware and therefore invisible to route introspection

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "CNPJ",
        "description": "Consulta de empresas por CNPJ.",
    },
    {
        "name": "Health",
        "description": "Liveness checks and cache counters.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and preflight docs."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            if path.startswith("/api/") and "get" in methods:
                methods.setdefault(
                    "options",
                    {
                        "tags": methods["get"].get("tags", []),
                        "summary": "CORS preflight",
                        "responses": {"200": {"description": "Empty body"}},
                    },
                )

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
