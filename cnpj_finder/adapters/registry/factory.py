"""Factory for creating the registry client from settings."""

from cnpj_finder.adapters.registry.base import AbstractRegistryClient
from cnpj_finder.adapters.registry.cnpjws_client import CnpjWsClient
from cnpj_finder.core.config import RegistrySettings, settings
from cnpj_finder.core.errors import ValidationAppError


def create_registry_client(registry_settings: RegistrySettings | None = None) -> AbstractRegistryClient:
    """Instantiate the registry client described by ``REGISTRY_*`` settings.

    Returns:
        AbstractRegistryClient: Configured client instance.

    Raises:
        ValidationAppError: If the configured base URL is not an HTTP(S) URL.
    """
    cfg = registry_settings or settings.registry

    if not cfg.base_url.startswith(("http://", "https://")):
        raise ValidationAppError(
            code="registry_invalid_base_url",
            message=f"REGISTRY_BASE_URL must be an http(s) URL, got '{cfg.base_url}'",
        )

    return CnpjWsClient(
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout_seconds,
        user_agent=cfg.user_agent,
    )
