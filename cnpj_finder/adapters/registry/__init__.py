"""Registry adapter layer - abstracts over the upstream CNPJ data source."""

from cnpj_finder.adapters.registry.base import AbstractRegistryClient
from cnpj_finder.adapters.registry.cnpjws_client import CnpjWsClient
from cnpj_finder.adapters.registry.factory import create_registry_client

__all__ = [
    "AbstractRegistryClient",
    "CnpjWsClient",
    "create_registry_client",
]
