from abc import ABC, abstractmethod
from typing import Any


class AbstractRegistryClient(ABC):
    """Interface for clients that fetch a company by CNPJ from a registry."""

    @abstractmethod
    async def fetch(self, cnpj: str) -> dict[str, Any]:
        """Fetch the raw registry payload for a validated CNPJ.

        Args:
            cnpj: 14-digit, checksum-valid CNPJ.

        Returns:
            dict[str, Any]: Decoded JSON body returned by the registry.

        Raises:
            RegistryTimeoutError: If the call exceeded its time budget.
            RegistryStatusError: If the registry answered with a non-2xx status.
            RegistryTransportError: If the registry could not be reached or the
                body was not valid JSON.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        return None
