"""
Adapter registry mapping provider tags to adapter classes.
"""

import logging
from typing import Dict, List, Optional, Type

import httpx

from .config import ProviderEndpointConfig
from .errors import UnsupportedProviderError
from .interface import ProviderAdapter
from .normalization import DEFAULT_TEMPERATURE
from ..models.registry import ProviderKind

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """
    Registry for provider adapters.

    Provider dispatch is closed over ``ProviderKind``: a registry row whose
    provider tag has no enum member, or no registered adapter class, is
    rejected during resolution.
    """

    def __init__(self):
        """Initialize the registry."""
        self._adapters: Dict[ProviderKind, Type[ProviderAdapter]] = {}

    def register_adapter(self, kind: ProviderKind, adapter_class: Type[ProviderAdapter]) -> None:
        """
        Register an adapter class.

        Args:
            kind: Provider the adapter speaks to
            adapter_class: Adapter class to register
        """
        self._adapters[kind] = adapter_class
        logger.info(f"Registered provider adapter: {kind.value}")

    def resolve_kind(self, provider_tag: str) -> ProviderKind:
        """
        Map a registry provider tag to a supported provider.

        Raises:
            UnsupportedProviderError: If the tag is unknown or has no adapter
        """
        try:
            kind = ProviderKind(provider_tag)
        except ValueError:
            raise UnsupportedProviderError(
                f"Unsupported provider: {provider_tag}", provider=provider_tag
            ) from None

        if kind not in self._adapters:
            raise UnsupportedProviderError(
                f"Unsupported provider: {provider_tag}", provider=provider_tag
            )
        return kind

    def create_adapter(
        self,
        kind: ProviderKind,
        api_key: str,
        endpoint: Optional[ProviderEndpointConfig] = None,
        default_temperature: float = DEFAULT_TEMPERATURE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> ProviderAdapter:
        """
        Create an adapter instance for one request.

        Args:
            kind: Provider to create an adapter for
            api_key: Provider secret
            endpoint: Base URL and timeout overrides
            default_temperature: Temperature used when the request has none
            transport: Optional httpx transport

        Returns:
            Unconnected adapter instance
        """
        adapter_class = self._adapters[kind]
        endpoint = endpoint or ProviderEndpointConfig()
        return adapter_class(
            api_key=api_key,
            base_url=endpoint.base_url,
            timeout=endpoint.timeout,
            default_temperature=default_temperature,
            transport=transport,
        )

    def list_providers(self) -> List[str]:
        return [kind.value for kind in self._adapters]
