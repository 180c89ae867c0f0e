"""
Core gateway components.

The completion gateway itself lives in ``core.gateway``; it depends on the
storage layer, so it is not imported here.
"""

from .interface import AdapterCapability, ProviderAdapter
from .registry import AdapterRegistry
from .config import GatewaySettings, ProviderEndpointConfig, load_settings
from .errors import (
    GatewayError,
    InvalidRequestError,
    ModelNotFoundError,
    MissingCredentialError,
    UnsupportedProviderError,
    UpstreamError,
    UpstreamTransientError,
    UpstreamModelUnavailableError,
    UpstreamRejectedError,
    MigrationError,
    is_model_not_found,
)

__all__ = [
    "AdapterCapability",
    "ProviderAdapter",
    "AdapterRegistry",
    "GatewaySettings",
    "ProviderEndpointConfig",
    "load_settings",
    "GatewayError",
    "InvalidRequestError",
    "ModelNotFoundError",
    "MissingCredentialError",
    "UnsupportedProviderError",
    "UpstreamError",
    "UpstreamTransientError",
    "UpstreamModelUnavailableError",
    "UpstreamRejectedError",
    "MigrationError",
    "is_model_not_found",
]
