"""
Configuration loading for the completion gateway.
"""

import os
import logging
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .normalization import DEFAULT_TEMPERATURE

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./promptlens.db"


@dataclass
class ProviderEndpointConfig:
    """Endpoint settings for one provider."""
    base_url: Optional[str] = None
    timeout: float = 60.0


@dataclass
class GatewaySettings:
    """Complete service configuration."""
    database_url: str = DEFAULT_DATABASE_URL
    default_temperature: float = DEFAULT_TEMPERATURE
    providers: Dict[str, ProviderEndpointConfig] = field(default_factory=dict)
    # Provider secrets stored for the default principal at startup
    api_keys: Dict[str, str] = field(default_factory=dict)
    otel_endpoint: Optional[str] = None
    environment: str = "development"
    cors_origins: List[str] = field(default_factory=list)
    host: str = "0.0.0.0"
    port: int = 3001

    def endpoint(self, provider: str) -> ProviderEndpointConfig:
        return self.providers.get(provider) or ProviderEndpointConfig()


def load_settings(config_path: Optional[str] = None) -> GatewaySettings:
    """
    Load gateway configuration from a YAML file.

    Args:
        config_path: Path to config file. If None, uses default locations.

    Returns:
        Loaded configuration
    """
    if config_path is None:
        # Try common locations
        paths = [
            Path(os.environ["PROMPTLENS_CONFIG"]) if os.environ.get("PROMPTLENS_CONFIG") else None,
            Path("config/promptlens.yaml"),
            Path("/etc/promptlens/gateway.yaml"),
            Path.home() / ".config/promptlens/gateway.yaml",
        ]
        for p in paths:
            if p is not None and p.exists():
                config_path = str(p)
                break

    if config_path is None or not Path(config_path).exists():
        logger.warning("No gateway config file found, using environment defaults")
        return _default_settings()

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return _parse_settings(data)

    except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return _default_settings()


def _expand(value: Any) -> Any:
    """Expand a whole-string ``${VAR}`` reference from the environment."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1], "")
    return value


def _parse_settings(data: Dict[str, Any]) -> GatewaySettings:
    """Parse configuration dictionary."""
    defaults = _default_settings()
    providers = dict(defaults.providers)
    api_keys = dict(defaults.api_keys)

    for name, provider_data in (data.get("providers") or {}).items():
        provider_data = provider_data or {}
        providers[name] = ProviderEndpointConfig(
            base_url=_expand(provider_data.get("base_url")) or None,
            timeout=float(provider_data.get("timeout", 60.0)),
        )
        api_key = _expand(provider_data.get("api_key", ""))
        if api_key:
            api_keys[name] = api_key

    cors_origins = data.get("cors_origins", defaults.cors_origins)
    if isinstance(cors_origins, str):
        cors_origins = [o.strip() for o in cors_origins.split(",") if o.strip()]

    return GatewaySettings(
        database_url=_expand(data.get("database_url")) or defaults.database_url,
        default_temperature=float(data.get("default_temperature", defaults.default_temperature)),
        providers=providers,
        api_keys=api_keys,
        otel_endpoint=_expand(data.get("otel_endpoint")) or defaults.otel_endpoint,
        environment=data.get("environment", defaults.environment),
        cors_origins=cors_origins,
        host=data.get("host", defaults.host),
        port=int(data.get("port", defaults.port)),
    )


def _default_settings() -> GatewaySettings:
    """Return configuration built from environment variables."""
    api_keys = {}
    if os.environ.get("OPENAI_KEY"):
        api_keys["openai"] = os.environ["OPENAI_KEY"]
    if os.environ.get("ANTHROPIC_KEY"):
        api_keys["anthropic"] = os.environ["ANTHROPIC_KEY"]

    environment = os.environ.get("ENVIRONMENT", "development")
    if environment == "production":
        origins = os.environ.get("CORS_ORIGINS", "").split(",")
        cors_origins = [o.strip() for o in origins if o.strip()]
    else:
        cors_origins = [
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:3000",
        ]

    return GatewaySettings(
        database_url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        providers={
            "openai": ProviderEndpointConfig(base_url=os.environ.get("OPENAI_BASE_URL")),
            "anthropic": ProviderEndpointConfig(base_url=os.environ.get("ANTHROPIC_BASE_URL")),
        },
        api_keys=api_keys,
        otel_endpoint=os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT"),
        environment=environment,
        cors_origins=cors_origins,
        port=int(os.environ.get("PORT", 3001)),
    )
