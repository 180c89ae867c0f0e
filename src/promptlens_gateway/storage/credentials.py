"""
Credential store backed by the api_keys table.
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol, Union

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine

from . import tables
from ..models.request import Principal, DEFAULT_PRINCIPAL

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Provider to secret mapping consulted by the gateway."""

    async def get(self, provider: str, principal: Principal = DEFAULT_PRINCIPAL) -> Optional[str]:
        ...

    async def put(self, provider: str, secret: str, principal: Principal = DEFAULT_PRINCIPAL) -> None:
        ...


class SqlCredentialStore:
    """
    Stores one secret per (provider, principal).

    ``put`` replaces the row inside a single transaction, so a concurrent
    ``get`` sees either the previous secret or the new one.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    async def get(self, provider: str, principal: Principal = DEFAULT_PRINCIPAL) -> Optional[str]:
        query = sa.select(tables.api_keys.c.api_key).where(
            tables.api_keys.c.provider == provider,
            tables.api_keys.c.user_id == principal.user_id,
        )
        async with self._engine.connect() as conn:
            secret = (await conn.execute(query)).scalar_one_or_none()
        return secret or None

    async def put(self, provider: str, secret: str, principal: Principal = DEFAULT_PRINCIPAL) -> None:
        async with self._engine.begin() as conn:
            await conn.execute(
                sa.delete(tables.api_keys).where(
                    tables.api_keys.c.provider == provider,
                    tables.api_keys.c.user_id == principal.user_id,
                )
            )
            await conn.execute(
                sa.insert(tables.api_keys).values(
                    provider=provider, api_key=secret, user_id=principal.user_id
                )
            )
        logger.info(f"Stored API key for provider {provider}")

    async def info(
        self,
        providers: Iterable[str],
        principal: Principal = DEFAULT_PRINCIPAL,
    ) -> List[Dict[str, Union[str, bool]]]:
        """Report which providers have a stored secret, without revealing it."""
        return [
            {"provider": provider, "exists": await self.get(provider, principal) is not None}
            for provider in providers
        ]
