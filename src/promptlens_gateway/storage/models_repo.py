"""
Model registry data access.
"""

import logging
from typing import List

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine

from . import tables
from ..core.errors import ModelNotFoundError
from ..models.registry import ModelDescriptor, ModelListing, ProviderKind
from ..models.request import Principal, DEFAULT_PRINCIPAL

logger = logging.getLogger(__name__)

_DESCRIPTOR_COLUMNS = [c for c in tables.models.c if c.name != "created_at"]


class ModelRegistry:
    """
    Read-only access to the models table.

    Rows are installed by migrations only; nothing here writes to them.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    async def get(self, model_id: str) -> ModelDescriptor:
        """
        Look up one model.

        Raises:
            ModelNotFoundError: If the id is not in the registry
        """
        query = sa.select(*_DESCRIPTOR_COLUMNS).where(tables.models.c.id == model_id)
        async with self._engine.connect() as conn:
            row = (await conn.execute(query)).mappings().first()

        if row is None:
            raise ModelNotFoundError(f"Model {model_id} not found in registry", model=model_id)
        return ModelDescriptor(**row)

    async def list_models(self, principal: Principal = DEFAULT_PRINCIPAL) -> List[ModelListing]:
        """
        List every model with the principal's favorite flag.

        Ordered provider first (openai, anthropic, then the rest), then by
        descending input cost.
        """
        provider_order = sa.case(
            (tables.models.c.provider == ProviderKind.OPENAI.value, 1),
            (tables.models.c.provider == ProviderKind.ANTHROPIC.value, 2),
            else_=3,
        )
        query = sa.select(*_DESCRIPTOR_COLUMNS).order_by(
            provider_order, tables.models.c.input_cost_per_1m.desc()
        )
        favorites_query = sa.select(tables.model_favorites.c.model_id).where(
            tables.model_favorites.c.user_id == principal.user_id
        )

        async with self._engine.connect() as conn:
            rows = (await conn.execute(query)).mappings().all()
            favorites = set((await conn.execute(favorites_query)).scalars().all())

        return [ModelListing(**row, is_favorite=row["id"] in favorites) for row in rows]
