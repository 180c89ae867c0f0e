"""
Comparison history persistence.
"""

import json
import logging
from typing import Any, Dict, List

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine

from . import tables
from ..models.request import Principal, DEFAULT_PRINCIPAL

logger = logging.getLogger(__name__)


class HistoryRepository:
    """Saved side-by-side comparisons, newest first."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    async def save_comparison(
        self,
        system_prompt: str,
        user_prompt: str,
        responses: List[Dict[str, Any]],
        principal: Principal = DEFAULT_PRINCIPAL,
    ) -> int:
        async with self._engine.begin() as conn:
            result = await conn.execute(
                sa.insert(tables.chat_history).values(
                    user_id=principal.user_id,
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    responses=json.dumps(responses),
                )
            )
        comparison_id = result.inserted_primary_key[0]
        logger.info(f"Saved comparison {comparison_id} with {len(responses)} responses")
        return comparison_id

    async def recent_comparisons(
        self,
        limit: int = 10,
        principal: Principal = DEFAULT_PRINCIPAL,
    ) -> List[Dict[str, Any]]:
        query = (
            sa.select(tables.chat_history)
            .where(tables.chat_history.c.user_id == principal.user_id)
            .order_by(tables.chat_history.c.created_at.desc(), tables.chat_history.c.id.desc())
            .limit(limit)
        )
        async with self._engine.connect() as conn:
            rows = (await conn.execute(query)).mappings().all()

        return [
            {
                "id": row["id"],
                "system_prompt": row["system_prompt"],
                "user_prompt": row["user_prompt"],
                "created_at": row["created_at"].isoformat() if row["created_at"] else None,
                "responses": json.loads(row["responses"]),
            }
            for row in rows
        ]
