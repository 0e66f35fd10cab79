"""Entity cache repository for campaigns, ad sets and ads."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Optional

from .base import BaseRepository
from ..models import EntityRecord


def _row_to_entity(row: sqlite3.Row) -> EntityRecord:
    return EntityRecord(
        entity_id=row["entity_id"],
        entity_type=row["entity_type"],
        name=row["name"],
        effective_status=row["effective_status"],
        campaign_id=row["campaign_id"],
        adset_id=row["adset_id"],
        account_id=row["account_id"],
    )


class EntityRepository(BaseRepository[EntityRecord]):
    """Repository for ``entities_cache`` rows."""

    def __init__(self, db_path: str | Path) -> None:
        super().__init__(db_path)

    async def get_many(self, entity_ids: list[str]) -> list[EntityRecord]:
        """Get cached entities by id, of any type."""
        if not entity_ids:
            return []
        rows = await self._fetch_all_in(
            """
            SELECT entity_id, entity_type, name, effective_status,
                   campaign_id, adset_id, account_id
            FROM entities_cache
            WHERE entity_id IN ({ids})
            """,
            entity_ids,
        )
        return [_row_to_entity(r) for r in rows]

    async def list_by_type(
        self,
        entity_type: str,
        campaign_id: Optional[str] = None,
    ) -> list[EntityRecord]:
        """List cached entities of one type, ordered by name.

        Args:
            entity_type: 'campaign', 'adset' or 'ad'.
            campaign_id: Restrict to children of this campaign.

        Returns:
            EntityRecord list.
        """
        query = """
            SELECT entity_id, entity_type, name, effective_status,
                   campaign_id, adset_id, account_id
            FROM entities_cache
            WHERE entity_type = ?
        """
        params: list[Any] = [entity_type]
        if campaign_id:
            query += " AND campaign_id = ?"
            params.append(campaign_id)
        query += " ORDER BY name COLLATE NOCASE, entity_id"

        rows = await self._fetch_all(query, params)
        return [_row_to_entity(r) for r in rows]

    async def save_many(self, entities: list[EntityRecord]) -> int:
        """Insert or replace cached entities."""
        if not entities:
            return 0
        return await self._execute_many(
            """
            INSERT OR REPLACE INTO entities_cache
            (entity_id, entity_type, name, effective_status,
             campaign_id, adset_id, account_id, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            """,
            [
                (
                    e.entity_id, e.entity_type, e.name, e.effective_status,
                    e.campaign_id, e.adset_id, e.account_id,
                )
                for e in entities
            ],
        )
