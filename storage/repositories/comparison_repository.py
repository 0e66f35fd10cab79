"""Saved comparison repository."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Optional

from .base import BaseRepository
from ..models import CreativeComparison

MAX_LISTED_COMPARISONS = 20


def _row_to_comparison(row: sqlite3.Row) -> CreativeComparison:
    snapshot = json.loads(row["filters_snapshot"]) if row["filters_snapshot"] else {}
    return CreativeComparison(
        id=row["id"],
        name=row["name"],
        ad_ids=json.loads(row["ad_ids"]),
        platform=row["platform"],
        date_from=row["date_from"],
        date_to=row["date_to"],
        filters_snapshot=snapshot,
        created_at=row["created_at"],
    )


class ComparisonRepository(BaseRepository[CreativeComparison]):
    """Repository for ``creative_comparisons`` rows."""

    def __init__(self, db_path: str | Path) -> None:
        super().__init__(db_path)

    async def save(self, comparison: CreativeComparison) -> None:
        """Insert or replace a comparison."""
        await self._execute(
            """
            INSERT OR REPLACE INTO creative_comparisons
            (id, name, ad_ids, platform, date_from, date_to, filters_snapshot, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, COALESCE(?, strftime('%Y-%m-%d %H:%M:%f', 'now')))
            """,
            (
                comparison.id,
                comparison.name,
                json.dumps(list(comparison.ad_ids)),
                comparison.platform,
                comparison.date_from,
                comparison.date_to,
                json.dumps(comparison.filters_snapshot or {}),
                comparison.created_at,
            ),
        )

    async def get(self, comparison_id: str) -> Optional[CreativeComparison]:
        rows = await self._fetch_all(
            "SELECT * FROM creative_comparisons WHERE id = ?", (comparison_id,)
        )
        return _row_to_comparison(rows[0]) if rows else None

    async def list_recent(
        self,
        platform: Optional[str] = None,
        limit: int = MAX_LISTED_COMPARISONS,
    ) -> list[CreativeComparison]:
        """List saved comparisons, newest first.

        Args:
            platform: Restrict to one ads platform.
            limit: Maximum number returned (capped at 20).

        Returns:
            CreativeComparison list.
        """
        limit = max(0, min(limit, MAX_LISTED_COMPARISONS))
        if platform:
            rows = await self._fetch_all(
                """
                SELECT * FROM creative_comparisons
                WHERE platform = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (platform, limit),
            )
        else:
            rows = await self._fetch_all(
                """
                SELECT * FROM creative_comparisons
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (limit,),
            )
        return [_row_to_comparison(r) for r in rows]

    async def delete(self, comparison_id: str) -> bool:
        """Delete a comparison. Returns False if it did not exist."""
        count = await self._execute(
            "DELETE FROM creative_comparisons WHERE id = ?", (comparison_id,)
        )
        return count > 0
