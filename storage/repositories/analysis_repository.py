"""AI analysis score repository."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .base import BaseRepository


class AnalysisRepository(BaseRepository[float]):
    """Repository for per-ad AI analysis scores."""

    def __init__(self, db_path: str | Path) -> None:
        super().__init__(db_path)

    async def get_scores(self, ad_ids: list[str]) -> dict[str, float]:
        """Get overall scores for the given ads. Unscored ads are absent."""
        if not ad_ids:
            return {}
        rows = await self._fetch_all_in(
            """
            SELECT ad_id, overall_score
            FROM ad_ai_analyses
            WHERE ad_id IN ({ids})
              AND overall_score IS NOT NULL
            """,
            ad_ids,
        )
        return {r["ad_id"]: float(r["overall_score"]) for r in rows}

    async def save_score(self, ad_id: str, score: Optional[float]) -> None:
        """Store or clear the overall score for one ad."""
        await self._execute(
            """
            INSERT OR REPLACE INTO ad_ai_analyses (ad_id, overall_score, analyzed_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
            (ad_id, score),
        )
