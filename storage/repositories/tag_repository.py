"""Creative tag repository.

Tags are free-form labels attached to ads. A tag is stored once per ad;
adding an existing tag is a no-op.
"""

from __future__ import annotations

from pathlib import Path

from .base import BaseRepository


class TagRepository(BaseRepository[str]):
    """Repository for ``creative_tags`` rows."""

    def __init__(self, db_path: str | Path) -> None:
        super().__init__(db_path)

    async def get_tags(self, ad_ids: list[str]) -> dict[str, list[str]]:
        """Get tags for the given ads.

        Args:
            ad_ids: Ads to look up.

        Returns:
            Dict of ad_id to its sorted tag list. Untagged ads are absent.
        """
        if not ad_ids:
            return {}
        rows = await self._fetch_all_in(
            """
            SELECT ad_id, tag
            FROM creative_tags
            WHERE ad_id IN ({ids})
            ORDER BY ad_id, tag
            """,
            ad_ids,
        )
        tags: dict[str, list[str]] = {}
        for row in rows:
            tags.setdefault(row["ad_id"], []).append(row["tag"])
        return tags

    async def add_tag(self, ad_id: str, tag: str) -> bool:
        """Attach a tag to an ad. Returns False if it was already attached."""
        count = await self._execute(
            "INSERT OR IGNORE INTO creative_tags (ad_id, tag) VALUES (?, ?)",
            (ad_id, tag),
        )
        return count > 0

    async def remove_tag(self, ad_id: str, tag: str) -> bool:
        """Detach a tag from an ad. Returns False if it was not attached."""
        count = await self._execute(
            "DELETE FROM creative_tags WHERE ad_id = ? AND tag = ?",
            (ad_id, tag),
        )
        return count > 0

    async def all_tags(self) -> list[str]:
        """Every distinct tag in use, sorted."""
        rows = await self._fetch_all("SELECT DISTINCT tag FROM creative_tags ORDER BY tag")
        return [r["tag"] for r in rows]
