"""SQLite storage backend for creative insights.

This module provides the main SQLiteStore class which acts as a facade
for underlying repository classes. The search pipeline reads through the
``fetch_*`` methods; tags and comparisons are read and written directly.

Example:
    >>> from storage import SQLiteStore
    >>>
    >>> store = SQLiteStore(db_path="~/.creative-insights/insights.db")
    >>> await store.initialize()
    >>>
    >>> rows = await store.fetch_insight_rows(None, "ad", "2024-01-01", "2024-01-31")
    >>> media = await store.fetch_creative_media([r.entity_id for r in rows])
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import uuid
from pathlib import Path
from typing import Optional

from .errors import StoreError
from .models import (
    AdsetOption,
    CampaignOption,
    CreativeComparison,
    CreativeMedia,
    EntityRecord,
    InsightRow,
    InsightScope,
)
from .schema import SCHEMA
from .repositories import (
    AnalysisRepository,
    ComparisonRepository,
    CreativeMediaRepository,
    EntityRepository,
    InsightsRepository,
    TagRepository,
)

logger = logging.getLogger(__name__)

# Entity cache and insights hold Meta data only
SUPPORTED_OPTION_PLATFORMS = ("meta",)


class SQLiteStore:
    """Async SQLite storage for creative insights data.

    This class acts as a facade, delegating to specialized repositories.

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str | Path = "~/.creative-insights/insights.db") -> None:
        """Initialize the SQLite store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path).expanduser()
        self._initialized = False

        self._insights_repo = InsightsRepository(self.db_path)
        self._media_repo = CreativeMediaRepository(self.db_path)
        self._entity_repo = EntityRepository(self.db_path)
        self._analysis_repo = AnalysisRepository(self.db_path)
        self._tag_repo = TagRepository(self.db_path)
        self._comparison_repo = ComparisonRepository(self.db_path)

    async def initialize(self) -> None:
        """Initialize the database schema.

        Creates the database file and tables if they don't exist.

        Raises:
            StoreError: If the schema cannot be created.
        """
        if self._initialized:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._init_schema)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to initialize database {self.db_path}: {e}") from e
        self._initialized = True
        logger.info(f"Database initialized at {self.db_path}")

    def _init_schema(self) -> None:
        """Synchronously create the database schema."""
        conn = sqlite3.connect(self.db_path)
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    # =========================================================================
    # Search pipeline reads
    # =========================================================================

    async def fetch_insight_rows(
        self,
        scope: Optional[InsightScope],
        level: str,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> list[InsightRow]:
        """Daily insight rows for one level, date range and scope."""
        await self.initialize()
        return await self._insights_repo.fetch_rows(scope, level, date_from, date_to)

    async def fetch_creative_media(self, ad_ids: list[str]) -> list[CreativeMedia]:
        """Stored creative media for the given ads."""
        await self.initialize()
        return await self._media_repo.get_by_ad_ids(list(ad_ids))

    async def fetch_entity_names(self, entity_ids: list[str]) -> dict[str, str]:
        """Cached names for campaigns/ad sets/ads. Unnamed entities are absent."""
        await self.initialize()
        entities = await self._entity_repo.get_many(list(entity_ids))
        return {e.entity_id: e.name for e in entities if e.name}

    async def fetch_ad_statuses(self, ad_ids: list[str]) -> dict[str, str]:
        """Effective delivery status per ad, from the entity cache."""
        await self.initialize()
        entities = await self._entity_repo.get_many(list(ad_ids))
        return {
            e.entity_id: e.effective_status
            for e in entities
            if e.entity_type == "ad" and e.effective_status
        }

    async def fetch_ai_scores(self, ad_ids: list[str]) -> dict[str, float]:
        await self.initialize()
        return await self._analysis_repo.get_scores(list(ad_ids))

    async def fetch_tags(self, ad_ids: list[str]) -> dict[str, list[str]]:
        await self.initialize()
        return await self._tag_repo.get_tags(list(ad_ids))

    # =========================================================================
    # Writes used by sync jobs
    # =========================================================================

    async def save_insight_rows(self, rows: list[InsightRow]) -> int:
        await self.initialize()
        return await self._insights_repo.save_rows(rows)

    async def save_creative_media(self, media: list[CreativeMedia]) -> int:
        await self.initialize()
        return await self._media_repo.save_many(media)

    async def save_entities(self, entities: list[EntityRecord]) -> int:
        await self.initialize()
        return await self._entity_repo.save_many(entities)

    async def save_ai_score(self, ad_id: str, score: Optional[float]) -> None:
        await self.initialize()
        await self._analysis_repo.save_score(ad_id, score)

    # =========================================================================
    # Filter options
    # =========================================================================

    async def list_campaign_options(self, platform: str = "meta") -> list[CampaignOption]:
        """Campaigns for the filter bar with their ad counts.

        Args:
            platform: Ads platform. Platforms without cached entities yield [].

        Returns:
            CampaignOption list ordered by name.
        """
        if platform not in SUPPORTED_OPTION_PLATFORMS:
            return []
        await self.initialize()
        campaigns = await self._entity_repo.list_by_type("campaign")
        counts = await self._insights_repo.count_ads_by_campaign()
        return [
            CampaignOption(
                entity_id=c.entity_id,
                name=c.name or c.entity_id,
                status=c.effective_status or "unknown",
                ad_count=counts.get(c.entity_id, 0),
            )
            for c in campaigns
        ]

    async def list_adset_options(self, campaign_id: str) -> list[AdsetOption]:
        """Ad sets of one campaign for the filter bar."""
        await self.initialize()
        adsets = await self._entity_repo.list_by_type("adset", campaign_id=campaign_id)
        return [
            AdsetOption(
                entity_id=a.entity_id,
                name=a.name or a.entity_id,
                campaign_id=a.campaign_id or campaign_id,
            )
            for a in adsets
        ]

    # =========================================================================
    # Tags
    # =========================================================================

    async def add_tag(self, ad_id: str, tag: str) -> bool:
        await self.initialize()
        return await self._tag_repo.add_tag(ad_id, tag)

    async def remove_tag(self, ad_id: str, tag: str) -> bool:
        await self.initialize()
        return await self._tag_repo.remove_tag(ad_id, tag)

    async def get_all_tags(self) -> list[str]:
        await self.initialize()
        return await self._tag_repo.all_tags()

    # =========================================================================
    # Comparisons
    # =========================================================================

    async def save_comparison(
        self,
        name: str,
        ad_ids: list[str],
        platform: str = "meta",
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        filters_snapshot: Optional[dict] = None,
    ) -> str:
        """Save a named comparison of ads.

        Returns:
            The new comparison id.
        """
        await self.initialize()
        comparison = CreativeComparison(
            id=uuid.uuid4().hex,
            name=name,
            ad_ids=list(ad_ids),
            platform=platform,
            date_from=date_from,
            date_to=date_to,
            filters_snapshot=dict(filters_snapshot or {}),
        )
        await self._comparison_repo.save(comparison)
        logger.info(f"Saved comparison {comparison.id} with {len(ad_ids)} ads")
        return comparison.id

    async def get_comparison(self, comparison_id: str) -> Optional[CreativeComparison]:
        await self.initialize()
        return await self._comparison_repo.get(comparison_id)

    async def list_comparisons(self, platform: Optional[str] = None) -> list[CreativeComparison]:
        """Saved comparisons, newest first, at most 20."""
        await self.initialize()
        return await self._comparison_repo.list_recent(platform)

    async def delete_comparison(self, comparison_id: str) -> bool:
        await self.initialize()
        return await self._comparison_repo.delete(comparison_id)
