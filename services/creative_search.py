"""Creative Search Service.

Runs one creative search against the store:
fetch insight rows → aggregate per ad → join media, names, status, scores
and tags → filter, sort and page.

All store reads happen here; everything after the reads is synchronous.
"""

import asyncio
import logging
from typing import Optional, Protocol

from analytics.creative_joiner import index_media, join_creatives
from analytics.creative_models import SearchFilters, SearchResult
from analytics.filter_sort_page import filter_sort_page
from analytics.metrics_aggregator import aggregate_insights
from storage.models import (
    CREATIVE_TYPES,
    REPORTING_LEVELS,
    AdsetOption,
    CampaignOption,
    CreativeMedia,
    InsightRow,
    InsightScope,
)

logger = logging.getLogger(__name__)

PLATFORMS = ("meta", "google")


class CreativeDataSource(Protocol):
    """Read interface the search pipeline needs from the store."""

    async def fetch_insight_rows(
        self,
        scope: Optional[InsightScope],
        level: str,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> list[InsightRow]: ...

    async def fetch_creative_media(self, ad_ids: list[str]) -> list[CreativeMedia]: ...

    async def fetch_entity_names(self, entity_ids: list[str]) -> dict[str, str]: ...

    async def fetch_ad_statuses(self, ad_ids: list[str]) -> dict[str, str]: ...

    async def fetch_ai_scores(self, ad_ids: list[str]) -> dict[str, float]: ...

    async def fetch_tags(self, ad_ids: list[str]) -> dict[str, list[str]]: ...

    async def list_campaign_options(self, platform: str = "meta") -> list[CampaignOption]: ...

    async def list_adset_options(self, campaign_id: str) -> list[AdsetOption]: ...


def validate_filters(filters: SearchFilters) -> None:
    """Reject filters no search can satisfy.

    Raises:
        ValueError: On an unknown platform or creative type, or a date
            range that ends before it starts.
    """
    if filters.platform not in PLATFORMS:
        raise ValueError(f"Unknown platform: {filters.platform}")
    if filters.creative_type not in (None, "all") and filters.creative_type not in CREATIVE_TYPES:
        raise ValueError(f"Unknown creative type: {filters.creative_type}")
    if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
        raise ValueError(
            f"date_from {filters.date_from} is after date_to {filters.date_to}"
        )


class CreativeSearchService:
    """Service running the creative search pipeline over a data source."""

    def __init__(self, store: CreativeDataSource, level: str = "ad") -> None:
        """Initialize with a data source and the reporting level to search.

        Raises:
            ValueError: If level is not a reporting level.
        """
        if level not in REPORTING_LEVELS:
            raise ValueError(f"Unknown reporting level: {level}")
        self.store = store
        self.level = level

    async def search(self, filters: SearchFilters) -> SearchResult:
        """Run one search.

        Args:
            filters: Scope, thresholds, sort and window.

        Returns:
            SearchResult with one page of enriched creatives.

        Raises:
            ValueError: If the filters are invalid.
            StoreError: If any store read fails.
        """
        validate_filters(filters)

        scope = InsightScope(filters.campaign_ids, filters.adset_ids)
        rows = await self.store.fetch_insight_rows(
            scope, self.level, filters.date_from, filters.date_to
        )
        metrics = aggregate_insights(rows)
        ad_ids = list(metrics)

        parent_ids = sorted(
            {m.campaign_id for m in metrics.values() if m.campaign_id}
            | {m.adset_id for m in metrics.values() if m.adset_id}
        )

        media, names, statuses, scores, tags = await asyncio.gather(
            self.store.fetch_creative_media(ad_ids),
            self.store.fetch_entity_names(parent_ids),
            self.store.fetch_ad_statuses(ad_ids),
            self.store.fetch_ai_scores(ad_ids),
            self.store.fetch_tags(ad_ids),
        )

        joined = join_creatives(
            metrics,
            index_media(media),
            entity_names=names,
            statuses=statuses,
            ai_scores=scores,
            tags=tags,
        )
        result = filter_sort_page(joined, filters)

        logger.info(
            f"Search completed: {len(rows)} rows, {len(metrics)} entities, "
            f"{result.total} matched, {len(result.creatives)} returned "
            f"(offset {filters.offset})"
        )
        return result

    async def list_campaign_options(self, platform: str = "meta") -> list[CampaignOption]:
        """Campaigns for the filter bar, with ad counts."""
        return await self.store.list_campaign_options(platform)

    async def list_adset_options(self, campaign_id: str) -> list[AdsetOption]:
        """Ad sets of one campaign for the filter bar."""
        return await self.store.list_adset_options(campaign_id)
