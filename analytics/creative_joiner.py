"""Join aggregated metrics with creative media and lookup tables.

Builds one EnrichedCreative per aggregated entity. Every lookup is optional:
missing media becomes a placeholder, missing names fall back to raw ids,
missing status to 'unknown', missing score to None and missing tags to ().
"""

import logging
from typing import Iterable, Mapping, Optional, Sequence

from analytics.creative_models import AggregatedMetrics, EnrichedCreative
from storage.models import CreativeMedia

logger = logging.getLogger(__name__)

UNKNOWN_STATUS = "unknown"


def index_media(media: Iterable[CreativeMedia]) -> dict[str, CreativeMedia]:
    """Index creative media by ad id. Later records win on duplicates."""
    return {m.ad_id: m for m in media}


def join_creatives(
    metrics: Mapping[str, AggregatedMetrics],
    media_by_ad: Mapping[str, CreativeMedia],
    entity_names: Optional[Mapping[str, str]] = None,
    statuses: Optional[Mapping[str, str]] = None,
    ai_scores: Optional[Mapping[str, float]] = None,
    tags: Optional[Mapping[str, Sequence[str]]] = None,
) -> list[EnrichedCreative]:
    """Merge per-entity metrics with media, names, status, score and tags.

    Args:
        metrics: Aggregated metrics keyed by ad id.
        media_by_ad: Creative media keyed by ad id.
        entity_names: Campaign and ad set names keyed by entity id.
        statuses: Effective status keyed by ad id.
        ai_scores: AI analysis overall score keyed by ad id.
        tags: Tags keyed by ad id.

    Returns:
        One EnrichedCreative per entry in ``metrics``. Order is unspecified.
    """
    entity_names = entity_names or {}
    statuses = statuses or {}
    ai_scores = ai_scores or {}
    tags = tags or {}

    enriched = []
    placeholders = 0
    for ad_id, m in metrics.items():
        media = media_by_ad.get(ad_id)
        if media is None:
            media = CreativeMedia.placeholder(ad_id)
            placeholders += 1

        enriched.append(EnrichedCreative(
            creative=media,
            display_name=m.entity_name or ad_id,
            campaign_name=entity_names.get(m.campaign_id) or m.campaign_id,
            adset_name=entity_names.get(m.adset_id) or m.adset_id,
            campaign_id=m.campaign_id,
            adset_id=m.adset_id,
            account_id=media.account_id or m.account_id or "",
            status=statuses.get(ad_id) or UNKNOWN_STATUS,
            metrics=m.to_derived(),
            daily_metrics=tuple(m.daily),
            ai_score=ai_scores.get(ad_id),
            tags=tuple(tags.get(ad_id, ())),
        ))

    if placeholders:
        logger.debug(f"Synthesized {placeholders} placeholder creatives")
    return enriched
