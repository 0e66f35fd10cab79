"""Filtering, sorting and pagination of enriched creatives.

All three stages are synchronous and side-effect free. ``filter_sort_page``
composes them into the SearchResult returned to callers.
"""

from typing import Callable, Iterable, Optional, Sequence

from analytics.creative_models import (
    DEFAULT_LIMIT,
    EnrichedCreative,
    SearchFilters,
    SearchResult,
)

DEFAULT_SORT_KEY = "spend"
DEFAULT_SORT_ORDER = "desc"

_SORT_VALUES: dict[str, Callable[[EnrichedCreative], object]] = {
    "spend": lambda c: c.metrics.spend,
    "impressions": lambda c: c.metrics.impressions,
    "clicks": lambda c: c.metrics.clicks,
    "ctr": lambda c: c.metrics.ctr,
    "cpc": lambda c: c.metrics.cpc,
    "conversions": lambda c: c.metrics.conversions,
    # ISO dates sort lexically; '' (no snapshots) sorts as the oldest
    "date": lambda c: c.latest_date,
}


def _within(value: float, minimum: Optional[float], maximum: Optional[float]) -> bool:
    if minimum is not None and value < minimum:
        return False
    if maximum is not None and value > maximum:
        return False
    return True


def _matches_text(creative: EnrichedCreative, query: str) -> bool:
    needle = query.lower()
    return any(needle in text.lower() for text in creative.creative.text_fields())


def matches_filters(creative: EnrichedCreative, filters: SearchFilters) -> bool:
    """Check one creative against every predicate in the filters (AND)."""
    if filters.creative_type and filters.creative_type != "all":
        if creative.creative.creative_type != filters.creative_type:
            return False

    if filters.search_query and not _matches_text(creative, filters.search_query):
        return False

    m = creative.metrics
    if not _within(m.spend, filters.min_spend, filters.max_spend):
        return False
    if not _within(m.impressions, filters.min_impressions, filters.max_impressions):
        return False
    if not _within(m.ctr, filters.min_ctr, filters.max_ctr):
        return False

    if filters.tags and not any(tag in creative.tags for tag in filters.tags):
        return False

    return True


def filter_creatives(
    creatives: Iterable[EnrichedCreative], filters: SearchFilters
) -> list[EnrichedCreative]:
    return [c for c in creatives if matches_filters(c, filters)]


def sort_creatives(
    creatives: Iterable[EnrichedCreative],
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> list[EnrichedCreative]:
    """Sort by a single key. Unknown keys fall back to spend, order to desc."""
    key = _SORT_VALUES.get(sort_by or DEFAULT_SORT_KEY, _SORT_VALUES[DEFAULT_SORT_KEY])
    descending = (sort_order or DEFAULT_SORT_ORDER) != "asc"
    return sorted(creatives, key=key, reverse=descending)


def paginate(
    creatives: Sequence[EnrichedCreative], offset: int = 0, limit: int = DEFAULT_LIMIT
) -> SearchResult:
    """Window a filtered, sorted list.

    ``total`` is the full length; ``has_more`` is ``offset + limit < total``.
    An offset past the end yields an empty page.
    """
    offset = max(0, offset)
    limit = max(0, limit)
    total = len(creatives)
    page = list(creatives[offset:offset + limit])
    return SearchResult(creatives=page, total=total, has_more=offset + limit < total)


def filter_sort_page(
    creatives: Iterable[EnrichedCreative], filters: SearchFilters
) -> SearchResult:
    """Run filter, sort and pagination for one search."""
    filtered = filter_creatives(creatives, filters)
    ordered = sort_creatives(filtered, filters.sort_by, filters.sort_order)
    return paginate(ordered, filters.offset, filters.limit)
