"""Creative Insights - Analytics Module.

This module provides the synchronous creative search pipeline: action
parsing, per-entity metric aggregation, joining with creative media, and
filtering, sorting and pagination.

Example:
    >>> from analytics import aggregate_insights, join_creatives, filter_sort_page
    >>> from analytics import SearchFilters
    >>>
    >>> metrics = aggregate_insights(rows)
    >>> creatives = join_creatives(metrics, media_by_ad)
    >>> result = filter_sort_page(creatives, SearchFilters(min_spend=10))
    >>> print(f"{result.total} creatives, first page {len(result.creatives)}")
"""

from analytics.actions import (
    ActionTotals,
    extract_conversion_value,
    extract_conversions,
    extract_leads,
    extract_messaging_starts,
    parse_actions,
)
from analytics.creative_joiner import index_media, join_creatives
from analytics.creative_models import (
    AggregatedMetrics,
    DailySnapshot,
    DerivedMetrics,
    EnrichedCreative,
    LoadingState,
    ParsedAction,
    SearchFilters,
    SearchResult,
)
from analytics.filter_sort_page import (
    filter_creatives,
    filter_sort_page,
    paginate,
    sort_creatives,
)
from analytics.metrics_aggregator import MixedLevelError, aggregate_insights

__all__ = [
    # Models
    "AggregatedMetrics",
    "DailySnapshot",
    "DerivedMetrics",
    "EnrichedCreative",
    "LoadingState",
    "ParsedAction",
    "SearchFilters",
    "SearchResult",
    # Actions
    "ActionTotals",
    "extract_conversion_value",
    "extract_conversions",
    "extract_leads",
    "extract_messaging_starts",
    "parse_actions",
    # Pipeline
    "MixedLevelError",
    "aggregate_insights",
    "index_media",
    "join_creatives",
    "filter_creatives",
    "filter_sort_page",
    "paginate",
    "sort_creatives",
]
