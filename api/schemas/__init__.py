"""API Schema models for Creative Insights."""

from .common import (
    MessageResponse,
    PaginationMeta,
)

from .creatives import (
    AdsetOptionResponse,
    CampaignOptionResponse,
    ComparisonCreatedResponse,
    ComparisonRequest,
    ComparisonResponse,
    CreativeMediaResponse,
    DailyMetricsResponse,
    EnrichedCreativeResponse,
    EnrichmentStatusResponse,
    LoadingStateResponse,
    MetricsResponse,
    SearchFiltersRequest,
    SearchResponse,
    TagListResponse,
    TagRequest,
)

__all__ = [
    "MessageResponse",
    "PaginationMeta",
    "AdsetOptionResponse",
    "CampaignOptionResponse",
    "ComparisonCreatedResponse",
    "ComparisonRequest",
    "ComparisonResponse",
    "CreativeMediaResponse",
    "DailyMetricsResponse",
    "EnrichedCreativeResponse",
    "EnrichmentStatusResponse",
    "LoadingStateResponse",
    "MetricsResponse",
    "SearchFiltersRequest",
    "SearchResponse",
    "TagListResponse",
    "TagRequest",
]
