"""Creative search schema models."""

from dataclasses import asdict
from typing import Literal, Optional
from pydantic import BaseModel, Field

from analytics.creative_models import (
    DEFAULT_LIMIT,
    DailySnapshot,
    EnrichedCreative,
    LoadingState,
    SearchFilters,
)
from storage.models import CreativeComparison, CreativeMedia

from .common import PaginationMeta


class SearchFiltersRequest(BaseModel):
    """Request body for a creative search."""
    platform: Literal["meta", "google"] = "meta"
    campaign_ids: list[str] = Field(default_factory=list)
    adset_ids: list[str] = Field(default_factory=list)
    creative_type: Optional[str] = None
    search_query: Optional[str] = None
    date_from: Optional[str] = None  # YYYY-MM-DD
    date_to: Optional[str] = None
    min_impressions: Optional[float] = None
    max_impressions: Optional[float] = None
    min_spend: Optional[float] = None
    max_spend: Optional[float] = None
    min_ctr: Optional[float] = None
    max_ctr: Optional[float] = None
    tags: list[str] = Field(default_factory=list)
    sort_by: Optional[str] = None
    sort_order: Optional[Literal["asc", "desc"]] = None
    limit: int = Field(default=DEFAULT_LIMIT, ge=0, le=500)
    offset: int = Field(default=0, ge=0)

    def to_filters(self) -> SearchFilters:
        return SearchFilters(**self.model_dump())


class CreativeMediaResponse(BaseModel):
    """Media and copy of one creative."""
    ad_id: str
    creative_id: Optional[str] = None
    creative_type: str = "unknown"
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    preview_url: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    description: Optional[str] = None
    call_to_action: Optional[str] = None
    link_url: Optional[str] = None
    is_complete: bool = False
    fetch_status: str = "pending"

    @classmethod
    def from_media(cls, media: CreativeMedia) -> "CreativeMediaResponse":
        return cls(
            ad_id=media.ad_id,
            creative_id=media.creative_id,
            creative_type=media.creative_type,
            image_url=media.best_image_url,
            thumbnail_url=media.cached_thumbnail_url or media.thumbnail_url,
            video_url=media.best_video_url,
            preview_url=media.preview_url,
            title=media.title,
            body=media.body,
            description=media.description,
            call_to_action=media.call_to_action,
            link_url=media.link_url,
            is_complete=media.is_complete,
            fetch_status=media.fetch_status,
        )


class MetricsResponse(BaseModel):
    """Totals and derived ratios for one creative."""
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    reach: int = 0
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    frequency: float = 0.0
    conversions: float = 0.0
    conversion_value: float = 0.0
    roas: float = 0.0
    leads: float = 0.0
    messaging_starts: float = 0.0


class DailyMetricsResponse(BaseModel):
    """One day of a creative's metrics."""
    date: str
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    ctr: float = 0.0
    cpc: float = 0.0
    conversions: float = 0.0

    @classmethod
    def from_snapshot(cls, snapshot: DailySnapshot) -> "DailyMetricsResponse":
        return cls(**asdict(snapshot))


class LoadingStateResponse(BaseModel):
    """Enrichment status of one ad."""
    ad_id: str
    is_loading: bool
    has_error: bool = False
    error_message: Optional[str] = None

    @classmethod
    def from_state(cls, ad_id: str, state: LoadingState) -> "LoadingStateResponse":
        return cls(
            ad_id=ad_id,
            is_loading=state.is_loading,
            has_error=state.has_error,
            error_message=state.error_message,
        )


class EnrichedCreativeResponse(BaseModel):
    """Response model for one creative with metrics."""
    ad_id: str
    display_name: str
    campaign_id: str
    campaign_name: str
    adset_id: str
    adset_name: str
    account_id: str
    status: str
    creative: CreativeMediaResponse
    metrics: MetricsResponse
    daily_metrics: list[DailyMetricsResponse] = Field(default_factory=list)
    ai_score: Optional[float] = None
    tags: list[str] = Field(default_factory=list)
    loading_state: Optional[LoadingStateResponse] = None

    @classmethod
    def from_creative(
        cls,
        creative: EnrichedCreative,
        loading: Optional[LoadingState] = None,
    ) -> "EnrichedCreativeResponse":
        return cls(
            ad_id=creative.ad_id,
            display_name=creative.display_name,
            campaign_id=creative.campaign_id,
            campaign_name=creative.campaign_name,
            adset_id=creative.adset_id,
            adset_name=creative.adset_name,
            account_id=creative.account_id,
            status=creative.status,
            creative=CreativeMediaResponse.from_media(creative.creative),
            metrics=MetricsResponse(**asdict(creative.metrics)),
            daily_metrics=[DailyMetricsResponse.from_snapshot(d) for d in creative.daily_metrics],
            ai_score=creative.ai_score,
            tags=list(creative.tags),
            loading_state=(
                LoadingStateResponse.from_state(creative.ad_id, loading) if loading else None
            ),
        )


class SearchResponse(BaseModel):
    """Page of creatives plus pagination metadata."""
    data: list[EnrichedCreativeResponse]
    meta: PaginationMeta
    generation: int
    enrichment_in_progress: bool = False


class EnrichmentStatusResponse(BaseModel):
    """Global enrichment status."""
    in_progress: bool
    generation: int


class CampaignOptionResponse(BaseModel):
    """Campaign choice for the filter bar."""
    entity_id: str
    name: str
    status: str
    ad_count: int = 0


class AdsetOptionResponse(BaseModel):
    """Ad set choice for the filter bar."""
    entity_id: str
    name: str
    campaign_id: str


class TagRequest(BaseModel):
    """Request body for attaching a tag."""
    tag: str = Field(min_length=1, max_length=100)


class TagListResponse(BaseModel):
    """All tags in use."""
    tags: list[str]


class ComparisonRequest(BaseModel):
    """Request body for saving a comparison."""
    name: str = Field(min_length=1)
    ad_ids: list[str] = Field(min_length=1)
    platform: Literal["meta", "google"] = "meta"
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    filters_snapshot: dict = Field(default_factory=dict)


class ComparisonResponse(BaseModel):
    """A saved comparison."""
    id: str
    name: str
    ad_ids: list[str]
    platform: str
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    filters_snapshot: dict = Field(default_factory=dict)
    created_at: Optional[str] = None

    @classmethod
    def from_comparison(cls, comparison: CreativeComparison) -> "ComparisonResponse":
        return cls(**asdict(comparison))


class ComparisonCreatedResponse(BaseModel):
    """Id of a newly saved comparison."""
    id: str
