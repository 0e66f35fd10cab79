"""Data models for Creative Insights storage.

This module contains all dataclass definitions used across storage repositories.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

CreativeType = Literal["image", "video", "carousel", "dynamic", "unknown"]
FetchStatus = Literal["success", "partial", "failed", "pending"]
ThumbnailQuality = Literal["hd", "sd", "low", "unknown"]
ReportingLevel = Literal["ad", "adset", "campaign"]

CREATIVE_TYPES: tuple[str, ...] = ("image", "video", "carousel", "dynamic", "unknown")
REPORTING_LEVELS: tuple[str, ...] = ("ad", "adset", "campaign")


@dataclass(frozen=True)
class InsightRow:
    """One day of raw performance counters for one entity.

    Attributes:
        entity_id: Platform id of the ad, ad set or campaign.
        level: Reporting level the row belongs to ('ad', 'adset', 'campaign').
        date: Reporting day as an ISO date string (YYYY-MM-DD).
        entity_name: Entity name as reported alongside the insight.
        campaign_id: Parent campaign id.
        adset_id: Parent ad set id.
        account_id: Ads account id the entity belongs to.
        impressions: Impressions served that day.
        clicks: Clicks that day.
        spend: Spend that day, in account currency.
        reach: Unique people reached that day.
        ctr: Platform-reported CTR for the day.
        cpc: Platform-reported CPC for the day.
        cpm: Platform-reported CPM for the day.
        actions: Raw action payload (JSON string, list of dicts, or None).
        action_values: Raw action value payload, same shape as actions.
    """

    entity_id: str
    level: str
    date: str
    entity_name: Optional[str] = None
    campaign_id: Optional[str] = None
    adset_id: Optional[str] = None
    account_id: Optional[str] = None
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    reach: int = 0
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    actions: Any = None
    action_values: Any = None


@dataclass(frozen=True)
class InsightScope:
    """Campaign/ad set scope for an insight query. Empty means unrestricted."""

    campaign_ids: tuple[str, ...] = ()
    adset_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class CreativeMedia:
    """Media and copy record for an ad.

    URL candidates come in three layers: cached copies in our own storage,
    live platform CDN URLs, and small thumbnails. ``best_image_url`` and
    ``best_video_url`` apply the preference order across them.

    Attributes:
        ad_id: The ad this creative belongs to.
        account_id: Ads account id.
        creative_id: Platform creative id, if known.
        creative_type: 'image', 'video', 'carousel', 'dynamic' or 'unknown'.
        image_url: Live image URL.
        image_url_hd: Live high-resolution image URL.
        thumbnail_url: Live thumbnail URL.
        thumbnail_quality: Quality of the best image found.
        cached_image_url: Image copy in our storage.
        cached_thumbnail_url: Thumbnail copy in our storage.
        video_url: Live video source URL.
        cached_video_url: Video copy in our storage.
        video_id: Platform video id.
        preview_url: Shareable preview link.
        title: Headline text.
        body: Primary text.
        description: Link description text.
        call_to_action: CTA type.
        link_url: Destination URL.
        is_complete: True when the record has an image or any text.
        fetch_status: 'success', 'partial', 'failed' or 'pending'.
        fetch_attempts: Number of fetch attempts so far.
        error_message: Last fetch error, if any.
        extra_data: Platform extras (ad name, carousel count, ...).
        fetched_at: ISO timestamp of the last fetch.
    """

    ad_id: str
    account_id: str = ""
    creative_id: Optional[str] = None
    creative_type: str = "unknown"
    image_url: Optional[str] = None
    image_url_hd: Optional[str] = None
    thumbnail_url: Optional[str] = None
    thumbnail_quality: str = "unknown"
    cached_image_url: Optional[str] = None
    cached_thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    cached_video_url: Optional[str] = None
    video_id: Optional[str] = None
    preview_url: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    description: Optional[str] = None
    call_to_action: Optional[str] = None
    link_url: Optional[str] = None
    is_complete: bool = False
    fetch_status: str = "pending"
    fetch_attempts: int = 0
    error_message: Optional[str] = None
    extra_data: dict = field(default_factory=dict)
    fetched_at: Optional[str] = None

    @classmethod
    def placeholder(cls, ad_id: str) -> CreativeMedia:
        """Stand-in for an ad whose media has never been fetched."""
        return cls(ad_id=ad_id, creative_type="unknown", fetch_status="pending")

    @property
    def is_placeholder(self) -> bool:
        return self.creative_id is None and self.fetch_status == "pending" and not self.has_usable_media

    @property
    def best_image_url(self) -> Optional[str]:
        return (
            self.cached_image_url
            or self.image_url_hd
            or self.image_url
            or self.cached_thumbnail_url
            or self.thumbnail_url
            or None
        )

    @property
    def best_video_url(self) -> Optional[str]:
        return self.cached_video_url or self.video_url or None

    @property
    def has_usable_media(self) -> bool:
        return bool(self.best_image_url or self.best_video_url)

    def text_fields(self) -> tuple[str, ...]:
        """Copy text searched by free-text filters."""
        return tuple(t for t in (self.title, self.body, self.description) if t)


@dataclass
class EntityRecord:
    """Cached campaign / ad set / ad entity from the ads platform."""

    entity_id: str
    entity_type: str
    name: Optional[str] = None
    effective_status: Optional[str] = None
    campaign_id: Optional[str] = None
    adset_id: Optional[str] = None
    account_id: Optional[str] = None


@dataclass
class CampaignOption:
    """Campaign choice for the filter bar."""

    entity_id: str
    name: str
    status: str
    ad_count: int = 0


@dataclass
class AdsetOption:
    """Ad set choice for the filter bar."""

    entity_id: str
    name: str
    campaign_id: str


@dataclass
class CreativeComparison:
    """A saved side-by-side comparison of ads."""

    id: str
    name: str
    ad_ids: list[str]
    platform: str = "meta"
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    filters_snapshot: dict = field(default_factory=dict)
    created_at: Optional[str] = None
