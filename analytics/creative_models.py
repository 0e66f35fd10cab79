"""Data models for creative performance analysis.

This module defines the dataclasses that flow through the creative search
pipeline: parsed actions, per-entity aggregates, enriched creatives,
search filters and results, and per-ad enrichment status.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from storage.models import CreativeMedia

DEFAULT_LIMIT = 24


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """Divide, returning 0 when the denominator is not positive."""
    if denominator > 0:
        return numerator / denominator * scale
    return 0.0


@dataclass(frozen=True)
class ParsedAction:
    """A single typed (action_type, value) pair from an insight payload."""

    action_type: str
    value: float


@dataclass(frozen=True)
class DailySnapshot:
    """One day of an entity's metrics, used for trend charts.

    Attributes:
        date: Reporting day (YYYY-MM-DD).
        impressions: Impressions that day.
        clicks: Clicks that day.
        spend: Spend that day.
        ctr: Platform-reported CTR for the day.
        cpc: Platform-reported CPC for the day.
        conversions: Conversions extracted from that day's actions.
    """

    date: str
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    ctr: float = 0.0
    cpc: float = 0.0
    conversions: float = 0.0


@dataclass(frozen=True)
class DerivedMetrics:
    """Totals plus ratios for one entity, frozen at join time."""

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


@dataclass
class AggregatedMetrics:
    """Per-entity accumulation of insight rows.

    Counters are summed across every row for the entity. Ratios are
    computed on access so they can never drift from the counters.

    Attributes:
        entity_id: Entity the rows belong to.
        entity_name: First non-empty name seen in the rows.
        campaign_id: First non-empty campaign id seen.
        adset_id: First non-empty ad set id seen.
        account_id: First non-empty account id seen.
        impressions: Summed impressions.
        clicks: Summed clicks.
        spend: Summed spend.
        reach: Summed reach.
        conversions: Summed conversions.
        conversion_value: Summed purchase value.
        leads: Summed leads.
        messaging_starts: Summed messaging conversations started.
        daily: Snapshots ordered by date ascending.
    """

    entity_id: str
    entity_name: Optional[str] = None
    campaign_id: str = ""
    adset_id: str = ""
    account_id: str = ""
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    reach: int = 0
    conversions: float = 0.0
    conversion_value: float = 0.0
    leads: float = 0.0
    messaging_starts: float = 0.0
    daily: list[DailySnapshot] = field(default_factory=list)

    @property
    def ctr(self) -> float:
        return safe_ratio(self.clicks, self.impressions, 100)

    @property
    def cpc(self) -> float:
        return safe_ratio(self.spend, self.clicks)

    @property
    def cpm(self) -> float:
        return safe_ratio(self.spend, self.impressions, 1000)

    @property
    def roas(self) -> float:
        return safe_ratio(self.conversion_value, self.spend)

    @property
    def frequency(self) -> float:
        return safe_ratio(self.impressions, self.reach)

    def to_derived(self) -> DerivedMetrics:
        return DerivedMetrics(
            impressions=self.impressions,
            clicks=self.clicks,
            spend=self.spend,
            reach=self.reach,
            ctr=self.ctr,
            cpc=self.cpc,
            cpm=self.cpm,
            frequency=self.frequency,
            conversions=self.conversions,
            conversion_value=self.conversion_value,
            roas=self.roas,
            leads=self.leads,
            messaging_starts=self.messaging_starts,
        )


@dataclass(frozen=True)
class EnrichedCreative:
    """A creative joined with its metrics, names, status, score and tags."""

    creative: CreativeMedia
    display_name: str
    campaign_name: str
    adset_name: str
    campaign_id: str
    adset_id: str
    account_id: str
    status: str
    metrics: DerivedMetrics
    daily_metrics: tuple[DailySnapshot, ...] = ()
    ai_score: Optional[float] = None
    tags: tuple[str, ...] = ()

    @property
    def ad_id(self) -> str:
        return self.creative.ad_id

    @property
    def latest_date(self) -> str:
        """Most recent snapshot date, or '' when there are none."""
        return self.daily_metrics[-1].date if self.daily_metrics else ""

    def with_creative(self, creative: CreativeMedia) -> EnrichedCreative:
        return replace(self, creative=creative)


@dataclass(frozen=True)
class SearchFilters:
    """Immutable description of a creative search.

    Attributes:
        platform: Ads platform ('meta' or 'google').
        campaign_ids: Restrict to these campaigns (empty = all).
        adset_ids: Restrict to these ad sets (empty = all).
        creative_type: Creative type, or None / 'all' for any.
        search_query: Case-insensitive substring over title/body/description.
        date_from: First reporting day, inclusive.
        date_to: Last reporting day, inclusive.
        min_impressions / max_impressions: Inclusive impression bounds.
        min_spend / max_spend: Inclusive spend bounds.
        min_ctr / max_ctr: Inclusive CTR bounds (percent).
        tags: Keep creatives carrying at least one of these tags.
        sort_by: Sort key; unknown keys fall back to spend.
        sort_order: 'asc' or 'desc'.
        limit: Page size.
        offset: Page start.
    """

    platform: str = "meta"
    campaign_ids: tuple[str, ...] = ()
    adset_ids: tuple[str, ...] = ()
    creative_type: Optional[str] = None
    search_query: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    min_impressions: Optional[float] = None
    max_impressions: Optional[float] = None
    min_spend: Optional[float] = None
    max_spend: Optional[float] = None
    min_ctr: Optional[float] = None
    max_ctr: Optional[float] = None
    tags: tuple[str, ...] = ()
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples so the value stays hashable
        for name in ("campaign_ids", "adset_ids", "tags"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value or ()))

    def with_changes(self, **changes) -> SearchFilters:
        return replace(self, **changes)

    def next_page(self) -> SearchFilters:
        return replace(self, offset=self.offset + self.limit)


@dataclass(frozen=True)
class SearchResult:
    """A page of enriched creatives with the total filtered count."""

    creatives: list[EnrichedCreative]
    total: int
    has_more: bool


@dataclass(frozen=True)
class LoadingState:
    """Enrichment status of one ad."""

    is_loading: bool
    has_error: bool = False
    error_message: Optional[str] = None

    @classmethod
    def loading(cls) -> LoadingState:
        return cls(is_loading=True, has_error=False)

    @classmethod
    def done(cls) -> LoadingState:
        return cls(is_loading=False, has_error=False)

    @classmethod
    def failed(cls, message: str) -> LoadingState:
        return cls(is_loading=False, has_error=True, error_message=message)
