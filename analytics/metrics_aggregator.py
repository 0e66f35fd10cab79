"""Metrics aggregation for creative performance analysis.

Groups daily insight rows by entity, sums the raw counters and the action
categories, and keeps one trend snapshot per row. Float counters are summed
with ``math.fsum`` so the totals do not depend on row order.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

from analytics.actions import ActionTotals
from analytics.creative_models import AggregatedMetrics, DailySnapshot
from storage.models import InsightRow

logger = logging.getLogger(__name__)


class MixedLevelError(ValueError):
    """Raised when insight rows from different reporting levels are mixed."""

    pass


@dataclass
class _EntityAccumulator:
    """Running totals for one entity before finalization."""

    entity_id: str
    entity_name: Optional[str] = None
    campaign_id: str = ""
    adset_id: str = ""
    account_id: str = ""
    impressions: int = 0
    clicks: int = 0
    reach: int = 0
    spend: list[float] = field(default_factory=list)
    conversions: list[float] = field(default_factory=list)
    conversion_value: list[float] = field(default_factory=list)
    leads: list[float] = field(default_factory=list)
    messaging_starts: list[float] = field(default_factory=list)
    snapshots: list[DailySnapshot] = field(default_factory=list)

    def add(self, row: InsightRow) -> None:
        self.entity_name = self.entity_name or row.entity_name or None
        self.campaign_id = self.campaign_id or row.campaign_id or ""
        self.adset_id = self.adset_id or row.adset_id or ""
        self.account_id = self.account_id or row.account_id or ""

        totals = ActionTotals.from_payloads(row.actions, row.action_values)

        self.impressions += row.impressions or 0
        self.clicks += row.clicks or 0
        self.reach += row.reach or 0
        self.spend.append(row.spend or 0.0)
        self.conversions.append(totals.conversions)
        self.conversion_value.append(totals.conversion_value)
        self.leads.append(totals.leads)
        self.messaging_starts.append(totals.messaging_starts)
        self.snapshots.append(DailySnapshot(
            date=row.date,
            impressions=row.impressions or 0,
            clicks=row.clicks or 0,
            spend=row.spend or 0.0,
            ctr=row.ctr or 0.0,
            cpc=row.cpc or 0.0,
            conversions=totals.conversions,
        ))

    def finalize(self) -> AggregatedMetrics:
        # sorted() is stable, so same-day rows keep their input order
        daily = sorted(self.snapshots, key=lambda s: s.date)
        return AggregatedMetrics(
            entity_id=self.entity_id,
            entity_name=self.entity_name,
            campaign_id=self.campaign_id,
            adset_id=self.adset_id,
            account_id=self.account_id,
            impressions=self.impressions,
            clicks=self.clicks,
            spend=math.fsum(self.spend),
            reach=self.reach,
            conversions=math.fsum(self.conversions),
            conversion_value=math.fsum(self.conversion_value),
            leads=math.fsum(self.leads),
            messaging_starts=math.fsum(self.messaging_starts),
            daily=daily,
        )


def aggregate_insights(rows: Iterable[InsightRow]) -> dict[str, AggregatedMetrics]:
    """Aggregate insight rows into per-entity metrics.

    Args:
        rows: Insight rows already scoped by date range, campaign/ad set and
            reporting level. All rows must share one level.

    Returns:
        Dict mapping entity_id to AggregatedMetrics. Entities without rows
        do not appear.

    Raises:
        MixedLevelError: If rows from more than one level are supplied.

    Example:
        >>> metrics = aggregate_insights(rows)
        >>> metrics["123"].ctr
        2.0
    """
    accumulators: dict[str, _EntityAccumulator] = {}
    level: Optional[str] = None

    for row in rows:
        if level is None:
            level = row.level
        elif row.level != level:
            raise MixedLevelError(
                f"Cannot aggregate '{row.level}' rows together with '{level}' rows"
            )

        acc = accumulators.get(row.entity_id)
        if acc is None:
            acc = accumulators[row.entity_id] = _EntityAccumulator(entity_id=row.entity_id)
        acc.add(row)

    result = {entity_id: acc.finalize() for entity_id, acc in accumulators.items()}
    logger.debug(f"Aggregated {len(result)} entities at level {level}")
    return result
