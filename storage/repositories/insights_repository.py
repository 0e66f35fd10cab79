"""Insight repository for daily performance rows.

This module provides read queries over ``insights_daily`` scoped by level,
date range and campaign/ad set, plus the bulk upsert used by sync jobs and
tests.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Optional

from .base import BaseRepository, placeholders
from ..models import InsightRow, InsightScope

_COLUMNS = """
    entity_id, level, date, entity_name, campaign_id, adset_id, account_id,
    impressions, clicks, spend, reach, ctr, cpc, cpm,
    actions_json, action_values_json
"""


def _encode_payload(payload: Any) -> Optional[str]:
    if payload is None or isinstance(payload, str):
        return payload
    return json.dumps(payload)


def _row_to_insight(row: sqlite3.Row) -> InsightRow:
    # Action payloads stay as raw JSON text; analytics.actions parses them
    return InsightRow(
        entity_id=row["entity_id"],
        level=row["level"],
        date=row["date"],
        entity_name=row["entity_name"],
        campaign_id=row["campaign_id"],
        adset_id=row["adset_id"],
        account_id=row["account_id"],
        impressions=row["impressions"] or 0,
        clicks=row["clicks"] or 0,
        spend=row["spend"] or 0.0,
        reach=row["reach"] or 0,
        ctr=row["ctr"] or 0.0,
        cpc=row["cpc"] or 0.0,
        cpm=row["cpm"] or 0.0,
        actions=row["actions_json"],
        action_values=row["action_values_json"],
    )


class InsightsRepository(BaseRepository[InsightRow]):
    """Repository for daily insight rows."""

    def __init__(self, db_path: str | Path) -> None:
        super().__init__(db_path)

    async def fetch_rows(
        self,
        scope: Optional[InsightScope],
        level: str,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> list[InsightRow]:
        """Fetch insight rows for one reporting level.

        Args:
            scope: Campaign/ad set restriction. None or empty means all.
            level: Reporting level ('ad', 'adset', 'campaign').
            date_from: First day, inclusive (YYYY-MM-DD).
            date_to: Last day, inclusive (YYYY-MM-DD).

        Returns:
            InsightRow list ordered by entity and date.
        """
        conditions = ["level = ?"]
        params: list[Any] = [level]

        if date_from:
            conditions.append("date >= ?")
            params.append(date_from)
        if date_to:
            conditions.append("date <= ?")
            params.append(date_to)
        if scope and scope.campaign_ids:
            conditions.append(f"campaign_id IN ({placeholders(scope.campaign_ids)})")
            params.extend(scope.campaign_ids)
        if scope and scope.adset_ids:
            conditions.append(f"adset_id IN ({placeholders(scope.adset_ids)})")
            params.extend(scope.adset_ids)

        rows = await self._fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM insights_daily
            WHERE {' AND '.join(conditions)}
            ORDER BY entity_id, date
            """,
            params,
        )
        return [_row_to_insight(r) for r in rows]

    async def save_rows(self, rows: list[InsightRow]) -> int:
        """Insert or replace insight rows.

        Args:
            rows: Rows to store. Action payloads may be lists or JSON text.

        Returns:
            Number of rows written.
        """
        if not rows:
            return 0
        return await self._execute_many(
            f"""
            INSERT OR REPLACE INTO insights_daily ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    r.entity_id, r.level, r.date, r.entity_name,
                    r.campaign_id, r.adset_id, r.account_id,
                    r.impressions, r.clicks, r.spend, r.reach,
                    r.ctr, r.cpc, r.cpm,
                    _encode_payload(r.actions),
                    _encode_payload(r.action_values),
                )
                for r in rows
            ],
        )

    async def count_ads_by_campaign(self) -> dict[str, int]:
        """Count distinct ads with ad-level insights per campaign."""
        rows = await self._fetch_all(
            """
            SELECT campaign_id, COUNT(DISTINCT entity_id) AS ad_count
            FROM insights_daily
            WHERE level = 'ad'
            GROUP BY campaign_id
            """
        )
        return {r["campaign_id"] or "": r["ad_count"] for r in rows}
