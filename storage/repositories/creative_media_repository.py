"""Creative media repository.

This module provides lookups of stored creative media by ad id and the
upsert used when media is synced from the ads platform.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import astuple, fields
from pathlib import Path

from .base import BaseRepository, placeholders
from ..models import CreativeMedia

_FIELDS = [f.name for f in fields(CreativeMedia)]


def _row_to_media(row: sqlite3.Row) -> CreativeMedia:
    extra = row["extra_data"]
    if extra:
        try:
            extra = json.loads(extra)
        except json.JSONDecodeError:
            extra = {}
    return CreativeMedia(
        **{
            name: row[name]
            for name in _FIELDS
            if name not in ("extra_data", "is_complete")
        },
        is_complete=bool(row["is_complete"]),
        extra_data=extra or {},
    )


class CreativeMediaRepository(BaseRepository[CreativeMedia]):
    """Repository for ``ad_creatives`` rows."""

    def __init__(self, db_path: str | Path) -> None:
        super().__init__(db_path)

    async def get_by_ad_ids(self, ad_ids: list[str]) -> list[CreativeMedia]:
        """Get stored media for the given ads. Missing ads are simply absent."""
        if not ad_ids:
            return []
        rows = await self._fetch_all_in(
            f"""
            SELECT {', '.join(_FIELDS)}
            FROM ad_creatives
            WHERE ad_id IN ({{ids}})
            """,
            ad_ids,
        )
        return [_row_to_media(r) for r in rows]

    async def save_many(self, media: list[CreativeMedia]) -> int:
        """Insert or replace media records.

        Args:
            media: Records to store. Placeholders should not be passed here.

        Returns:
            Number of records written.
        """
        if not media:
            return 0

        def _params(m: CreativeMedia) -> tuple:
            values = dict(zip(_FIELDS, astuple(m)))
            values["is_complete"] = int(m.is_complete)
            values["extra_data"] = json.dumps(m.extra_data or {})
            return tuple(values[name] for name in _FIELDS)

        return await self._execute_many(
            f"""
            INSERT OR REPLACE INTO ad_creatives ({', '.join(_FIELDS)}, updated_at)
            VALUES ({placeholders(_FIELDS)}, CURRENT_TIMESTAMP)
            """,
            [_params(m) for m in media],
        )
