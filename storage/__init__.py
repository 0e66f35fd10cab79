"""Creative Insights - Storage Module.

This module provides the SQLite storage backend for insight rows, creative
media, the entity cache, AI scores, tags and saved comparisons.

The storage layer is organized as follows:
- models.py: All dataclass definitions
- schema.py: Database schema
- repositories/: Specialized repository classes for each entity type
- sqlite_store.py: Main facade class (delegates to repositories)
- adapters.py: Converts parsed Graph API payloads to storage models

Example:
    >>> from storage import SQLiteStore
    >>>
    >>> store = SQLiteStore()
    >>> await store.initialize()
    >>> rows = await store.fetch_insight_rows(None, "ad")
"""

from .adapters import media_dict_to_storage
from .errors import StoreError
from .models import (
    AdsetOption,
    CampaignOption,
    CreativeComparison,
    CreativeMedia,
    EntityRecord,
    InsightRow,
    InsightScope,
)
from .schema import SCHEMA
from .sqlite_store import SQLiteStore
from .repositories import (
    BaseRepository,
    AnalysisRepository,
    ComparisonRepository,
    CreativeMediaRepository,
    EntityRepository,
    InsightsRepository,
    TagRepository,
)

__all__ = [
    # Storage backend
    "SQLiteStore",
    "StoreError",
    # Models
    "AdsetOption",
    "CampaignOption",
    "CreativeComparison",
    "CreativeMedia",
    "EntityRecord",
    "InsightRow",
    "InsightScope",
    # Schema
    "SCHEMA",
    # Repositories
    "BaseRepository",
    "AnalysisRepository",
    "ComparisonRepository",
    "CreativeMediaRepository",
    "EntityRepository",
    "InsightsRepository",
    "TagRepository",
    # Adapters
    "media_dict_to_storage",
]
