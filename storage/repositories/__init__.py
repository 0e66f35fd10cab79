"""Repository classes for Creative Insights storage.

This package provides repository classes that encapsulate database operations
for specific entity types.
"""

from .base import BaseRepository
from .analysis_repository import AnalysisRepository
from .comparison_repository import ComparisonRepository
from .creative_media_repository import CreativeMediaRepository
from .entity_repository import EntityRepository
from .insights_repository import InsightsRepository
from .tag_repository import TagRepository

__all__ = [
    "BaseRepository",
    "AnalysisRepository",
    "ComparisonRepository",
    "CreativeMediaRepository",
    "EntityRepository",
    "InsightsRepository",
    "TagRepository",
]
