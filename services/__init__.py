"""Services package for business logic."""

from services.creative_search import (
    CreativeDataSource,
    CreativeSearchService,
    validate_filters,
)
from services.creative_session import CreativeAnalysisSession, build_session
from services.creative_state import CreativeState, StateUpdate
from services.enrichment import (
    EnrichmentOrchestrator,
    MediaFetcher,
    group_by_account,
)

__all__ = [
    "CreativeAnalysisSession",
    "CreativeDataSource",
    "CreativeSearchService",
    "CreativeState",
    "EnrichmentOrchestrator",
    "MediaFetcher",
    "StateUpdate",
    "build_session",
    "group_by_account",
    "validate_filters",
]
