"""Creative analysis session.

The session is what a presentation layer talks to. It owns the current
SearchFilters, runs searches and load-more requests through the search
service, and hands every published page to the enrichment orchestrator in
the background. Filter changes regenerate the result set once per change;
changes to the free-text query alone are debounced.
"""

import asyncio
import logging
from typing import Optional

from analytics.creative_models import (
    EnrichedCreative,
    LoadingState,
    SearchFilters,
    SearchResult,
)
from services.creative_search import CreativeDataSource, CreativeSearchService
from services.creative_state import CreativeState, Listener, StateUpdate
from services.enrichment import EnrichmentOrchestrator, MediaFetcher
from storage.errors import StoreError
from utils.debounce import DelayedTask

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5
TEXT_FIELDS = frozenset({"search_query"})


class CreativeAnalysisSession:
    """Stateful search session over creatives with background enrichment.

    Attributes:
        last_error: Error of the last failed search started by a filter
            change, or None.
    """

    def __init__(
        self,
        search_service: CreativeSearchService,
        orchestrator: EnrichmentOrchestrator,
        state: CreativeState,
        filters: Optional[SearchFilters] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self._search_service = search_service
        self._orchestrator = orchestrator
        self._state = state
        self._filters = filters or SearchFilters()
        self._window: Optional[SearchFilters] = None
        self._debounce = DelayedTask(debounce_seconds)
        self._debounced: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()
        self._loading_more = False
        self.last_error: Optional[Exception] = None

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def creatives(self) -> list[EnrichedCreative]:
        return self._state.creatives

    @property
    def filters(self) -> SearchFilters:
        return self._filters

    @property
    def total(self) -> int:
        return self._state.total

    @property
    def has_more(self) -> bool:
        return self._state.has_more

    @property
    def generation(self) -> int:
        return self._orchestrator.generation

    @property
    def search_service(self) -> CreativeSearchService:
        return self._search_service

    def get_loading_state(self, ad_id: str) -> Optional[LoadingState]:
        return self._state.get_loading_state(ad_id)

    def is_enrichment_in_progress(self) -> bool:
        return self._state.in_progress

    def subscribe(self, listener: Listener):
        """Observe state updates. Returns an unsubscribe callable."""
        return self._state.subscribe(listener)

    # =========================================================================
    # Searching
    # =========================================================================

    async def search(self, filters: Optional[SearchFilters] = None) -> SearchResult:
        """Start a new search generation and publish its first window.

        Any pending debounced text change is dropped. Enrichment of the
        published page runs in the background.

        Args:
            filters: New filters; defaults to the session's current filters.

        Returns:
            The SearchResult of the window.

        Raises:
            StoreError: If a store read fails.
            ValueError: If the filters are invalid.
        """
        if filters is not None:
            self._filters = filters
        self._cancel_pending_regeneration()

        window = self._filters
        generation = self._orchestrator.begin_generation()
        self._window = window

        result = await self._search_service.search(window)

        if not self._orchestrator.is_current(generation):
            logger.debug(f"Search for generation {generation} superseded; not publishing")
            return result

        self._state.apply(
            StateUpdate(
                creatives=result.creatives,
                total=result.total,
                has_more=result.has_more,
            )
        )
        self._start_enrichment(result.creatives, generation)
        return result

    async def load_more(self) -> None:
        """Append the next window and enrich only the appended records.

        Does nothing before the first search, when no more results exist,
        or while another load-more is running.

        Raises:
            StoreError: If a store read fails.
        """
        if self._window is None or not self._state.has_more or self._loading_more:
            return

        generation = self._orchestrator.generation
        window = self._window.next_page()
        self._loading_more = True
        try:
            result = await self._search_service.search(window)
        finally:
            self._loading_more = False

        if not self._orchestrator.is_current(generation):
            logger.debug(f"Load more for generation {generation} superseded; dropping")
            return

        self._window = window
        self._state.apply(
            StateUpdate(
                appended=result.creatives,
                total=result.total,
                has_more=result.has_more,
            )
        )
        self._start_enrichment(result.creatives, generation)

    def _start_enrichment(self, creatives: list[EnrichedCreative], generation: int) -> None:
        self._track(
            asyncio.get_running_loop().create_task(self._orchestrator.enrich(creatives, generation))
        )

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # =========================================================================
    # Filter changes
    # =========================================================================

    def update_filters(self, **changes) -> Optional[asyncio.Task]:
        """Change filters and regenerate the result set once.

        Unchanged values do nothing. A change that touches only the text
        query is debounced; any other change cancels a pending text change
        and searches immediately with the combined filters. The window
        restarts at offset 0 unless ``offset`` is given.

        Args:
            **changes: SearchFilters fields to change.

        Returns:
            The task running (or waiting to run) the regeneration, or None.
        """
        if "offset" not in changes:
            changes["offset"] = 0
        updated = self._filters.with_changes(**changes)
        if updated == self._filters:
            return None

        changed = {
            name for name in changes
            if getattr(updated, name) != getattr(self._filters, name)
        }
        self._filters = updated

        self._cancel_pending_regeneration()
        if changed <= TEXT_FIELDS:
            self._debounced = self._track(self._debounce.schedule(self._regenerate))
            return self._debounced

        return self._track(asyncio.get_running_loop().create_task(self._regenerate()))

    def set_search_query(self, query: Optional[str]) -> Optional[asyncio.Task]:
        """Change the free-text query (debounced). Blank text clears it."""
        query = (query or "").strip() or None
        return self.update_filters(search_query=query)

    def _cancel_pending_regeneration(self) -> None:
        # A regeneration already past its delay keeps running and stays tracked
        if self._debounce.cancel() and self._debounced is not None:
            self._tasks.discard(self._debounced)
        self._debounced = None

    async def _regenerate(self) -> None:
        try:
            await self.search()
        except (StoreError, ValueError) as e:
            logger.error(f"Search after filter change failed: {e}")
            self.last_error = e
        else:
            self.last_error = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def wait_for_enrichment(self) -> None:
        """Wait until every background task started so far has finished."""
        while self._tasks:
            # A debounced task may be cancelled by a later edit while waiting
            await asyncio.wait(list(self._tasks))

    async def close(self) -> None:
        """Cancel pending debounce and background tasks, including a running regeneration."""
        self._cancel_pending_regeneration()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


def build_session(config, store: CreativeDataSource, fetcher: MediaFetcher) -> CreativeAnalysisSession:
    """Wire a session from an ``config.AppConfig``, a store and a media fetcher."""
    state = CreativeState()
    search_service = CreativeSearchService(store, level=config.search.default_level)
    orchestrator = EnrichmentOrchestrator(fetcher, state)
    return CreativeAnalysisSession(
        search_service,
        orchestrator,
        state,
        filters=SearchFilters(limit=config.search.default_limit),
        debounce_seconds=config.search.debounce_seconds,
    )
