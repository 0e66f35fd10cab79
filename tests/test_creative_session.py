"""Tests for the creative analysis session.

This module tests:
- Publishing search results and starting enrichment
- Load more under the same generation
- Debounced text changes and immediate filter changes
- Error propagation and stale result handling

Run with: pytest tests/test_creative_session.py -v
"""

import asyncio
from dataclasses import replace
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from analytics.creative_models import DerivedMetrics, EnrichedCreative, SearchFilters
from analytics.filter_sort_page import filter_sort_page
from collectors.media.schemas import FreshMediaResult
from config import AppConfig
from services.creative_session import CreativeAnalysisSession, build_session
from services.creative_state import CreativeState
from services.enrichment import EnrichmentOrchestrator
from storage.errors import StoreError
from storage.models import CreativeMedia


def make_creative(ad_id, spend) -> EnrichedCreative:
    return EnrichedCreative(
        creative=CreativeMedia.placeholder(ad_id),
        display_name=ad_id,
        campaign_name="",
        adset_name="",
        campaign_id="",
        adset_id="",
        account_id="act_1",
        status="ACTIVE",
        metrics=DerivedMetrics(spend=spend),
    )


class FakeSearchService:
    """Search service over a fixed list of creatives.

    Calls wait on the futures in ``gates`` (first call, first gate) so
    tests can control when a search returns.
    """

    def __init__(self, creatives):
        self.creatives = creatives
        self.calls = []
        self.gates = []
        self.error = None

    async def search(self, filters):
        self.calls.append(filters)
        if self.error is not None:
            raise self.error
        if self.gates:
            await self.gates.pop(0)
        return filter_sort_page(self.creatives, filters)


@pytest.fixture
def search_service():
    return FakeSearchService([
        make_creative("a", 30.0),
        make_creative("b", 20.0),
        make_creative("c", 10.0),
    ])


@pytest.fixture
def fetcher():
    mock = AsyncMock()
    mock.fetch_fresh_media.return_value = FreshMediaResult()
    return mock


@pytest_asyncio.fixture
async def session(search_service, fetcher):
    """Session over three creatives with a two-item window."""
    state = CreativeState()
    session = CreativeAnalysisSession(
        search_service,
        EnrichmentOrchestrator(fetcher, state),
        state,
        filters=SearchFilters(limit=2),
        debounce_seconds=0.01,
    )
    yield session
    await session.close()


class TestSearch:
    """Tests for CreativeAnalysisSession.search()."""

    @pytest.mark.asyncio
    async def test_publishes_first_window(self, session):
        """Test the first page, total and has_more are published."""
        result = await session.search()

        assert [c.ad_id for c in session.creatives] == ["a", "b"]
        assert session.total == 3
        assert session.has_more is True
        assert result.total == 3
        assert session.generation == 1

    @pytest.mark.asyncio
    async def test_enriches_published_page(self, session, fetcher):
        """Test the published page is handed to enrichment."""
        await session.search()
        await session.wait_for_enrichment()

        fetcher.fetch_fresh_media.assert_awaited_once_with(["a", "b"], "act_1")
        assert session.get_loading_state("a").is_loading is False
        assert session.is_enrichment_in_progress() is False

    @pytest.mark.asyncio
    async def test_store_error_propagates(self, session, search_service):
        """Test a store failure ends the search with StoreError."""
        search_service.error = StoreError("database is locked")

        with pytest.raises(StoreError):
            await session.search()

    @pytest.mark.asyncio
    async def test_superseded_search_is_not_published(self, session, search_service):
        """Test a slow search that finishes after a newer one is dropped."""
        gate = asyncio.get_running_loop().create_future()
        search_service.gates.append(gate)

        slow = asyncio.ensure_future(session.search(SearchFilters(min_spend=25, limit=2)))
        await asyncio.sleep(0)
        await session.search(SearchFilters(limit=5))

        gate.set_result(None)
        await slow

        assert [c.ad_id for c in session.creatives] == ["a", "b", "c"]
        assert session.generation == 2


class TestLoadMore:
    """Tests for CreativeAnalysisSession.load_more()."""

    @pytest.mark.asyncio
    async def test_appends_next_window(self, session, search_service):
        """Test load more appends the next window under the same generation."""
        await session.search()
        await session.load_more()

        assert [c.ad_id for c in session.creatives] == ["a", "b", "c"]
        assert session.has_more is False
        assert session.generation == 1
        assert search_service.calls[-1].offset == 2

    @pytest.mark.asyncio
    async def test_enriches_only_appended_slice(self, session, fetcher):
        """Test only the newly appended records are fetched."""
        await session.search()
        await session.wait_for_enrichment()
        await session.load_more()
        await session.wait_for_enrichment()

        assert fetcher.fetch_fresh_media.await_args_list[-1].args == (["c"], "act_1")
        assert session.get_loading_state("c") is not None

    @pytest.mark.asyncio
    async def test_noop_before_first_search(self, session, search_service):
        """Test load more does nothing without a prior search."""
        await session.load_more()
        assert search_service.calls == []

    @pytest.mark.asyncio
    async def test_noop_without_more(self, session, search_service):
        """Test load more does nothing when the window is the last one."""
        await session.search(SearchFilters(limit=10))
        await session.load_more()
        assert len(search_service.calls) == 1


class TestFilterChanges:
    """Tests for update_filters() and set_search_query()."""

    @pytest.mark.asyncio
    async def test_text_changes_are_debounced(self, session, search_service):
        """Test rapid query edits run a single search with the last text."""
        session.set_search_query("s")
        session.set_search_query("su")
        task = session.set_search_query("sum")

        await task

        assert len(search_service.calls) == 1
        assert search_service.calls[0].search_query == "sum"

    @pytest.mark.asyncio
    async def test_other_changes_search_immediately(self, session, search_service):
        """Test a non-text change cancels the pending text change and searches once."""
        session.set_search_query("x")
        task = session.update_filters(min_spend=15)

        await task
        await asyncio.sleep(0.03)

        assert len(search_service.calls) == 1
        assert search_service.calls[0].search_query == "x"
        assert search_service.calls[0].min_spend == 15

    @pytest.mark.asyncio
    async def test_filter_change_restarts_window(self, session, search_service):
        """Test a filter change searches from offset 0."""
        await session.search(SearchFilters(limit=2, offset=2))
        await session.update_filters(sort_order="asc")
        assert search_service.calls[-1].offset == 0

    @pytest.mark.asyncio
    async def test_unchanged_value_does_nothing(self, session):
        """Test setting a filter to its current value schedules nothing."""
        assert session.update_filters(offset=0) is None
        assert session.set_search_query("   ") is None

    @pytest.mark.asyncio
    async def test_failed_regeneration_sets_last_error(self, session, search_service):
        """Test a store failure after a filter change is recorded."""
        search_service.error = StoreError("disk I/O error")

        await session.update_filters(min_spend=1)

        assert isinstance(session.last_error, StoreError)

        search_service.error = None
        await session.update_filters(min_spend=2)
        assert session.last_error is None

    @pytest.mark.asyncio
    async def test_close_cancels_pending_debounce(self, session, search_service):
        """Test close drops a pending text change."""
        session.set_search_query("later")
        await session.close()
        await asyncio.sleep(0.03)
        assert search_service.calls == []

    @pytest.mark.asyncio
    async def test_close_cancels_running_regeneration(self, session, search_service, fetcher):
        """Test close stops a text change whose delay already elapsed."""
        gate = asyncio.get_running_loop().create_future()
        search_service.gates.append(gate)
        session.set_search_query("x")
        await asyncio.sleep(0.03)
        assert len(search_service.calls) == 1

        await session.close()
        if not gate.done():
            gate.set_result(None)
        await asyncio.sleep(0.03)

        assert session.creatives == []
        assert fetcher.fetch_fresh_media.await_count == 0

    @pytest.mark.asyncio
    async def test_wait_covers_debounced_regeneration(self, session, search_service, fetcher):
        """Test waiting includes a pending text change and its enrichment."""
        search_service.creatives[1] = replace(
            search_service.creatives[1],
            creative=CreativeMedia(ad_id="b", account_id="act_1", title="Blue banner"),
        )
        session.set_search_query("banner")

        await session.wait_for_enrichment()

        assert [c.ad_id for c in session.creatives] == ["b"]
        fetcher.fetch_fresh_media.assert_awaited_once_with(["b"], "act_1")
        assert session.is_enrichment_in_progress() is False


class TestBuildSession:
    """Tests for build_session()."""

    def test_uses_search_config(self, fetcher):
        """Test the session picks up limit, level and debounce from config."""
        config = AppConfig(search={"default_limit": 12, "debounce_seconds": 0.2, "default_level": "ad"})

        session = build_session(config, AsyncMock(), fetcher)

        assert session.filters.limit == 12
        assert session.search_service.level == "ad"
