"""Tests for the SQLite store.

This module tests:
- Schema initialization and failure handling
- Insight, media, entity, score and tag round-trips
- Filter options and saved comparisons

Run with: pytest tests/test_sqlite_store.py -v
"""

import sqlite3
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from storage import StoreError
from storage.models import CreativeMedia, EntityRecord, InsightRow, InsightScope
from storage.sqlite_store import SQLiteStore


@pytest_asyncio.fixture
async def temp_store():
    """Create a temporary SQLite store for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        store = SQLiteStore(db_path=str(db_path))
        await store.initialize()
        yield store


def make_row(entity_id, date, campaign_id="c1", adset_id="s1", level="ad", **kwargs):
    return InsightRow(
        entity_id=entity_id,
        level=level,
        date=date,
        campaign_id=campaign_id,
        adset_id=adset_id,
        account_id="act_1",
        **kwargs,
    )


class TestInitialize:
    """Tests for schema creation."""

    @pytest.mark.asyncio
    async def test_creates_database_file(self):
        """Test initialize creates the file and nested directories."""
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "nested" / "insights.db"
            store = SQLiteStore(db_path=db_path)

            await store.initialize()
            await store.initialize()

            assert db_path.exists()

    @pytest.mark.asyncio
    async def test_unopenable_database_raises_store_error(self):
        """Test a path sqlite cannot open fails with StoreError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = SQLiteStore(db_path=tmpdir)

            with pytest.raises(StoreError):
                await store.initialize()

    @pytest.mark.asyncio
    async def test_reopen_existing_database(self):
        """Test a second store over the same file keeps rows and columns."""
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "insights.db"
            first = SQLiteStore(db_path=db_path)
            await first.initialize()
            await first.save_creative_media([CreativeMedia(ad_id="a1", account_id="act_1")])

            second = SQLiteStore(db_path=db_path)
            await second.initialize()

            assert [m.ad_id for m in await second.fetch_creative_media(["a1"])] == ["a1"]
            conn = sqlite3.connect(db_path)
            try:
                columns = [row[1] for row in conn.execute("PRAGMA table_info(ad_creatives)")]
            finally:
                conn.close()
            assert columns.count("cached_video_url") == 1
            assert columns.count("fetch_attempts") == 1


class TestInsightRows:
    """Tests for insight row storage and scoping."""

    @pytest.mark.asyncio
    async def test_round_trip(self, temp_store):
        """Test rows come back with counters and raw action JSON."""
        await temp_store.save_insight_rows([
            make_row("a1", "2024-01-01", impressions=1000, clicks=20, spend=50.0,
                     actions=[{"action_type": "purchase", "value": "2"}]),
        ])

        rows = await temp_store.fetch_insight_rows(None, "ad")

        assert len(rows) == 1
        row = rows[0]
        assert row.impressions == 1000
        assert row.spend == 50.0
        assert row.account_id == "act_1"
        assert row.actions == '[{"action_type": "purchase", "value": "2"}]'
        assert row.action_values is None

    @pytest.mark.asyncio
    async def test_scope_level_and_dates(self, temp_store):
        """Test rows are limited by level, date range, campaigns and ad sets."""
        await temp_store.save_insight_rows([
            make_row("a1", "2024-01-01"),
            make_row("a1", "2024-01-05"),
            make_row("a2", "2024-01-02", campaign_id="c2", adset_id="s2"),
            make_row("a3", "2024-01-02", adset_id="s3"),
            make_row("c1", "2024-01-02", level="campaign"),
        ])

        by_dates = await temp_store.fetch_insight_rows(None, "ad", "2024-01-02", "2024-01-05")
        by_campaign = await temp_store.fetch_insight_rows(InsightScope(campaign_ids=("c1",)), "ad")
        by_adset = await temp_store.fetch_insight_rows(
            InsightScope(campaign_ids=("c1",), adset_ids=("s3",)), "ad"
        )
        campaigns = await temp_store.fetch_insight_rows(InsightScope(), "campaign")

        assert [(r.entity_id, r.date) for r in by_dates] == [
            ("a1", "2024-01-05"), ("a2", "2024-01-02"), ("a3", "2024-01-02"),
        ]
        assert {r.entity_id for r in by_campaign} == {"a1", "a3"}
        assert [r.entity_id for r in by_adset] == ["a3"]
        assert [r.entity_id for r in campaigns] == ["c1"]

    @pytest.mark.asyncio
    async def test_upsert_replaces_same_day(self, temp_store):
        """Test saving the same entity, level and day replaces the row."""
        await temp_store.save_insight_rows([make_row("a1", "2024-01-01", impressions=1)])
        await temp_store.save_insight_rows([make_row("a1", "2024-01-01", impressions=9)])

        rows = await temp_store.fetch_insight_rows(None, "ad")

        assert [r.impressions for r in rows] == [9]


class TestCreativeMedia:
    """Tests for creative media storage."""

    @pytest.mark.asyncio
    async def test_round_trip(self, temp_store):
        """Test media is stored and read back by ad id."""
        media = CreativeMedia(
            ad_id="a1",
            account_id="act_1",
            creative_id="cr1",
            creative_type="video",
            image_url="https://cdn/img.jpg",
            video_url="https://cdn/v.mp4",
            title="Headline",
            is_complete=True,
            fetch_status="success",
            extra_data={"ad_name": "Ad one"},
        )
        await temp_store.save_creative_media([media])

        stored = await temp_store.fetch_creative_media(["a1", "missing"])

        assert stored == [media]

    @pytest.mark.asyncio
    async def test_empty_lookup(self, temp_store):
        """Test an empty id list returns nothing without querying."""
        assert await temp_store.fetch_creative_media([]) == []


class TestLookups:
    """Tests for entity names, statuses and AI scores."""

    @pytest_asyncio.fixture
    async def entities(self, temp_store):
        await temp_store.save_entities([
            EntityRecord("c1", "campaign", name="Spring", effective_status="ACTIVE"),
            EntityRecord("c2", "campaign", name=None, effective_status=None),
            EntityRecord("s1", "adset", name="Broad", campaign_id="c1"),
            EntityRecord("s2", "adset", name="Lookalike", campaign_id="c1"),
            EntityRecord("a1", "ad", name="Ad 1", effective_status="PAUSED", campaign_id="c1"),
        ])
        return temp_store

    @pytest.mark.asyncio
    async def test_entity_names_skip_unnamed(self, entities):
        """Test names are returned only for entities that have one."""
        names = await entities.fetch_entity_names(["c1", "c2", "s1", "nope"])
        assert names == {"c1": "Spring", "s1": "Broad"}

    @pytest.mark.asyncio
    async def test_statuses_for_ads_only(self, entities):
        """Test statuses are returned for ad entities only."""
        statuses = await entities.fetch_ad_statuses(["a1", "c1"])
        assert statuses == {"a1": "PAUSED"}

    @pytest.mark.asyncio
    async def test_ai_scores(self, temp_store):
        """Test stored scores are returned and unscored ads are absent."""
        await temp_store.save_ai_score("a1", 82.5)
        await temp_store.save_ai_score("a2", None)

        scores = await temp_store.fetch_ai_scores(["a1", "a2", "a3"])

        assert scores == {"a1": 82.5}

    @pytest.mark.asyncio
    async def test_campaign_options(self, entities):
        """Test campaign options carry name fallback, status and ad counts."""
        await entities.save_insight_rows([
            make_row("a1", "2024-01-01"),
            make_row("a1", "2024-01-02"),
            make_row("a9", "2024-01-01"),
        ])

        options = await entities.list_campaign_options("meta")

        by_id = {o.entity_id: o for o in options}
        assert by_id["c1"].name == "Spring"
        assert by_id["c1"].ad_count == 2
        assert by_id["c2"].name == "c2"
        assert by_id["c2"].status == "unknown"
        assert by_id["c2"].ad_count == 0

    @pytest.mark.asyncio
    async def test_campaign_options_for_other_platform(self, entities):
        """Test platforms without cached entities have no options."""
        assert await entities.list_campaign_options("google") == []

    @pytest.mark.asyncio
    async def test_adset_options(self, entities):
        """Test ad set options are limited to the campaign and sorted by name."""
        options = await entities.list_adset_options("c1")
        assert [o.name for o in options] == ["Broad", "Lookalike"]
        assert all(o.campaign_id == "c1" for o in options)


class TestTags:
    """Tests for creative tags."""

    @pytest.mark.asyncio
    async def test_add_and_fetch(self, temp_store):
        """Test tags are returned per ad in sorted order."""
        await temp_store.add_tag("a1", "winner")
        await temp_store.add_tag("a1", "q1")
        await temp_store.add_tag("a2", "q1")

        tags = await temp_store.fetch_tags(["a1", "a2", "a3"])

        assert tags == {"a1": ["q1", "winner"], "a2": ["q1"]}
        assert await temp_store.get_all_tags() == ["q1", "winner"]

    @pytest.mark.asyncio
    async def test_duplicate_tag(self, temp_store):
        """Test adding the same tag twice reports False the second time."""
        assert await temp_store.add_tag("a1", "winner") is True
        assert await temp_store.add_tag("a1", "winner") is False

    @pytest.mark.asyncio
    async def test_remove_tag(self, temp_store):
        """Test removing a tag reports whether it existed."""
        await temp_store.add_tag("a1", "winner")

        assert await temp_store.remove_tag("a1", "winner") is True
        assert await temp_store.remove_tag("a1", "winner") is False
        assert await temp_store.fetch_tags(["a1"]) == {}


class TestLargeIdLists:
    """Tests for lookups over more ids than one statement can bind."""

    @pytest.mark.asyncio
    async def test_media_lookup_beyond_variable_limit(self, temp_store):
        """Test a lookup over 40k ads finds the stored ones."""
        await temp_store.save_creative_media([
            CreativeMedia(ad_id=ad_id, account_id="act_1") for ad_id in ("a1", "a2", "a3")
        ])
        ad_ids = [f"x{i}" for i in range(40000)] + ["a1", "a2", "a3"]

        stored = await temp_store.fetch_creative_media(ad_ids)

        assert sorted(m.ad_id for m in stored) == ["a1", "a2", "a3"]

    @pytest.mark.asyncio
    async def test_every_lookup_spans_chunks(self, temp_store, monkeypatch):
        """Test tags, scores, names and statuses are merged across chunks."""
        monkeypatch.setattr("storage.repositories.base.IN_CHUNK_SIZE", 2)
        ad_ids = [f"a{i}" for i in range(5)]
        await temp_store.save_entities([
            EntityRecord(ad_id, "ad", name=f"Ad {ad_id}", effective_status="ACTIVE")
            for ad_id in ad_ids
        ])
        for ad_id in ad_ids:
            await temp_store.add_tag(ad_id, "batch")
            await temp_store.save_ai_score(ad_id, 7.5)

        assert await temp_store.fetch_tags(ad_ids) == {ad_id: ["batch"] for ad_id in ad_ids}
        assert await temp_store.fetch_ai_scores(ad_ids) == {ad_id: 7.5 for ad_id in ad_ids}
        assert set(await temp_store.fetch_entity_names(ad_ids)) == set(ad_ids)
        assert await temp_store.fetch_ad_statuses(ad_ids) == {ad_id: "ACTIVE" for ad_id in ad_ids}


class TestComparisons:
    """Tests for saved comparisons."""

    @pytest.mark.asyncio
    async def test_save_and_get(self, temp_store):
        """Test a saved comparison is read back with its snapshot."""
        comparison_id = await temp_store.save_comparison(
            "Q1 winners",
            ["a1", "a2"],
            platform="meta",
            date_from="2024-01-01",
            date_to="2024-03-31",
            filters_snapshot={"min_spend": 10},
        )

        comparison = await temp_store.get_comparison(comparison_id)

        assert comparison.name == "Q1 winners"
        assert comparison.ad_ids == ["a1", "a2"]
        assert comparison.filters_snapshot == {"min_spend": 10}
        assert comparison.created_at is not None

    @pytest.mark.asyncio
    async def test_list_newest_first_and_capped(self, temp_store):
        """Test listing returns the 20 newest comparisons, newest first."""
        ids = [await temp_store.save_comparison(f"cmp {i}", ["a1"]) for i in range(22)]

        listed = await temp_store.list_comparisons()

        assert len(listed) == 20
        assert listed[0].id == ids[-1]
        assert listed[-1].id == ids[2]

    @pytest.mark.asyncio
    async def test_list_by_platform(self, temp_store):
        """Test listing can be restricted to one platform."""
        await temp_store.save_comparison("meta one", ["a1"], platform="meta")
        google_id = await temp_store.save_comparison("google one", ["g1"], platform="google")

        listed = await temp_store.list_comparisons("google")

        assert [c.id for c in listed] == [google_id]

    @pytest.mark.asyncio
    async def test_delete(self, temp_store):
        """Test deleting reports whether the comparison existed."""
        comparison_id = await temp_store.save_comparison("tmp", ["a1"])

        assert await temp_store.delete_comparison(comparison_id) is True
        assert await temp_store.delete_comparison(comparison_id) is False
        assert await temp_store.get_comparison(comparison_id) is None
