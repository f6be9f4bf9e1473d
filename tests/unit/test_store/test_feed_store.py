"""Unit tests for the SQLite feed store."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from nerdfeed.store.errors import StoreConnectionError
from nerdfeed.store.models import MAX_HISTORY_SNAPSHOTS, Item, LlmUsage, TopicRecord
from nerdfeed.store.sqlite import FeedStore
from tests.helpers.time import FIXED_NOW


class _Clock:
    """Mutable clock for store tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _make_item(  # noqa: PLR0913
    item_id: str = "1",
    source: str = "github",
    stars: float = 10.0,
    created_at: datetime | None = None,
    title: str = "tool",
    author: str = "alice",
    embedding: list[float] | None = None,
) -> Item:
    """Create a test item."""
    return Item(
        id=item_id,
        source=source,
        author=author,
        title=title,
        description="Fast inference",
        stars=stars,
        url=f"https://example.com/{source}/{item_id}",
        created_at=created_at or FIXED_NOW - timedelta(hours=1),
        embedding=embedding,
    )


@pytest.fixture
def clock() -> _Clock:
    """Provide a clock fixed at FIXED_NOW."""
    return _Clock(FIXED_NOW)


@pytest.fixture
def store(tmp_path: Path, clock: _Clock) -> FeedStore:
    """Provide a connected store."""
    feed_store = FeedStore(tmp_path / "state" / "feed.db", clock=clock)
    feed_store.connect()
    yield feed_store
    feed_store.close()


class TestFeedStoreConnection:
    """Tests for connection handling."""

    def test_requires_connect(self, tmp_path: Path) -> None:
        """Queries before connect raise StoreConnectionError."""
        feed_store = FeedStore(tmp_path / "feed.db")
        with pytest.raises(StoreConnectionError):
            feed_store.query_by_window(7)

    def test_context_manager(self, tmp_path: Path) -> None:
        """The context manager connects and closes."""
        with FeedStore(tmp_path / "feed.db") as feed_store:
            assert feed_store.is_connected
        assert not feed_store.is_connected


class TestUpsertAndQuery:
    """Tests for upsert_items and query_by_window."""

    def test_round_trip(self, store: FeedStore) -> None:
        """Upserted items are returned by a window query."""
        store.upsert_items([_make_item(embedding=[0.1, 0.2])])

        items = store.query_by_window(7)

        assert len(items) == 1
        assert items[0].key == ("1", "github")
        assert items[0].embedding == [0.1, 0.2]
        assert items[0].created_at == FIXED_NOW - timedelta(hours=1)

    def test_same_id_different_sources_coexist(self, store: FeedStore) -> None:
        """(id, source) is the key, so one id can exist per source."""
        store.upsert_items([_make_item(source="github"), _make_item(source="reddit")])
        assert len(store.query_by_window(7)) == 2

    def test_upsert_updates_existing(self, store: FeedStore, clock: _Clock) -> None:
        """A second upsert updates popularity and appends a snapshot."""
        store.upsert_items([_make_item(stars=10)])
        clock.now = FIXED_NOW + timedelta(minutes=30)
        store.upsert_items([_make_item(stars=25)])

        items = store.query_by_window(7)

        assert len(items) == 1
        assert items[0].stars == 25
        assert [s.stars for s in items[0].history] == [10, 25]

    def test_history_bounded(self, store: FeedStore, clock: _Clock) -> None:
        """Only the most recent snapshots are retained."""
        for i in range(MAX_HISTORY_SNAPSHOTS + 5):
            clock.now = FIXED_NOW + timedelta(minutes=i)
            store.upsert_items([_make_item(stars=float(i))])

        history = store.query_by_window(7)[0].history

        assert len(history) == MAX_HISTORY_SNAPSHOTS
        assert history[0].stars == 5
        assert history[-1].stars == MAX_HISTORY_SNAPSHOTS + 4

    def test_window_excludes_old_items(self, store: FeedStore) -> None:
        """Items created before the window are excluded."""
        store.upsert_items(
            [
                _make_item(item_id="new"),
                _make_item(item_id="old", created_at=FIXED_NOW - timedelta(days=8)),
            ]
        )
        assert [i.id for i in store.query_by_window(7)] == ["new"]

    def test_source_filter_case_insensitive(self, store: FeedStore) -> None:
        """Source filters match regardless of case."""
        store.upsert_items([_make_item(source="github"), _make_item(source="reddit")])
        items = store.query_by_window(7, ["Reddit"])
        assert [i.source for i in items] == ["reddit"]

    def test_empty_source_filter(self, store: FeedStore) -> None:
        """An empty source list selects nothing."""
        store.upsert_items([_make_item()])
        assert store.query_by_window(7, []) == []

    def test_ordered_by_popularity(self, store: FeedStore) -> None:
        """Rows come back most popular first."""
        store.upsert_items(
            [_make_item(item_id="a", stars=5), _make_item(item_id="b", stars=50)]
        )
        assert [i.id for i in store.query_by_window(7)] == ["b", "a"]

    def test_ties_keep_insertion_order(self, store: FeedStore, clock: _Clock) -> None:
        """Equally popular rows come back in the order they were first stored."""
        store.upsert_items([_make_item(item_id=i, stars=10) for i in ("c", "a", "b")])
        clock.now = FIXED_NOW + timedelta(minutes=1)
        store.upsert_items([_make_item(item_id="d", stars=10)])
        store.upsert_items([_make_item(item_id="a", stars=10)])

        assert [i.id for i in store.query_by_window(7)] == ["c", "a", "b", "d"]

    def test_query_limit(self, tmp_path: Path, clock: _Clock) -> None:
        """The query limit caps returned rows."""
        with FeedStore(tmp_path / "feed.db", query_limit=2, clock=clock) as limited:
            limited.upsert_items([_make_item(item_id=str(i)) for i in range(5)])
            assert len(limited.query_by_window(7)) == 2

    def test_admission_filter_applied(self, store: FeedStore) -> None:
        """Banned items never leave the store."""
        store.upsert_items(
            [_make_item(item_id="ok"), _make_item(item_id="bad", title="crypto bot")]
        )
        assert [i.id for i in store.query_by_window(7)] == ["ok"]

    def test_existing_ids(self, store: FeedStore) -> None:
        """existing_ids returns only stored ids."""
        store.upsert_items([_make_item(item_id="a")])
        assert store.existing_ids(["a", "b"]) == {"a"}
        assert store.existing_ids([]) == set()

    def test_last_updated(self, store: FeedStore) -> None:
        """last_updated reflects the latest write."""
        assert store.last_updated() is None
        store.upsert_items([_make_item()])
        assert store.last_updated() == FIXED_NOW


class TestDigestHistory:
    """Tests for digest history and usage logging."""

    def test_recent_topics_window(self, store: FeedStore) -> None:
        """Only topics inside the trailing window are returned."""
        store.append_topics(
            [
                TopicRecord(
                    summary="old",
                    embedding=[1.0, 0.0],
                    created_at=FIXED_NOW - timedelta(hours=40),
                ),
                TopicRecord(
                    summary="recent",
                    embedding=[0.0, 1.0],
                    created_at=FIXED_NOW - timedelta(hours=1),
                ),
            ]
        )

        topics = store.recent_topics(36)

        assert [t.summary for t in topics] == ["recent"]
        assert topics[0].embedding == [0.0, 1.0]

    def test_topic_without_embedding(self, store: FeedStore) -> None:
        """Topics without embeddings are stored as such."""
        store.append_topics([TopicRecord(summary="x", created_at=FIXED_NOW)])
        assert store.recent_topics(1)[0].embedding is None

    def test_log_llm_usage(self, store: FeedStore) -> None:
        """Usage records are persisted without error."""
        store.log_llm_usage(
            LlmUsage(model_id="m", prompt_tokens=10, completion_tokens=5, total_cost=0.01)
        )
