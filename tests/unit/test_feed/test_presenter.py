"""Unit tests for feed presentation."""

from datetime import timedelta

import pytest

from nerdfeed.config.schemas import FeedConfig
from nerdfeed.feed.presenter import (
    build_feed_entries,
    discussion_url,
    infer_link_tags,
    present_cluster,
    resolve_display_name,
    source_label,
    spotted_links,
    synergy_multiplier,
)
from nerdfeed.linker.builder import build_clusters_pure
from nerdfeed.linker.models import Cluster
from nerdfeed.ranker.scorer import ItemScorer
from nerdfeed.store.models import Item
from tests.helpers.time import FIXED_NOW


def _make_item(  # noqa: PLR0913
    item_id: str,
    source: str = "github",
    url: str | None = None,
    author: str = "org",
    title: str = "tool",
    description: str = "does things",
    stars: float = 100.0,
    embedding: list[float] | None = None,
) -> Item:
    """Create a test item."""
    return Item(
        id=item_id,
        source=source,
        author=author,
        title=title,
        description=description,
        stars=stars,
        url=url if url is not None else f"https://example.com/{item_id}",
        created_at=FIXED_NOW - timedelta(hours=1),
        embedding=embedding,
    )


def _make_cluster(main: Item, *related: Item, total: float = 10.0) -> Cluster:
    """Create a cluster with a fixed total score."""
    return Cluster(main=main, related=list(related), main_score=total, total_score=total)


class TestSynergyMultiplier:
    """Tests for synergy_multiplier."""

    @pytest.mark.parametrize(
        ("count", "expected"),
        [(1, 1.0), (2, 1.2), (3, 1.5), (5, 1.5)],
    )
    def test_defaults(self, count: int, expected: float) -> None:
        """One, two and three-or-more sources map to 1.0, 1.2 and 1.5."""
        assert synergy_multiplier(count) == expected

    def test_configurable(self) -> None:
        """Multipliers come from configuration."""
        config = FeedConfig(two_source_multiplier=1.3, multi_source_multiplier=2.0)
        assert synergy_multiplier(2, config) == 1.3
        assert synergy_multiplier(3, config) == 2.0


class TestLinkTags:
    """Tests for link-driven tag inference and labels."""

    def test_infers_platform_from_host(self) -> None:
        """Known platform hosts add their tag."""
        assert infer_link_tags("https://github.com/org/tool") == ["github"]
        assert infer_link_tags("https://huggingface.co/org/model") == ["huggingface"]
        assert infer_link_tags("https://replicate.com/org/model") == ["replicate"]

    def test_subdomains_match(self) -> None:
        """Subdomains of a platform host count as that platform."""
        assert infer_link_tags("https://gist.github.com/x") == ["github"]

    def test_unknown_host(self) -> None:
        """Other hosts add nothing."""
        assert infer_link_tags("https://notgithub.com/org/tool") == []

    def test_labels(self) -> None:
        """Known sources have fixed labels; unknown ones are capitalized."""
        assert source_label("hackernews") == "Hacker News"
        assert source_label("huggingface") == "HuggingFace"
        assert source_label("lobsters") == "Lobsters"


class TestDisplayName:
    """Tests for resolve_display_name."""

    def test_repository_source(self) -> None:
        """Repository-like sources render as author/title."""
        item = _make_item("1", source="github", author="org", title="tool")
        assert resolve_display_name(item, item.url) == "org/tool"

    def test_discussion_with_repository_link(self) -> None:
        """Discussion items linking to a repo host recover owner/name."""
        item = _make_item(
            "1",
            source="reddit",
            title="Look at this",
            url="https://github.com/owner/name/tree/main",
        )
        assert resolve_display_name(item, item.url) == "owner/name"

    def test_discussion_fallback_to_title(self) -> None:
        """Other discussion links keep the title."""
        item = _make_item("1", source="hackernews", title="Show HN: thing")
        assert resolve_display_name(item, "https://blog.example.com/post") == "Show HN: thing"

    def test_short_repository_path(self) -> None:
        """A repo-host link without owner/name keeps the title."""
        item = _make_item("1", source="reddit", title="GitHub", url="https://github.com/")
        assert resolve_display_name(item, item.url) == "GitHub"


class TestSpottedLinks:
    """Tests for spotted_links and discussion_url."""

    def test_hacker_news_permalink_rebuilt(self) -> None:
        """HN items linking elsewhere get a comments permalink."""
        item = _make_item("hn_12345", source="hackernews", url="https://blog.example.com")
        assert discussion_url(item) == "https://news.ycombinator.com/item?id=12345"

    def test_hacker_news_url_kept(self) -> None:
        """HN items already pointing at HN keep their URL."""
        url = "https://news.ycombinator.com/item?id=1"
        item = _make_item("hn_1", source="hackernews", url=url)
        assert discussion_url(item) == url

    def test_one_link_per_source(self) -> None:
        """Each source appears once, first item wins."""
        cluster = _make_cluster(
            _make_item("a", source="github", url="https://github.com/o/r"),
            _make_item("b", source="reddit", url="https://reddit.com/1"),
            _make_item("c", source="reddit", url="https://reddit.com/2"),
        )
        links = spotted_links(cluster)

        assert [(link.source, link.name, link.url) for link in links] == [
            ("github", "GitHub", "https://github.com/o/r"),
            ("reddit", "Reddit", "https://reddit.com/1"),
        ]


class TestPresentCluster:
    """Tests for present_cluster and build_feed_entries."""

    def test_best_link_and_inferred_tag(self) -> None:
        """A reddit-only cluster linking to GitHub is tagged github too."""
        cluster = _make_cluster(
            _make_item("a", source="reddit", url="https://github.com/owner/name"),
        )
        entry = present_cluster(cluster)

        assert entry.best_link == "https://github.com/owner/name"
        assert entry.source_tags == ("reddit", "github")
        assert entry.display_name == "owner/name"
        assert entry.synergy_multiplier == 1.0

    def test_best_link_prefers_code_host(self) -> None:
        """The code-host item supplies the link and display name."""
        cluster = _make_cluster(
            _make_item("a", source="reddit", title="Discussion"),
            _make_item(
                "b",
                source="github",
                author="org",
                title="tool",
                url="https://github.com/org/tool",
            ),
        )
        entry = present_cluster(cluster)

        assert entry.best_link == "https://github.com/org/tool"
        assert entry.display_name == "org/tool"
        assert entry.boosted_score == pytest.approx(10.0 * 1.2)

    def test_description(self) -> None:
        """Discussion items describe as 'author on description'."""
        cluster = _make_cluster(
            _make_item("a", source="reddit", author="bob", description="r/ML"),
        )
        assert present_cluster(cluster).description == "bob on r/ML"

    def test_sorted_by_boosted_score(self) -> None:
        """Synergy can lift a cluster above a higher raw total."""
        single = _make_cluster(_make_item("a"), total=11.0)
        triple = _make_cluster(
            _make_item("b", source="github"),
            _make_item("c", source="reddit"),
            _make_item("d", source="hackernews"),
            total=10.0,
        )
        entries = build_feed_entries([single, triple])

        assert [e.cluster.main.id for e in entries] == ["b", "a"]
        assert entries[0].boosted_score == pytest.approx(15.0)

    def test_three_sources_related_by_embedding(self) -> None:
        """Three mutually similar items from three sources get 1.5x."""
        scorer = ItemScorer(now=FIXED_NOW)
        items = scorer.sort_items(
            [
                _make_item("a", source="github", stars=300, embedding=[1.0, 0.1]),
                _make_item("b", source="reddit", stars=200, embedding=[1.0, 0.12]),
                _make_item("c", source="hackernews", stars=100, embedding=[1.0, 0.08]),
            ]
        )
        clusters = build_clusters_pure(items, scorer)
        entries = build_feed_entries(clusters)

        assert len(entries) == 1
        assert entries[0].synergy_multiplier == 1.5
        assert entries[0].boosted_score == pytest.approx(clusters[0].total_score * 1.5)

    def test_single_source_items_no_synergy(self) -> None:
        """Two unrelated same-source items each get multiplier 1.0."""
        scorer = ItemScorer(now=FIXED_NOW)
        items = scorer.sort_items(
            [_make_item("a", stars=100), _make_item("b", stars=50)]
        )
        entries = build_feed_entries(build_clusters_pure(items, scorer))

        assert [e.cluster.main.id for e in entries] == ["a", "b"]
        assert all(e.synergy_multiplier == 1.0 for e in entries)
