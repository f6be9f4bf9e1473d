"""Unit tests for digest prompt building."""

import json

from nerdfeed.linker.models import Cluster
from nerdfeed.llm.prompts import build_digest_context, build_digest_prompt
from nerdfeed.store.models import Item


def _make_cluster(item_id: str, total: float, summary: str | None = None) -> Cluster:
    main = Item(
        id=item_id,
        source="github",
        title=f"tool-{item_id}",
        description="a description",
        summary=summary,
        url=f"https://github.com/o/{item_id}",
        stars=42,
    )
    related = Item(id=f"r{item_id}", source="reddit", url=f"https://reddit.com/{item_id}")
    return Cluster(main=main, related=[related], main_score=total, total_score=total)


class TestBuildDigestContext:
    """Tests for build_digest_context."""

    def test_ranks_and_sources(self) -> None:
        """Clusters are ranked from 1 and list every source link."""
        context = build_digest_context([_make_cluster("a", 10.0), _make_cluster("b", 5.24)])

        assert [c["rank"] for c in context] == [1, 2]
        assert context[0]["topic"] == "tool-a"
        assert context[1]["total_score"] == "5.2"
        assert [s["type"] for s in context[0]["sources"]] == ["github", "reddit"]

    def test_summary_preferred_over_description(self) -> None:
        """The enrichment summary wins when present."""
        context = build_digest_context([_make_cluster("a", 1.0, summary="short")])
        assert context[0]["summary"] == "short"


class TestBuildDigestPrompt:
    """Tests for build_digest_prompt."""

    def test_embeds_window_and_json(self) -> None:
        """The prompt names the window and carries the JSON context."""
        prompt = build_digest_prompt([_make_cluster("a", 3.0)], window_hours=24)

        assert "24 hours" in prompt
        payload = prompt[prompt.index("[") :]
        assert json.loads(payload)[0]["topic"] == "tool-a"
