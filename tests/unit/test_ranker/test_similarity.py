"""Unit tests for cosine similarity and the similarity resolver."""

import math

import pytest

from nerdfeed.ranker.similarity import (
    MatchReason,
    SimilarityResolver,
    are_related,
    cosine_similarity,
    max_similarity,
)
from nerdfeed.store.models import Item


def _make_item(
    item_id: str = "1",
    source: str = "github",
    url: str = "",
    embedding: list[float] | None = None,
) -> Item:
    """Create a test item."""
    return Item(id=item_id, source=source, author="alice", url=url, embedding=embedding)


def _vector_at(similarity: float) -> list[float]:
    """Unit vector whose cosine with [1, 0] equals ``similarity``."""
    return [similarity, math.sqrt(1 - similarity**2)]


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical(self) -> None:
        """Identical vectors have similarity 1."""
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal(self) -> None:
        """Orthogonal vectors have similarity 0."""
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_zero_vector_guarded(self) -> None:
        """A zero vector yields 0 instead of dividing by zero."""
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_length_mismatch(self) -> None:
        """Vectors of different length are not comparable."""
        assert cosine_similarity([1.0], [1.0, 0.0]) == 0.0

    def test_empty(self) -> None:
        """Empty vectors yield 0."""
        assert cosine_similarity([], []) == 0.0

    def test_max_similarity(self) -> None:
        """max_similarity picks the closest vector, 0 for none."""
        assert max_similarity([1.0, 0.0], [[0.0, 1.0], [1.0, 0.0]]) == pytest.approx(1.0)
        assert max_similarity([1.0, 0.0], []) == 0.0


class TestSimilarityResolver:
    """Tests for SimilarityResolver."""

    def test_embedding_above_threshold(self) -> None:
        """Similarity above 0.85 relates the items."""
        a = _make_item("a", url="https://a.com", embedding=[1.0, 0.0])
        b = _make_item("b", url="https://b.com", embedding=_vector_at(0.9))
        assert SimilarityResolver().match_reason(a, b) == MatchReason.EMBEDDING

    def test_embedding_below_threshold(self) -> None:
        """Similarity below 0.85 does not relate distinct URLs."""
        a = _make_item("a", url="https://a.com", embedding=[1.0, 0.0])
        b = _make_item("b", url="https://b.com", embedding=_vector_at(0.8))
        assert not SimilarityResolver().related(a, b)

    def test_missing_embedding_uses_url(self) -> None:
        """Without embeddings, matching URL identities relate items."""
        a = _make_item("a", source="github", url="https://Example.com/Repo/")
        b = _make_item("b", source="reddit", url="https://www.example.com/repo")
        assert SimilarityResolver().match_reason(a, b) == MatchReason.URL

    def test_empty_urls_never_match(self) -> None:
        """Two empty URLs are not an identity match."""
        assert not SimilarityResolver().related(_make_item("a"), _make_item("b"))

    def test_custom_threshold(self) -> None:
        """The threshold is configurable."""
        a = _make_item("a", url="https://a.com", embedding=[1.0, 0.0])
        b = _make_item("b", url="https://b.com", embedding=_vector_at(0.8))
        assert SimilarityResolver(threshold=0.7).related(a, b)
        assert are_related(a, b, threshold=0.7)

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            (
                _make_item("a", url="https://a.com", embedding=[1.0, 0.0]),
                _make_item("b", url="https://b.com", embedding=_vector_at(0.9)),
            ),
            (
                _make_item("a", url="https://github.com/org/tool.git"),
                _make_item("b", url="https://www.github.com/org/tool/"),
            ),
            (
                _make_item("a", url="https://a.com", embedding=[1.0, 0.0]),
                _make_item("b", url="https://b.com", embedding=[0.0, 1.0]),
            ),
        ],
    )
    def test_symmetric(self, a: Item, b: Item) -> None:
        """related(a, b) equals related(b, a)."""
        resolver = SimilarityResolver()
        assert resolver.related(a, b) == resolver.related(b, a)
