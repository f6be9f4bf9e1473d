"""Similarity resolver deciding whether two items describe the same story."""

from collections.abc import Sequence
from enum import Enum

import numpy as np

from nerdfeed.ranker.constants import DEFAULT_SIMILARITY_THRESHOLD
from nerdfeed.store.models import Item
from nerdfeed.store.url import url_identity


class MatchReason(str, Enum):
    """Rule that linked two items."""

    EMBEDDING = "embedding"
    URL = "url"


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute cosine similarity of two vectors.

    Empty vectors, vectors of different length and zero vectors have no
    defined similarity and yield 0.0.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Similarity in [-1.0, 1.0].
    """
    if len(a) == 0 or len(a) != len(b):
        return 0.0

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)
    denominator = float(np.linalg.norm(vec_a)) * float(np.linalg.norm(vec_b))
    if denominator == 0.0 or not np.isfinite(denominator):
        return 0.0

    return float(np.dot(vec_a, vec_b)) / denominator


def max_similarity(vector: Sequence[float], others: Sequence[Sequence[float]]) -> float:
    """Return the highest cosine similarity against a set of vectors, or 0.0."""
    return max((cosine_similarity(vector, other) for other in others), default=0.0)


class SimilarityResolver:
    """Decides whether two items refer to the same underlying story.

    Two items are related when both carry embeddings whose cosine
    similarity exceeds the threshold, or when their URLs share the same
    normalized identity.
    """

    def __init__(self, threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> None:
        """Initialize the resolver.

        Args:
            threshold: Cosine similarity that must be exceeded.
        """
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        """Get the similarity threshold."""
        return self._threshold

    def match_reason(self, a: Item, b: Item) -> MatchReason | None:
        """Explain why two items are related.

        Args:
            a: First item.
            b: Second item.

        Returns:
            The first matching rule, or None if the items are unrelated.
        """
        if a.embedding and b.embedding:
            if cosine_similarity(a.embedding, b.embedding) > self._threshold:
                return MatchReason.EMBEDDING

        identity_a = url_identity(a.url)
        if identity_a and identity_a == url_identity(b.url):
            return MatchReason.URL

        return None

    def related(self, a: Item, b: Item) -> bool:
        """Check whether two items describe the same story.

        Args:
            a: First item.
            b: Second item.

        Returns:
            True if the items are related.
        """
        return self.match_reason(a, b) is not None


def are_related(
    a: Item,
    b: Item,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> bool:
    """Pure function API for the similarity resolver."""
    return SimilarityResolver(threshold).related(a, b)
