"""Scoring and similarity for feed items.

Provides the gravity score with source weighting and velocity bonus,
and the similarity resolver used to merge duplicate stories.
"""

from nerdfeed.ranker.scorer import (
    ItemScorer,
    ScoreComponents,
    extract_comment_count,
    score_item,
)
from nerdfeed.ranker.similarity import (
    MatchReason,
    SimilarityResolver,
    are_related,
    cosine_similarity,
    max_similarity,
)


__all__ = [
    "ItemScorer",
    "MatchReason",
    "ScoreComponents",
    "SimilarityResolver",
    "are_related",
    "cosine_similarity",
    "extract_comment_count",
    "max_similarity",
    "score_item",
]
