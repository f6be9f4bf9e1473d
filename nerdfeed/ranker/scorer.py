"""Gravity scoring engine for items."""

from __future__ import annotations

import json
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog

from nerdfeed.config.schemas import ScoringConfig
from nerdfeed.ranker.constants import (
    COMMENT_COUNT_KEYS,
    COMMENT_COUNT_PATTERN,
    SCORE_SCALE,
)
from nerdfeed.store.models import Item, MetricSnapshot, SourceTag


logger = structlog.get_logger()


@dataclass(frozen=True)
class ScoreComponents:
    """Breakdown of an item's score.

    Attributes:
        source_weight: Per-source multiplier.
        base_points: Popularity after source-specific rescaling.
        hours_age: Hours since creation, floored at zero.
        effective_points: Base points after gravity decay.
        velocity_bonus: 1.0, or the velocity multiplier for accelerating items.
        total_score: Final score.
    """

    source_weight: float
    base_points: float
    hours_age: float
    effective_points: float
    velocity_bonus: float
    total_score: float

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary of component name to value.
        """
        return {
            "source_weight": self.source_weight,
            "base_points": self.base_points,
            "hours_age": self.hours_age,
            "effective_points": self.effective_points,
            "velocity_bonus": self.velocity_bonus,
            "total_score": self.total_score,
        }


def extract_comment_count(item: Item) -> int:
    """Recover the discussion count of an item.

    Looks at the first-class field, then at raw JSON metadata, then at a
    "<n> comments" phrase in the description.

    Args:
        item: Item to inspect.

    Returns:
        Non-negative comment count, 0 when unknown.
    """
    if item.comments is not None:
        return max(item.comments, 0)

    try:
        raw = json.loads(item.raw_json)
    except (json.JSONDecodeError, TypeError):
        raw = None

    if isinstance(raw, dict):
        for key in COMMENT_COUNT_KEYS:
            value = raw.get(key)
            if isinstance(value, bool):
                continue
            try:
                return max(int(value), 0)
            except (TypeError, ValueError):
                continue

    match = COMMENT_COUNT_PATTERN.search(item.description)
    if match:
        return int(match.group(1).replace(",", ""))

    return 0


class ItemScorer:
    """Computes relevance scores for items.

    Scoring formula:
        base      = stars rescaled per source (clamped at 0)
        effective = base / (hours_age + age_offset) ^ gravity
        score     = log10(effective + 1) * source_weight * velocity_bonus * 100

    Items without a creation timestamp are treated as brand new. This
    favours undated items and is kept as an explicit policy.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        now: datetime | None = None,
    ) -> None:
        """Initialize the scorer.

        Args:
            config: Scoring configuration.
            now: Current time for age calculation.
        """
        self._config = config or ScoringConfig()
        self._now = now or datetime.now(UTC)

    @property
    def now(self) -> datetime:
        """Get the reference time used for ageing."""
        return self._now

    def score(
        self,
        item: Item,
        history: Sequence[MetricSnapshot] | None = None,
    ) -> float:
        """Compute the score of a single item.

        Args:
            item: Item to score.
            history: Popularity snapshots; defaults to the item's own history.

        Returns:
            Score, never negative.
        """
        return self.components(item, history).total_score

    def components(
        self,
        item: Item,
        history: Sequence[MetricSnapshot] | None = None,
    ) -> ScoreComponents:
        """Compute the score breakdown of a single item.

        Args:
            item: Item to score.
            history: Popularity snapshots; defaults to the item's own history.

        Returns:
            ScoreComponents with every intermediate value.
        """
        snapshots = item.history if history is None else history

        source_weight = self._config.source_weights.get(
            item.source, self._config.default_source_weight
        )
        base_points = self._base_points(item)
        hours_age = self._hours_age(item)
        effective_points = base_points / math.pow(
            hours_age + self._config.age_offset_hours, self._config.gravity
        )
        velocity_bonus = self._velocity_bonus(item, snapshots, hours_age)

        total_score = (
            math.log10(effective_points + 1)
            * source_weight
            * velocity_bonus
            * SCORE_SCALE
        )

        return ScoreComponents(
            source_weight=source_weight,
            base_points=base_points,
            hours_age=hours_age,
            effective_points=effective_points,
            velocity_bonus=velocity_bonus,
            total_score=total_score,
        )

    def _base_points(self, item: Item) -> float:
        """Rescale the popularity counter to a code-host star scale."""
        stars = item.stars if math.isfinite(item.stars) else 0.0
        points = max(stars, 0.0)

        if item.source == SourceTag.REPLICATE.value:
            points /= self._config.run_host_divisor
        elif item.source == SourceTag.HACKERNEWS.value:
            comments = extract_comment_count(item)
            points += math.log10(comments + 1) * self._config.comment_weight

        return points

    def _hours_age(self, item: Item) -> float:
        if item.created_at is None:
            return 0.0
        age = self._now - item.created_at
        return max(0.0, age.total_seconds() / 3600)

    def _velocity_bonus(
        self,
        item: Item,
        history: Sequence[MetricSnapshot],
        hours_age: float,
    ) -> float:
        """Reward items that grew fast since the lookback snapshot.

        The comparison snapshot is the newest one taken at least
        ``velocity_lookback_hours`` ago, or the oldest snapshot when none
        is that old. With sparse history the fallback may be newer than
        the lookback target.
        """
        if hours_age >= self._config.velocity_max_age_hours or len(history) < 2:
            return 1.0

        target = self._now - timedelta(hours=self._config.velocity_lookback_hours)
        eligible = [s for s in history if s.timestamp <= target]
        if eligible:
            snapshot = max(eligible, key=lambda s: s.timestamp)
        else:
            snapshot = min(history, key=lambda s: s.timestamp)

        growth = item.stars - snapshot.stars
        if growth > snapshot.stars * self._config.velocity_growth_ratio:
            return self._config.velocity_multiplier
        return 1.0

    def sort_items(self, items: Sequence[Item]) -> list[Item]:
        """Sort items by score descending, keeping input order for ties.

        Args:
            items: Items to sort.

        Returns:
            New list in descending score order.
        """
        scores = [self.score(item) for item in items]
        order = sorted(range(len(items)), key=lambda i: -scores[i])

        logger.debug(
            "items_scored",
            component="ranker",
            subcomponent="scorer",
            items_scored=len(items),
            max_score=max(scores, default=0.0),
        )
        return [items[i] for i in order]


def score_item(
    item: Item,
    history: Sequence[MetricSnapshot] | None = None,
    *,
    now: datetime | None = None,
    config: ScoringConfig | None = None,
) -> float:
    """Pure function API for scoring one item.

    Args:
        item: Item to score.
        history: Popularity snapshots; defaults to the item's own history.
        now: Reference time.
        config: Scoring configuration.

    Returns:
        Score of the item.
    """
    return ItemScorer(config=config, now=now).score(item, history)
