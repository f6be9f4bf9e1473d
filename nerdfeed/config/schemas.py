"""Engine configuration schema."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _default_source_weights() -> dict[str, float]:
    return {
        "github": 1.8,
        "huggingface": 1.1,
        "reddit": 1.1,
        "hackernews": 0.8,
        "replicate": 0.6,
    }


class ScoringConfig(BaseModel):
    """Gravity scoring configuration.

    Attributes:
        gravity: Exponent applied to the age denominator.
        age_offset_hours: Hours added to the age before decay.
        source_weights: Per-source multiplier, unknown sources use 1.0.
        default_source_weight: Multiplier for sources not listed above.
        run_host_divisor: Divisor applied to run-host counters.
        comment_weight: Weight of log10(comments + 1) for link aggregators.
        velocity_max_age_hours: Items older than this never get a velocity bonus.
        velocity_lookback_hours: Target age of the comparison snapshot.
        velocity_growth_ratio: Growth over the snapshot that triggers the bonus.
        velocity_multiplier: Bonus multiplier for accelerating items.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    gravity: Annotated[float, Field(gt=0.0, le=5.0)] = 1.2
    age_offset_hours: Annotated[float, Field(gt=0.0)] = 2.0
    source_weights: dict[str, float] = Field(default_factory=_default_source_weights)
    default_source_weight: Annotated[float, Field(ge=0.0)] = 1.0
    run_host_divisor: Annotated[float, Field(gt=0.0)] = 100.0
    comment_weight: Annotated[float, Field(ge=0.0)] = 2.0
    velocity_max_age_hours: Annotated[float, Field(ge=0.0)] = 12.0
    velocity_lookback_hours: Annotated[float, Field(ge=0.0)] = 3.0
    velocity_growth_ratio: Annotated[float, Field(ge=0.0)] = 0.1
    velocity_multiplier: Annotated[float, Field(ge=1.0)] = 1.5


class ClusteringConfig(BaseModel):
    """Similarity and clustering configuration.

    Attributes:
        similarity_threshold: Cosine similarity above which items are related.
        related_credit: Share of a related item's score added to the cluster.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    similarity_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.85
    related_credit: Annotated[float, Field(ge=0.0, le=1.0)] = 0.2


class FeedConfig(BaseModel):
    """Public feed rebuild configuration.

    Attributes:
        window_days: Lookback window for the public feed.
        rebuild_interval_minutes: Interval of the rebuild timer.
        ingestion_interval_minutes: Interval of the ingest-then-rebuild timer.
        query_limit: Maximum rows fetched from the item store per query.
        two_source_multiplier: Synergy multiplier for two distinct sources.
        multi_source_multiplier: Synergy multiplier for three or more sources.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    window_days: Annotated[int, Field(ge=1)] = 7
    rebuild_interval_minutes: Annotated[float, Field(gt=0.0)] = 15.0
    ingestion_interval_minutes: Annotated[float, Field(gt=0.0)] = 60.0
    query_limit: Annotated[int, Field(ge=1)] = 500
    two_source_multiplier: Annotated[float, Field(ge=1.0)] = 1.2
    multi_source_multiplier: Annotated[float, Field(ge=1.0)] = 1.5


class DigestConfig(BaseModel):
    """Digest curation and scheduling configuration.

    Attributes:
        window_hours: Lookback window for digest candidates.
        history_hours: Trailing window of published topics used for dedup.
        dedup_threshold: Similarity above which a candidate counts as stale.
        per_category_cap: Maximum clusters per category.
        max_clusters: Maximum clusters in one digest.
        timezone: Zone in which schedule slots are evaluated.
        slot_hours: Local hours at which a digest is due.
        slot_tolerance_minutes: How long after a slot hour it is still due.
        recent_guard_hours: A digest recorded within this window blocks a new one.
        check_interval_minutes: How often the worker checks the schedule.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    window_hours: Annotated[int, Field(ge=1)] = 24
    history_hours: Annotated[int, Field(ge=0)] = 36
    dedup_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.85
    per_category_cap: Annotated[int, Field(ge=1)] = 3
    max_clusters: Annotated[int, Field(ge=1)] = 8
    timezone: str = "Europe/Moscow"
    slot_hours: list[Annotated[int, Field(ge=0, le=23)]] = Field(
        default_factory=lambda: [9, 21]
    )
    slot_tolerance_minutes: Annotated[int, Field(ge=1, le=59)] = 15
    recent_guard_hours: Annotated[int, Field(ge=0)] = 2
    check_interval_minutes: Annotated[float, Field(gt=0.0)] = 10.0

    @model_validator(mode="after")
    def validate_slots_unique(self) -> "DigestConfig":
        """Ensure schedule slots are not repeated."""
        if len(set(self.slot_hours)) != len(self.slot_hours):
            msg = "slot_hours must not contain duplicates"
            raise ValueError(msg)
        return self


class EngineConfig(BaseModel):
    """Root configuration for the ranking, clustering and digest engine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    clustering: ClusteringConfig = Field(default_factory=ClusteringConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    digest: DigestConfig = Field(default_factory=DigestConfig)
