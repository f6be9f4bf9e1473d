"""Data models for items, metric history and digest history."""

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Oldest snapshots are evicted first once this many are stored per item
MAX_HISTORY_SNAPSHOTS = 100


class SourceTag(str, Enum):
    """Known content sources.

    - github: primary code host
    - huggingface: model hub
    - reddit: forum
    - hackernews: link aggregator with discussion counts
    - replicate: model run host
    """

    GITHUB = "github"
    HUGGINGFACE = "huggingface"
    REDDIT = "reddit"
    HACKERNEWS = "hackernews"
    REPLICATE = "replicate"


# Sources whose items are repositories rendered as owner/name
REPOSITORY_SOURCES: frozenset[str] = frozenset(
    {SourceTag.GITHUB.value, SourceTag.HUGGINGFACE.value, SourceTag.REPLICATE.value}
)

ALL_SOURCES: tuple[str, ...] = tuple(tag.value for tag in SourceTag)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class MetricSnapshot(BaseModel):
    """Popularity counter observed at a point in time."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: datetime
    stars: float = 0.0

    @field_validator("timestamp", mode="after")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Store snapshot timestamps in UTC."""
        return _as_utc(v)


class Item(BaseModel):
    """Ingested content record from a single source.

    ``(id, source)`` is the uniqueness key: the same story may appear once
    per source.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Annotated[str, Field(min_length=1, description="Identifier unique per source")]
    source: Annotated[str, Field(min_length=1, description="Source tag")]
    author: str = ""
    title: str = ""
    description: str = ""
    stars: float = 0.0
    url: str = ""
    created_at: datetime | None = None
    summary: str | None = None
    embedding: list[float] | None = None
    comments: int | None = None
    raw_json: str = "{}"
    history: list[MetricSnapshot] = Field(default_factory=list)

    @field_validator("source", mode="before")
    @classmethod
    def normalize_source(cls, v: Any) -> Any:
        """Lowercase source tags so lookups are case-insensitive."""
        if isinstance(v, SourceTag):
            return v.value
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("stars", mode="before")
    @classmethod
    def coerce_stars(cls, v: Any) -> float:
        """Treat non-numeric popularity as zero."""
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(value):
            return 0.0
        return value

    @field_validator("created_at", mode="before")
    @classmethod
    def coerce_created_at(cls, v: Any) -> Any:
        """Treat empty or unparseable timestamps as missing."""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                return None
        return v

    @field_validator("created_at", mode="after")
    @classmethod
    def normalize_created_at(cls, v: datetime | None) -> datetime | None:
        """Store creation timestamps in UTC."""
        return _as_utc(v) if v is not None else None

    @field_validator("history", mode="after")
    @classmethod
    def bound_history(cls, v: list[MetricSnapshot]) -> list[MetricSnapshot]:
        """Keep the most recent snapshots in chronological order."""
        ordered = sorted(v, key=lambda s: s.timestamp)
        return ordered[-MAX_HISTORY_SNAPSHOTS:]

    @property
    def key(self) -> tuple[str, str]:
        """Uniqueness key of the item."""
        return (self.id, self.source)


class TopicRecord(BaseModel):
    """Topic previously published in a digest."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    summary: str
    embedding: list[float] | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class LlmUsage(BaseModel):
    """Token usage and estimated cost of one LLM call."""

    model_config = ConfigDict(frozen=True, extra="forbid", protected_namespaces=())

    model_id: str
    prompt_tokens: Annotated[int, Field(ge=0)] = 0
    completion_tokens: Annotated[int, Field(ge=0)] = 0
    total_cost: Annotated[float, Field(ge=0.0)] = 0.0
    reference: str | None = None
    items_count: Annotated[int, Field(ge=0)] = 0

    @property
    def total_tokens(self) -> int:
        """Prompt plus completion tokens."""
        return self.prompt_tokens + self.completion_tokens
