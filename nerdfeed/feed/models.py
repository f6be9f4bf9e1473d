"""Data models for the public feed."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from nerdfeed.linker.models import Cluster


@dataclass(frozen=True)
class SpottedLink:
    """Representative URL of one source that carried the story.

    Attributes:
        source: Source tag.
        name: Human-readable source name.
        url: Link to the story on that source.
    """

    source: str
    name: str
    url: str


@dataclass(frozen=True)
class FeedEntry:
    """Cluster prepared for the public feed.

    Attributes:
        cluster: Underlying cluster.
        boosted_score: Cluster total times the synergy multiplier.
        synergy_multiplier: Boost for corroboration across sources.
        best_link: Canonical URL to surface.
        source_tags: Sources present in the cluster plus tags inferred from the link.
        display_name: owner/name for repositories, else the title.
        description: Short description line.
        summary: Machine-generated summary of the main item, if any.
        spotted_links: One link per distinct source.
        created_at: Creation time of the main item.
    """

    cluster: Cluster
    boosted_score: float
    synergy_multiplier: float
    best_link: str
    source_tags: tuple[str, ...]
    display_name: str
    description: str
    summary: str | None
    spotted_links: tuple[SpottedLink, ...] = field(default_factory=tuple)
    created_at: datetime | None = None


@dataclass(frozen=True)
class FeedSnapshot:
    """Immutable cache entry: the full feed and when it was built."""

    entries: tuple[FeedEntry, ...]
    built_at: datetime


class FeedStatus(str, Enum):
    """Availability of the feed for readers."""

    READY = "READY"
    INITIALIZING = "INITIALIZING"


@dataclass(frozen=True)
class FeedView:
    """What a reader receives.

    Attributes:
        status: READY, or INITIALIZING while the first build runs.
        entries: Feed entries (empty while initializing).
        built_at: Build time of the snapshot, if any.
    """

    status: FeedStatus
    entries: tuple[FeedEntry, ...] = ()
    built_at: datetime | None = None


@dataclass(frozen=True)
class RebuildResult:
    """Outcome of one rebuild attempt.

    Attributes:
        success: Whether a new snapshot was published.
        skipped: True when another rebuild was already running.
        entries: Number of entries published.
        duration_ms: Wall time of the attempt.
        error: Error message on failure.
    """

    success: bool
    skipped: bool = False
    entries: int = 0
    duration_ms: float = 0.0
    error: str | None = None
