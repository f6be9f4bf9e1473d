"""Public feed: presentation, cache, rebuild and background scheduling."""

from nerdfeed.feed.cache import FeedCache, FeedCacheState, FeedCacheStateError
from nerdfeed.feed.models import (
    FeedEntry,
    FeedSnapshot,
    FeedStatus,
    FeedView,
    RebuildResult,
    SpottedLink,
)
from nerdfeed.feed.presenter import (
    build_feed_entries,
    infer_link_tags,
    present_cluster,
    resolve_display_name,
    spotted_links,
    synergy_multiplier,
)
from nerdfeed.feed.rebuild import FeedRebuilder
from nerdfeed.feed.scheduler import FeedWorker, RecurringTask
from nerdfeed.feed.service import FeedService


__all__ = [
    "FeedCache",
    "FeedCacheState",
    "FeedCacheStateError",
    "FeedEntry",
    "FeedRebuilder",
    "FeedService",
    "FeedSnapshot",
    "FeedStatus",
    "FeedView",
    "FeedWorker",
    "RebuildResult",
    "RecurringTask",
    "SpottedLink",
    "build_feed_entries",
    "infer_link_tags",
    "present_cluster",
    "resolve_display_name",
    "spotted_links",
    "synergy_multiplier",
]
