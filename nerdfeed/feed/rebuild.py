"""Feed rebuild: query, score, cluster, present, publish to the cache."""

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from nerdfeed.config.schemas import EngineConfig
from nerdfeed.feed.cache import FeedCache
from nerdfeed.feed.models import RebuildResult
from nerdfeed.feed.presenter import build_feed_entries
from nerdfeed.linker.builder import query_clustered
from nerdfeed.ranker.scorer import ItemScorer
from nerdfeed.store.protocols import ItemStore


logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class FeedRebuilder:
    """Rebuilds the public feed and swaps it into the cache.

    At most one rebuild runs at a time. A periodic trigger that arrives
    while a rebuild is in flight is skipped. A caller that has just written
    to the store waits for the in-flight rebuild and then rebuilds, so its
    writes always reach the cache. A failed rebuild leaves the previous
    snapshot in place.
    """

    def __init__(
        self,
        store: ItemStore,
        cache: FeedCache,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the rebuilder.

        Args:
            store: Item store to query.
            cache: Cache receiving new snapshots.
            config: Engine configuration.
            clock: Source of the scoring reference time.
        """
        self._store = store
        self._cache = cache
        self._config = config or EngineConfig()
        self._clock = clock
        self._guard = threading.Lock()
        self._log = logger.bind(component="feed", subcomponent="rebuild")

    @property
    def is_running(self) -> bool:
        """Check whether a rebuild is in flight."""
        return self._guard.locked()

    def rebuild(self, wait: bool = False) -> RebuildResult:
        """Run one rebuild.

        Args:
            wait: Wait for an in-flight rebuild to finish and then rebuild
                again instead of skipping. Callers that just changed the
                store pass True, since the running rebuild may have read
                it before the change.

        Returns:
            RebuildResult describing the attempt.
        """
        if not self._guard.acquire(blocking=False):
            if not wait:
                self._log.info("feed_rebuild_skipped", reason="already_running")
                return RebuildResult(success=False, skipped=True)
            self._log.info("feed_rebuild_waiting", reason="already_running")
            self._guard.acquire()

        return self._run_held()

    def trigger_async(self) -> bool:
        """Start a rebuild on a background thread without waiting.

        Returns:
            True if a thread was started, False if one is already running.
        """
        if not self._guard.acquire(blocking=False):
            return False

        thread = threading.Thread(
            target=self._run_held,
            name="nerdfeed-feed-rebuild",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError:
            self._guard.release()
            raise
        return True

    def _run_held(self) -> RebuildResult:
        """Rebuild with the guard already held, releasing it afterwards."""
        try:
            return self._rebuild_locked()
        finally:
            self._guard.release()

    def _rebuild_locked(self) -> RebuildResult:
        start = time.monotonic()
        self._log.info("feed_rebuild_started")

        try:
            scorer = ItemScorer(self._config.scoring, now=self._clock())
            clusters = query_clustered(
                self._store,
                self._config.feed.window_days,
                None,
                scorer,
                self._config.clustering,
            )
            entries = build_feed_entries(clusters, self._config.feed)
            self._cache.set(entries)
        except Exception as e:  # noqa: BLE001
            duration_ms = (time.monotonic() - start) * 1000
            self._log.warning(
                "feed_rebuild_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
                cache_state=self._cache.state.value,
                exc_info=True,
            )
            return RebuildResult(
                success=False,
                duration_ms=duration_ms,
                error=str(e),
            )

        duration_ms = (time.monotonic() - start) * 1000
        self._log.info(
            "feed_rebuild_completed",
            clusters=len(clusters),
            entries=len(entries),
            duration_ms=round(duration_ms, 2),
        )
        return RebuildResult(
            success=True,
            entries=len(entries),
            duration_ms=duration_ms,
        )
