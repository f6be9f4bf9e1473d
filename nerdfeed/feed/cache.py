"""In-memory cache holding the latest feed snapshot."""

import threading
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from enum import Enum

import structlog

from nerdfeed.feed.models import FeedEntry, FeedSnapshot


logger = structlog.get_logger()


class FeedCacheState(str, Enum):
    """Lifecycle of the feed cache.

    - EMPTY: No rebuild has succeeded since start
    - POPULATED: A snapshot is available; it is only ever replaced
    """

    EMPTY = "EMPTY"
    POPULATED = "POPULATED"


_VALID_TRANSITIONS: dict[FeedCacheState, set[FeedCacheState]] = {
    FeedCacheState.EMPTY: {FeedCacheState.POPULATED},
    FeedCacheState.POPULATED: {FeedCacheState.POPULATED},
}


class FeedCacheStateError(Exception):
    """Raised when an illegal cache state transition is attempted."""

    def __init__(self, from_state: FeedCacheState, to_state: FeedCacheState) -> None:
        """Initialize the transition error.

        Args:
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal feed cache transition: {from_state.value} -> {to_state.value}"
        )


def _utc_now() -> datetime:
    return datetime.now(UTC)


class FeedCache:
    """Single-slot cache of the ranked feed.

    Writers replace the whole snapshot under a lock. Readers take the
    current reference without locking and therefore always see either the
    previous snapshot or the new one, never a mix.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        """Initialize an empty cache.

        Args:
            clock: Source of snapshot build times.
        """
        self._clock = clock
        self._snapshot: FeedSnapshot | None = None
        self._state = FeedCacheState.EMPTY
        self._write_lock = threading.Lock()
        self._log = logger.bind(component="feed", subcomponent="cache")

    @property
    def state(self) -> FeedCacheState:
        """Get the current state."""
        return self._state

    @property
    def is_populated(self) -> bool:
        """Check whether a snapshot is available."""
        return self._state == FeedCacheState.POPULATED

    def get(self) -> FeedSnapshot | None:
        """Return the current snapshot, or None before the first build."""
        return self._snapshot

    def set(self, entries: Sequence[FeedEntry]) -> FeedSnapshot:
        """Replace the cached feed.

        Args:
            entries: Complete, ordered feed.

        Returns:
            The snapshot now being served.
        """
        snapshot = FeedSnapshot(entries=tuple(entries), built_at=self._clock())
        with self._write_lock:
            self._transition_to(FeedCacheState.POPULATED)
            self._snapshot = snapshot

        self._log.info(
            "feed_cache_updated",
            entries=len(snapshot.entries),
            built_at=snapshot.built_at.isoformat(),
        )
        return snapshot

    def clear(self) -> None:
        """Drop the snapshot.

        Raises:
            FeedCacheStateError: Always once populated; a served feed is
                only ever replaced.
        """
        with self._write_lock:
            self._transition_to(FeedCacheState.EMPTY)
            self._snapshot = None

    def _transition_to(self, target: FeedCacheState) -> None:
        if target not in _VALID_TRANSITIONS.get(self._state, set()):
            self._log.error(
                "illegal_feed_cache_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise FeedCacheStateError(self._state, target)

        if target != self._state:
            self._log.info(
                "feed_cache_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
        self._state = target
