"""Read side of the feed."""

import structlog

from nerdfeed.feed.cache import FeedCache
from nerdfeed.feed.models import FeedStatus, FeedView
from nerdfeed.feed.rebuild import FeedRebuilder


logger = structlog.get_logger()


class FeedService:
    """Serves the cached feed to readers.

    Reads never touch the store. Before the first successful rebuild the
    service reports INITIALIZING and kicks off a rebuild in the background.
    """

    def __init__(self, cache: FeedCache, rebuilder: FeedRebuilder) -> None:
        """Initialize the service.

        Args:
            cache: Cache to read from.
            rebuilder: Rebuilder used to fill an empty cache.
        """
        self._cache = cache
        self._rebuilder = rebuilder
        self._log = logger.bind(component="feed", subcomponent="service")

    def get_feed(self) -> FeedView:
        """Return the current feed.

        Returns:
            READY view with the cached entries, or an empty INITIALIZING view.
        """
        snapshot = self._cache.get()
        if snapshot is None:
            started = self._rebuilder.trigger_async()
            self._log.info("feed_initializing", rebuild_started=started)
            return FeedView(status=FeedStatus.INITIALIZING)

        return FeedView(
            status=FeedStatus.READY,
            entries=snapshot.entries,
            built_at=snapshot.built_at,
        )
