"""Protocol interfaces for the persistence collaborators."""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from nerdfeed.store.models import Item, LlmUsage, TopicRecord


@runtime_checkable
class ItemStore(Protocol):
    """Read access to persisted items."""

    def query_by_window(
        self,
        window_days: float,
        sources: Sequence[str] | None = None,
    ) -> list[Item]:
        """Return items created inside the window.

        Args:
            window_days: Lookback window in days (fractions allowed).
            sources: Source tags to include; None means every source.

        Returns:
            Items with their metric history attached.
        """
        ...


@runtime_checkable
class DigestHistoryStore(Protocol):
    """Append/query access to previously published digest topics."""

    def recent_topics(self, hours: float) -> list[TopicRecord]:
        """Return topics published within the trailing window."""
        ...

    def append_topics(self, topics: Sequence[TopicRecord]) -> None:
        """Record newly published topics."""
        ...


@runtime_checkable
class UsageLog(Protocol):
    """Sink for LLM usage accounting."""

    def log_llm_usage(self, usage: LlmUsage) -> None:
        """Persist one usage record."""
        ...
