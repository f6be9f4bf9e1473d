"""Data models for the cluster builder."""

from dataclasses import dataclass, field

from nerdfeed.store.models import Item, SourceTag


# Source priority for the canonical link of a cluster
BEST_LINK_PRIORITY: tuple[str, ...] = (
    SourceTag.GITHUB.value,
    SourceTag.HUGGINGFACE.value,
)


@dataclass
class Cluster:
    """Group of items judged to describe the same story.

    Clusters are rebuilt from scratch on every pass; no identity persists
    across rebuilds.

    Attributes:
        main: Highest-scoring item of the group.
        related: Other items describing the same story.
        main_score: Score of the main item.
        total_score: Main score plus damped credit for related items.
    """

    main: Item
    related: list[Item] = field(default_factory=list)
    main_score: float = 0.0
    total_score: float = 0.0

    @property
    def items(self) -> list[Item]:
        """Main item followed by related items."""
        return [self.main, *self.related]

    @property
    def sources(self) -> list[str]:
        """Distinct source tags in order of first appearance."""
        seen: dict[str, None] = {}
        for item in self.items:
            seen.setdefault(item.source, None)
        return list(seen)

    @property
    def embedding(self) -> list[float] | None:
        """Embedding that represents the cluster (the main item's)."""
        return self.main.embedding

    @property
    def best_item(self) -> Item:
        """Item whose URL is surfaced: code host, then model hub, then main."""
        for source in BEST_LINK_PRIORITY:
            for item in self.items:
                if item.source == source:
                    return item
        return self.main

    @property
    def best_link(self) -> str:
        """Canonical URL of the cluster."""
        return self.best_item.url
