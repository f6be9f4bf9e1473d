"""Metrics for cluster builder operations."""

from dataclasses import dataclass, field


@dataclass
class LinkerMetrics:
    """Per-run metrics for cluster building.

    Each builder owns its instance and resets it at the start of every
    build, so the counters always describe the latest run.
    """

    items_in: int = 0
    clusters_out: int = 0
    merges_total: int = 0
    merges_by_reason: dict[str, int] = field(default_factory=dict)

    def reset(self) -> None:
        """Zero every counter."""
        self.items_in = 0
        self.clusters_out = 0
        self.merges_total = 0
        self.merges_by_reason = {}

    def record_items_in(self, count: int) -> None:
        """Record input item count."""
        self.items_in = count

    def record_clusters_out(self, count: int) -> None:
        """Record output cluster count."""
        self.clusters_out = count

    def record_merge(self, reason: str) -> None:
        """Record a merge of a related item into a cluster.

        Args:
            reason: Rule that linked the items.
        """
        self.merges_total += 1
        self.merges_by_reason[reason] = self.merges_by_reason.get(reason, 0) + 1

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric values.
        """
        return {
            "items_in": self.items_in,
            "clusters_out": self.clusters_out,
            "merges_total": self.merges_total,
            "merges_by_reason": dict(self.merges_by_reason),
        }
