"""Greedy similarity-based cluster builder."""

from collections.abc import Sequence

import structlog

from nerdfeed.config.schemas import ClusteringConfig
from nerdfeed.linker.metrics import LinkerMetrics
from nerdfeed.linker.models import Cluster
from nerdfeed.ranker.scorer import ItemScorer
from nerdfeed.ranker.similarity import SimilarityResolver
from nerdfeed.store.models import Item
from nerdfeed.store.protocols import ItemStore


logger = structlog.get_logger()


class ClusterBuilder:
    """Partitions score-sorted items into clusters.

    Single greedy pass: the first unprocessed item opens a cluster as its
    main item, and every later unprocessed item related to that main item
    joins it. Each joined item adds ``related_credit`` of its own score to
    the cluster total. Ties in score keep the caller's input order, so the
    caller must pass a stable ordering for reproducible output.

    The pass is O(n^2) in comparisons, which is fine for a few hundred
    items per window.
    """

    def __init__(
        self,
        scorer: ItemScorer,
        config: ClusteringConfig | None = None,
        metrics: LinkerMetrics | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            scorer: Scorer used for main and related item scores.
            config: Clustering configuration.
            metrics: Optional metrics instance; a private one is created
                otherwise.
        """
        self._scorer = scorer
        self._config = config or ClusteringConfig()
        self._resolver = SimilarityResolver(self._config.similarity_threshold)
        self._metrics = metrics or LinkerMetrics()
        self._log = logger.bind(component="linker", subcomponent="builder")

    @property
    def metrics(self) -> LinkerMetrics:
        """Get the metrics of the latest build."""
        return self._metrics

    def build(self, items: Sequence[Item]) -> list[Cluster]:
        """Group items into clusters.

        Args:
            items: Items sorted by score descending.

        Returns:
            Clusters in construction order (main score descending).
        """
        self._metrics.reset()
        self._metrics.record_items_in(len(items))

        processed = [False] * len(items)
        clusters: list[Cluster] = []

        for i, main in enumerate(items):
            if processed[i]:
                continue
            processed[i] = True

            main_score = self._scorer.score(main)
            cluster = Cluster(main=main, main_score=main_score, total_score=main_score)

            for j in range(i + 1, len(items)):
                if processed[j]:
                    continue

                candidate = items[j]
                reason = self._resolver.match_reason(main, candidate)
                if reason is None:
                    continue

                processed[j] = True
                cluster.related.append(candidate)
                cluster.total_score += (
                    self._scorer.score(candidate) * self._config.related_credit
                )
                self._metrics.record_merge(reason.value)

            clusters.append(cluster)

        self._metrics.record_clusters_out(len(clusters))
        self._log.info(
            "clusters_built",
            items_in=len(items),
            clusters_out=len(clusters),
            multi_item_clusters=sum(1 for c in clusters if c.related),
            metrics=self._metrics.to_dict(),
        )
        return clusters


def query_clustered(
    store: ItemStore,
    window_days: float,
    sources: Sequence[str] | None,
    scorer: ItemScorer,
    config: ClusteringConfig | None = None,
) -> list[Cluster]:
    """Query items for a window, sort them by score and cluster them.

    Args:
        store: Item store collaborator.
        window_days: Lookback window in days.
        sources: Source tags to include; None means every source.
        scorer: Scorer for ordering and cluster totals.
        config: Clustering configuration.

    Returns:
        Clusters in construction order.
    """
    items = store.query_by_window(window_days, sources)
    ordered = scorer.sort_items(items)
    return ClusterBuilder(scorer, config).build(ordered)


def build_clusters_pure(
    items: Sequence[Item],
    scorer: ItemScorer,
    config: ClusteringConfig | None = None,
) -> list[Cluster]:
    """Pure function API for cluster building."""
    return ClusterBuilder(scorer, config).build(items)
