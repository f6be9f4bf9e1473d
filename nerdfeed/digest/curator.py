"""Digest curation: clustering, temporal dedup, diversity cap, summary."""

from collections import defaultdict
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

import structlog

from nerdfeed.config.schemas import EngineConfig
from nerdfeed.digest.categories import Category, categorize_item
from nerdfeed.digest.models import DigestCandidate, DigestResult
from nerdfeed.linker.builder import query_clustered
from nerdfeed.linker.models import Cluster
from nerdfeed.llm.protocols import Summarizer
from nerdfeed.ranker.scorer import ItemScorer
from nerdfeed.ranker.similarity import max_similarity
from nerdfeed.store.protocols import DigestHistoryStore, ItemStore


logger = structlog.get_logger()

_HOURS_PER_DAY = 24


def _utc_now() -> datetime:
    return datetime.now(UTC)


def filter_published_topics(
    clusters: Sequence[Cluster],
    history_embeddings: Sequence[Sequence[float]],
    threshold: float,
) -> list[DigestCandidate]:
    """Drop clusters too similar to recently published topics.

    Clusters without an embedding always survive.

    Args:
        clusters: Candidate clusters in rank order.
        history_embeddings: Embeddings of recently published topics.
        threshold: Similarity that must be exceeded to drop a cluster.

    Returns:
        Surviving candidates in input order.
    """
    survivors: list[DigestCandidate] = []
    for cluster in clusters:
        embedding = cluster.embedding
        similarity = max_similarity(embedding, history_embeddings) if embedding else 0.0
        if similarity > threshold:
            continue
        survivors.append(
            DigestCandidate(
                cluster=cluster,
                category=categorize_item(cluster.main),
                history_similarity=similarity,
            )
        )
    return survivors


def apply_diversity_cap(
    candidates: Sequence[DigestCandidate],
    per_category_cap: int,
    max_clusters: int,
) -> list[DigestCandidate]:
    """Select candidates in order while capping each category.

    Args:
        candidates: Candidates in rank order.
        per_category_cap: Maximum accepted per category.
        max_clusters: Maximum accepted overall.

    Returns:
        Accepted candidates in rank order.
    """
    accepted: list[DigestCandidate] = []
    counts: dict[Category, int] = defaultdict(int)

    for candidate in candidates:
        if len(accepted) >= max_clusters:
            break
        if counts[candidate.category] >= per_category_cap:
            continue
        accepted.append(candidate)
        counts[candidate.category] += 1

    return accepted


class DigestCurator:
    """Selects a small, fresh and diverse set of top clusters.

    Pipeline: cluster the digest window, drop stories similar to what was
    published recently (unless forced), cap each category, then hand the
    selection to the summarizer. Store and summarizer failures propagate
    to the caller.
    """

    def __init__(
        self,
        store: ItemStore,
        history: DigestHistoryStore,
        summarizer: Summarizer,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the curator.

        Args:
            store: Item store to query.
            history: Digest history store.
            summarizer: Service writing the digest text.
            config: Engine configuration.
            clock: Source of the scoring reference time.
        """
        self._store = store
        self._history = history
        self._summarizer = summarizer
        self._config = config or EngineConfig()
        self._clock = clock
        self._log = logger.bind(component="digest", subcomponent="curator")

    def select_candidates(self, force: bool = False) -> list[DigestCandidate]:
        """Run clustering, dedup and diversity without summarizing.

        Args:
            force: Skip temporal de-duplication.

        Returns:
            Selected candidates in rank order, possibly empty.
        """
        digest_cfg = self._config.digest
        scorer = ItemScorer(self._config.scoring, now=self._clock())

        clusters = query_clustered(
            self._store,
            digest_cfg.window_hours / _HOURS_PER_DAY,
            None,
            scorer,
            self._config.clustering,
        )
        ranked = sorted(clusters, key=lambda c: -c.total_score)

        history_embeddings: list[list[float]] = []
        if not force:
            history_embeddings = [
                record.embedding
                for record in self._history.recent_topics(digest_cfg.history_hours)
                if record.embedding
            ]

        fresh = filter_published_topics(
            ranked,
            history_embeddings,
            digest_cfg.dedup_threshold,
        )
        selected = apply_diversity_cap(
            fresh,
            digest_cfg.per_category_cap,
            digest_cfg.max_clusters,
        )

        self._log.info(
            "digest_candidates_selected",
            force=force,
            clusters=len(clusters),
            history_topics=len(history_embeddings),
            after_dedup=len(fresh),
            selected=len(selected),
            categories=sorted({c.category.value for c in selected}),
        )
        return selected

    def curate(self, force: bool = False) -> DigestResult | None:
        """Produce the digest.

        Args:
            force: Skip temporal de-duplication.

        Returns:
            DigestResult, or None when no cluster is eligible. Callers
            must not publish in that case.

        Raises:
            StoreError: If the store fails.
            LlmError: If the summarizer fails.
        """
        selected = self.select_candidates(force)
        if not selected:
            self._log.info("digest_no_eligible_clusters", force=force)
            return None

        summary = self._summarizer.summarize([c.cluster for c in selected])
        self._log.info(
            "digest_curated",
            clusters=len(selected),
            total_tokens=summary.usage.total_tokens,
        )
        return DigestResult(
            content=summary.text,
            usage=summary.usage,
            candidates=tuple(selected),
        )
