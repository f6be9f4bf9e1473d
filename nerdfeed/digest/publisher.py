"""Digest publishing job."""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from nerdfeed.digest.curator import DigestCurator
from nerdfeed.digest.models import DigestResult, DigestRunResult, DigestRunStatus
from nerdfeed.notify.protocols import NotificationSink
from nerdfeed.store.models import TopicRecord
from nerdfeed.store.protocols import DigestHistoryStore, UsageLog


logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class DigestPublisher:
    """Curates a digest, publishes it and records what was published.

    Digest history and LLM usage are written only after the sink accepted
    the message, so a failed delivery leaves the topics eligible for the
    next run. History is written before usage; a history failure after a
    successful send is reported as RECORD_FAILED so schedulers can tell a
    sent digest apart from one that never went out.
    """

    def __init__(
        self,
        curator: DigestCurator,
        sink: NotificationSink,
        history: DigestHistoryStore,
        usage_log: UsageLog | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the publisher.

        Args:
            curator: Digest curator.
            sink: Notification sink receiving the digest text.
            history: Digest history store to append published topics to.
            usage_log: Optional LLM usage log.
            clock: Source of history timestamps.
        """
        self._curator = curator
        self._sink = sink
        self._history = history
        self._usage_log = usage_log
        self._clock = clock
        self._log = logger.bind(component="digest", subcomponent="publisher")

    def run(self, force: bool = False, dry_run: bool = False) -> DigestRunResult:
        """Run the job once.

        Args:
            force: Skip temporal de-duplication.
            dry_run: Curate and summarize but do not publish or record.

        Returns:
            DigestRunResult with the terminal status.
        """
        reference = f"digest_{uuid.uuid4().hex[:12]}"
        log = self._log.bind(reference=reference, force=force, dry_run=dry_run)
        log.info("digest_run_started")

        try:
            digest = self._curator.curate(force)
        except Exception as e:  # noqa: BLE001
            log.warning(
                "digest_run_failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return DigestRunResult(status=DigestRunStatus.FAILED, error=str(e))

        if digest is None:
            log.info("digest_run_skipped", reason="no_eligible_clusters")
            return DigestRunResult(status=DigestRunStatus.NO_ELIGIBLE_CLUSTERS)

        if dry_run:
            log.info("digest_dry_run_completed", clusters=len(digest.candidates))
            return DigestRunResult(status=DigestRunStatus.DRY_RUN, digest=digest)

        published = self._sink.publish(digest.content)
        if not published.success:
            log.warning(
                "digest_publish_failed",
                error=published.error,
                attempts=published.attempts,
            )
            return DigestRunResult(
                status=DigestRunStatus.PUBLISH_FAILED,
                digest=digest,
                error=published.error,
            )

        try:
            self._record_topics(digest)
        except Exception as e:  # noqa: BLE001
            log.error(
                "digest_record_failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return DigestRunResult(
                status=DigestRunStatus.RECORD_FAILED,
                digest=digest,
                error=str(e),
            )

        try:
            self._record_usage(digest, reference)
        except Exception as e:  # noqa: BLE001
            log.warning(
                "digest_usage_log_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

        log.info("digest_published", clusters=len(digest.candidates))
        return DigestRunResult(status=DigestRunStatus.PUBLISHED, digest=digest)

    def _record_topics(self, digest: DigestResult) -> None:
        now = self._clock()
        self._history.append_topics(
            [
                TopicRecord(
                    summary=cluster.main.title,
                    embedding=cluster.embedding,
                    created_at=now,
                )
                for cluster in digest.clusters
            ]
        )

    def _record_usage(self, digest: DigestResult, reference: str) -> None:
        if self._usage_log is not None:
            self._usage_log.log_llm_usage(
                digest.usage.model_copy(
                    update={
                        "reference": reference,
                        "items_count": len(digest.candidates),
                    }
                )
            )
