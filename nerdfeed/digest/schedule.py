"""Wall-clock schedule for automatic digests."""

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import structlog

from nerdfeed.config.schemas import DigestConfig
from nerdfeed.digest.models import DigestRunResult
from nerdfeed.digest.publisher import DigestPublisher
from nerdfeed.store.protocols import DigestHistoryStore


logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class DigestSchedule:
    """Decides when an automatic digest is due.

    A digest is due in the first minutes after each slot hour (local time
    in the configured zone), unless one was recorded within the guard
    window. The guard keeps repeated checks inside one slot from
    publishing twice.
    """

    def __init__(self, config: DigestConfig, history: DigestHistoryStore) -> None:
        """Initialize the schedule.

        Args:
            config: Digest configuration with slots and tolerances.
            history: Digest history used for the recent-digest guard.
        """
        self._config = config
        self._history = history
        self._zone = ZoneInfo(config.timezone)

    def current_slot(self, now: datetime) -> int | None:
        """Return the slot hour ``now`` falls into, or None.

        Args:
            now: Timezone-aware current time.

        Returns:
            Slot hour, or None outside every slot window.
        """
        occurrence = self.current_occurrence(now)
        return occurrence[1] if occurrence else None

    def current_occurrence(self, now: datetime) -> tuple[date, int] | None:
        """Return the local date and slot hour ``now`` falls into, or None."""
        local = now.astimezone(self._zone)
        tolerance = timedelta(minutes=self._config.slot_tolerance_minutes)
        for hour in self._config.slot_hours:
            start = local.replace(hour=hour, minute=0, second=0, microsecond=0)
            if start <= local < start + tolerance:
                return local.date(), hour
        return None

    def is_due(self, now: datetime) -> bool:
        """Check whether a digest should be published now."""
        if self.current_slot(now) is None:
            return False
        return not self._history.recent_topics(self._config.recent_guard_hours)


class ScheduledDigestJob:
    """Periodic check that runs the publisher when the schedule is due.

    Once a digest reached the sink for a slot, later checks inside the
    same slot are skipped even if the history write failed.
    """

    def __init__(
        self,
        schedule: DigestSchedule,
        publisher: DigestPublisher,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the job.

        Args:
            schedule: Digest schedule.
            publisher: Digest publisher.
            clock: Source of the current time.
        """
        self._schedule = schedule
        self._publisher = publisher
        self._clock = clock
        self._sent_occurrence: tuple[date, int] | None = None
        self._log = logger.bind(component="digest", subcomponent="schedule")

    def __call__(self) -> DigestRunResult | None:
        """Run the digest if due.

        Returns:
            Run result, or None when nothing was due.
        """
        now = self._clock()
        occurrence = self._schedule.current_occurrence(now)
        if occurrence is None:
            return None
        if occurrence == self._sent_occurrence:
            self._log.debug("scheduled_digest_already_sent", slot_hour=occurrence[1])
            return None
        if not self._schedule.is_due(now):
            return None

        self._log.info("scheduled_digest_started", slot_hour=occurrence[1])
        result = self._publisher.run(force=False)
        if result.published:
            self._sent_occurrence = occurrence
        self._log.info("scheduled_digest_finished", status=result.status.value)
        return result
