"""Unit tests for the digest schedule."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from nerdfeed.config.schemas import DigestConfig
from nerdfeed.digest.models import DigestRunResult, DigestRunStatus
from nerdfeed.digest.schedule import DigestSchedule, ScheduledDigestJob
from nerdfeed.store.models import TopicRecord


def _make_history(topics: list[TopicRecord] | None = None) -> MagicMock:
    """Create a history store mock."""
    history = MagicMock()
    history.recent_topics.return_value = topics or []
    return history


def _utc(hour: int, minute: int = 0) -> datetime:
    """UTC time on a fixed day (Moscow is UTC+3)."""
    return datetime(2017, 6, 13, hour, minute, tzinfo=UTC)


class TestDigestSchedule:
    """Tests for DigestSchedule."""

    @pytest.mark.parametrize(
        ("now", "slot"),
        [
            (_utc(6, 0), 9),
            (_utc(6, 14), 9),
            (_utc(18, 5), 21),
            (_utc(6, 15), None),
            (_utc(5, 59), None),
            (_utc(12, 0), None),
        ],
    )
    def test_current_slot(self, now: datetime, slot: int | None) -> None:
        """Slots are 09:00 and 21:00 Moscow time with a 15-minute window."""
        schedule = DigestSchedule(DigestConfig(), _make_history())
        assert schedule.current_slot(now) == slot

    def test_due_in_slot_without_recent_digest(self) -> None:
        """A slot with no recent digest is due."""
        history = _make_history()
        schedule = DigestSchedule(DigestConfig(), history)

        assert schedule.is_due(_utc(6, 5))
        history.recent_topics.assert_called_once_with(2)

    def test_recent_digest_blocks(self) -> None:
        """A digest recorded within the guard window blocks another."""
        schedule = DigestSchedule(
            DigestConfig(), _make_history([TopicRecord(summary="x")])
        )
        assert not schedule.is_due(_utc(6, 5))

    def test_outside_slot_skips_history(self) -> None:
        """Outside a slot the history is not consulted."""
        history = _make_history()
        assert not DigestSchedule(DigestConfig(), history).is_due(_utc(12, 0))
        history.recent_topics.assert_not_called()


class TestScheduledDigestJob:
    """Tests for ScheduledDigestJob."""

    def test_runs_publisher_when_due(self) -> None:
        """The publisher runs unforced when the schedule is due."""
        publisher = MagicMock()
        publisher.run.return_value = DigestRunResult(status=DigestRunStatus.PUBLISHED)
        job = ScheduledDigestJob(
            DigestSchedule(DigestConfig(), _make_history()),
            publisher,
            clock=lambda: _utc(18, 1),
        )

        result = job()

        assert result is not None
        assert result.status == DigestRunStatus.PUBLISHED
        publisher.run.assert_called_once_with(force=False)

    def test_idle_when_not_due(self) -> None:
        """Nothing runs outside a slot."""
        publisher = MagicMock()
        job = ScheduledDigestJob(
            DigestSchedule(DigestConfig(), _make_history()),
            publisher,
            clock=lambda: _utc(12, 0),
        )

        assert job() is None
        publisher.run.assert_not_called()

    def test_sent_slot_not_repeated_after_record_failure(self) -> None:
        """A digest that reached the sink is not resent in the same slot."""
        publisher = MagicMock()
        publisher.run.return_value = DigestRunResult(
            status=DigestRunStatus.RECORD_FAILED, error="database is locked"
        )
        now = {"value": _utc(6, 1)}
        job = ScheduledDigestJob(
            DigestSchedule(DigestConfig(), _make_history()),
            publisher,
            clock=lambda: now["value"],
        )

        assert job() is not None
        now["value"] = _utc(6, 11)
        assert job() is None
        now["value"] = _utc(18, 1)
        assert job() is not None
        assert publisher.run.call_count == 2

    def test_unsent_slot_retried(self) -> None:
        """A failed delivery is retried on the next check inside the slot."""
        publisher = MagicMock()
        publisher.run.return_value = DigestRunResult(
            status=DigestRunStatus.PUBLISH_FAILED, error="API error 502"
        )
        now = {"value": _utc(6, 1)}
        job = ScheduledDigestJob(
            DigestSchedule(DigestConfig(), _make_history()),
            publisher,
            clock=lambda: now["value"],
        )

        job()
        now["value"] = _utc(6, 11)
        job()

        assert publisher.run.call_count == 2
