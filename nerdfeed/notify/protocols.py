"""Protocol interface for outbound notification sinks."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class PublishResult:
    """Outcome of a publish attempt.

    Attributes:
        success: Whether the message was accepted.
        error: Failure description when not successful.
        attempts: Number of delivery attempts made.
    """

    success: bool
    error: str | None = None
    attempts: int = 0


@runtime_checkable
class NotificationSink(Protocol):
    """Protocol for channels that deliver digest text."""

    def publish(self, text: str) -> PublishResult:
        """Deliver a message.

        Failures are reported in the result, never raised.

        Args:
            text: Message text.

        Returns:
            PublishResult for the delivery.
        """
        ...
