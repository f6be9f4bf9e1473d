"""Outbound notification delivery."""

from nerdfeed.notify.protocols import NotificationSink, PublishResult
from nerdfeed.notify.telegram import TelegramSink


__all__ = ["NotificationSink", "PublishResult", "TelegramSink"]
