"""Item and digest-history persistence.

Defines the Item data model, the collaborator protocols consumed by the
ranking engine, URL identity normalization, the admission filter and a
SQLite implementation of the stores.
"""

from nerdfeed.store.errors import StoreConnectionError, StoreError, StoreQueryError
from nerdfeed.store.filters import is_valid_item
from nerdfeed.store.models import (
    ALL_SOURCES,
    REPOSITORY_SOURCES,
    Item,
    LlmUsage,
    MetricSnapshot,
    SourceTag,
    TopicRecord,
)
from nerdfeed.store.protocols import DigestHistoryStore, ItemStore, UsageLog
from nerdfeed.store.sqlite import FeedStore
from nerdfeed.store.url import url_identity


__all__ = [
    "ALL_SOURCES",
    "REPOSITORY_SOURCES",
    "DigestHistoryStore",
    "FeedStore",
    "Item",
    "ItemStore",
    "LlmUsage",
    "MetricSnapshot",
    "SourceTag",
    "StoreConnectionError",
    "StoreError",
    "StoreQueryError",
    "TopicRecord",
    "UsageLog",
    "is_valid_item",
    "url_identity",
]
