"""Digest curation, publishing and scheduling."""

from nerdfeed.digest.categories import Category, categorize_item, categorize_text
from nerdfeed.digest.curator import (
    DigestCurator,
    apply_diversity_cap,
    filter_published_topics,
)
from nerdfeed.digest.models import (
    DigestCandidate,
    DigestResult,
    DigestRunResult,
    DigestRunStatus,
)
from nerdfeed.digest.publisher import DigestPublisher
from nerdfeed.digest.schedule import DigestSchedule, ScheduledDigestJob


__all__ = [
    "Category",
    "DigestCandidate",
    "DigestCurator",
    "DigestPublisher",
    "DigestResult",
    "DigestRunResult",
    "DigestRunStatus",
    "DigestSchedule",
    "ScheduledDigestJob",
    "apply_diversity_cap",
    "categorize_item",
    "categorize_text",
    "filter_published_topics",
]
