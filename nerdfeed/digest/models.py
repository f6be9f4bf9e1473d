"""Data models for digest curation and publishing."""

from dataclasses import dataclass, field
from enum import Enum

from nerdfeed.digest.categories import Category
from nerdfeed.linker.models import Cluster
from nerdfeed.store.models import LlmUsage


@dataclass(frozen=True)
class DigestCandidate:
    """Cluster considered for the digest.

    Attributes:
        cluster: Candidate cluster.
        category: Category of the cluster's main item.
        history_similarity: Highest similarity to a recently published
            topic (0.0 when not checked).
    """

    cluster: Cluster
    category: Category
    history_similarity: float = 0.0


@dataclass(frozen=True)
class DigestResult:
    """Curated digest ready for publishing.

    Attributes:
        content: Narrative text from the summarizer.
        usage: LLM usage for generating the text.
        candidates: Selected candidates in rank order.
    """

    content: str
    usage: LlmUsage
    candidates: tuple[DigestCandidate, ...] = field(default_factory=tuple)

    @property
    def clusters(self) -> list[Cluster]:
        """Selected clusters in rank order."""
        return [c.cluster for c in self.candidates]


class DigestRunStatus(str, Enum):
    """Terminal status of a digest publishing run."""

    PUBLISHED = "PUBLISHED"
    NO_ELIGIBLE_CLUSTERS = "NO_ELIGIBLE_CLUSTERS"
    PUBLISH_FAILED = "PUBLISH_FAILED"
    # Sent, but the digest history could not be written
    RECORD_FAILED = "RECORD_FAILED"
    FAILED = "FAILED"
    DRY_RUN = "DRY_RUN"


@dataclass(frozen=True)
class DigestRunResult:
    """Outcome of a digest publishing run.

    Attributes:
        status: Terminal status.
        digest: Curated digest, when one was produced.
        error: Failure description for FAILED, PUBLISH_FAILED and
            RECORD_FAILED.
    """

    status: DigestRunStatus
    digest: DigestResult | None = None
    error: str | None = None

    @property
    def published(self) -> bool:
        """Check whether the digest reached the sink."""
        return self.status in {DigestRunStatus.PUBLISHED, DigestRunStatus.RECORD_FAILED}
