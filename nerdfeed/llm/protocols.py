"""Protocol interfaces for the text-intelligence service."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from nerdfeed.linker.models import Cluster
from nerdfeed.store.models import LlmUsage


@dataclass(frozen=True)
class SummaryResult:
    """Narrative digest text and the usage it cost."""

    text: str
    usage: LlmUsage


@runtime_checkable
class Summarizer(Protocol):
    """Protocol for services that turn clusters into digest prose."""

    def summarize(self, clusters: Sequence[Cluster]) -> SummaryResult:
        """Write a digest for the given clusters.

        Args:
            clusters: Selected clusters in rank order.

        Returns:
            SummaryResult with text and usage metadata.

        Raises:
            LlmError: If the service call fails.
        """
        ...


@runtime_checkable
class Embedder(Protocol):
    """Protocol for embedding services."""

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per input text, in input order.

        Raises:
            LlmError: If the service call fails.
        """
        ...
