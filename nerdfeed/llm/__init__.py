"""Text-intelligence service: digest writing and embeddings."""

from nerdfeed.llm.errors import LlmApiError, LlmError, LlmResponseError
from nerdfeed.llm.openrouter import MODEL_RATES, OpenRouterClient, calculate_cost
from nerdfeed.llm.protocols import Embedder, Summarizer, SummaryResult


__all__ = [
    "MODEL_RATES",
    "Embedder",
    "LlmApiError",
    "LlmError",
    "LlmResponseError",
    "OpenRouterClient",
    "Summarizer",
    "SummaryResult",
    "calculate_cost",
]
