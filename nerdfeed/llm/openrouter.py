"""OpenRouter API client for digest writing and embeddings."""

import random
import time
from collections.abc import Sequence
from http import HTTPStatus
from typing import Any

import httpx
import structlog

from nerdfeed.linker.models import Cluster
from nerdfeed.llm.errors import LlmApiError, LlmResponseError
from nerdfeed.llm.prompts import DIGEST_SYSTEM_INSTRUCTION, build_digest_prompt
from nerdfeed.llm.protocols import SummaryResult
from nerdfeed.store.models import LlmUsage


logger = structlog.get_logger()

_BASE_URL = "https://openrouter.ai/api/v1"
_REFERER = "https://github.com/n3rdfeed"

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 2.0
_RETRYABLE_STATUS_CODES = {HTTPStatus.TOO_MANY_REQUESTS, HTTPStatus.SERVICE_UNAVAILABLE}

DEFAULT_MODEL = "anthropic/claude-3.5-sonnet"
DEFAULT_EMBEDDING_MODEL = "mistralai/mistral-embed-2312"

# USD per million tokens: (prompt, completion)
MODEL_RATES: dict[str, tuple[float, float]] = {
    "openai/gpt-4o-mini": (0.15, 0.6),
    "google/gemini-flash-1.5": (0.075, 0.3),
    "deepseek/deepseek-chat": (0.14, 0.28),
    "anthropic/claude-3-haiku": (0.25, 1.25),
    "anthropic/claude-3.5-sonnet": (3.0, 15.0),
    "mistralai/mistral-embed-2312": (0.1, 0.0),
}
_DEFAULT_RATE = (0.5, 1.5)


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Estimate request cost in USD from the per-model rate table.

    Args:
        model: Model identifier.
        prompt_tokens: Input tokens.
        completion_tokens: Output tokens.

    Returns:
        Estimated cost; unknown models use a conservative default rate.
    """
    prompt_rate, completion_rate = MODEL_RATES.get(model, _DEFAULT_RATE)
    return (prompt_tokens / 1_000_000) * prompt_rate + (
        completion_tokens / 1_000_000
    ) * completion_rate


class OpenRouterClient:
    """Client for OpenRouter chat completions and embeddings.

    Implements both the Summarizer and the Embedder protocols.

    Attributes:
        model: Chat model used for digests.
        embedding_model: Model used for embeddings.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
        timeout: float = 60.0,
        window_hours: int = 24,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: OpenRouter API key.
            model: Chat model identifier.
            embedding_model: Embedding model identifier.
            timeout: Request timeout in seconds.
            window_hours: Window mentioned to the digest editor.
        """
        self._api_key = api_key
        self.model = model
        self.embedding_model = embedding_model
        self._timeout = timeout
        self._window_hours = window_hours
        self._log = logger.bind(component="llm", subcomponent="openrouter")

    def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST to the API, retrying 429/503 with exponential backoff.

        Args:
            path: Endpoint path below the API base URL.
            body: JSON request body.

        Returns:
            Decoded JSON response.

        Raises:
            LlmApiError: On transport failure, a non-retryable status or
                exhausted retries.
            LlmResponseError: If the body is not JSON.
        """
        if not self._api_key:
            msg = "OPENROUTER_API_KEY is not configured"
            raise LlmApiError(msg)

        url = f"{_BASE_URL}/{path}"
        last_exc: LlmApiError | None = None

        for attempt in range(_MAX_RETRIES + 1):
            try:
                response = httpx.post(
                    url,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "HTTP-Referer": _REFERER,
                        "Content-Type": "application/json",
                    },
                    json=body,
                    timeout=self._timeout,
                )
            except httpx.HTTPError as exc:
                msg = f"OpenRouter request failed: {exc}"
                raise LlmApiError(msg) from exc

            if response.status_code == HTTPStatus.OK:
                break

            if response.status_code in _RETRYABLE_STATUS_CODES and attempt < _MAX_RETRIES:
                delay = _RETRY_BASE_DELAY * (2**attempt) + random.uniform(0, 1)  # noqa: S311
                self._log.warning(
                    "openrouter_retryable_error",
                    status=response.status_code,
                    attempt=attempt + 1,
                    retry_delay=round(delay, 1),
                )
                time.sleep(delay)
                last_exc = LlmApiError(
                    f"OpenRouter returned {response.status_code}",
                    status_code=response.status_code,
                )
                continue

            msg = f"OpenRouter returned {response.status_code}: {response.text[:200]}"
            raise LlmApiError(msg, status_code=response.status_code)
        else:
            raise last_exc or LlmApiError("All retries exhausted")

        try:
            data: dict[str, Any] = response.json()
        except ValueError as exc:
            msg = "OpenRouter response is not valid JSON"
            raise LlmResponseError(msg) from exc
        return data

    def summarize(self, clusters: Sequence[Cluster]) -> SummaryResult:
        """Write a digest for the selected clusters.

        Args:
            clusters: Selected clusters in rank order.

        Returns:
            SummaryResult with the digest text and usage.

        Raises:
            LlmApiError: If the API call fails.
            LlmResponseError: If the response has no content.
        """
        if not clusters:
            msg = "No clusters provided for digest"
            raise LlmResponseError(msg)

        data = self._post(
            "chat/completions",
            {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": DIGEST_SYSTEM_INSTRUCTION},
                    {
                        "role": "user",
                        "content": build_digest_prompt(clusters, self._window_hours),
                    },
                ],
                "temperature": 0.7,
            },
        )

        choices = data.get("choices") or []
        if not choices:
            msg = "No choices in OpenRouter response"
            raise LlmResponseError(msg)

        text = (choices[0].get("message") or {}).get("content") or ""
        if not text.strip():
            msg = "Empty content in OpenRouter response"
            raise LlmResponseError(msg)

        raw_usage = data.get("usage") or {}
        prompt_tokens = int(raw_usage.get("prompt_tokens", 0))
        completion_tokens = int(raw_usage.get("completion_tokens", 0))
        usage = LlmUsage(
            model_id=self.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_cost=calculate_cost(self.model, prompt_tokens, completion_tokens),
            items_count=len(clusters),
        )

        self._log.info(
            "digest_generated",
            clusters=len(clusters),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_cost=round(usage.total_cost, 6),
        )
        return SummaryResult(text=text.strip(), usage=usage)

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts with the embedding model.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per text, in input order.

        Raises:
            LlmApiError: If the API call fails.
            LlmResponseError: If the response shape is unexpected.
        """
        if not texts:
            return []

        data = self._post(
            "embeddings",
            {"model": self.embedding_model, "input": list(texts)},
        )

        rows = data.get("data")
        if not isinstance(rows, list) or len(rows) != len(texts):
            msg = "Invalid embedding response from OpenRouter"
            raise LlmResponseError(msg)

        # Rows may carry an explicit index; keep input order.
        ordered = sorted(
            enumerate(rows),
            key=lambda pair: pair[1].get("index", pair[0]),
        )
        embeddings = [[float(x) for x in row.get("embedding") or []] for _, row in ordered]

        total_tokens = int((data.get("usage") or {}).get("total_tokens", 0))
        self._log.info(
            "embeddings_generated",
            texts=len(texts),
            total_tokens=total_tokens,
            total_cost=round(calculate_cost(self.embedding_model, total_tokens, 0), 6),
        )
        return embeddings
