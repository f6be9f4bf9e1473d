"""Domain-specific error types for the LLM module."""


class LlmError(Exception):
    """Base class for text-intelligence service failures."""


class LlmApiError(LlmError):
    """OpenRouter API call failure.

    Attributes:
        status_code: HTTP status code from the API response (0 for
            transport failures).
    """

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class LlmResponseError(LlmError):
    """Response parsing failure."""
