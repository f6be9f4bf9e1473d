"""Telegram Bot API notification sink."""

import time
from http import HTTPStatus

import httpx
import structlog

from nerdfeed.notify.protocols import PublishResult


logger = structlog.get_logger()

_API_URL = "https://api.telegram.org"
_DEFAULT_RETRIES = 3
_RETRY_DELAY = 1.0


class TelegramSink:
    """Publishes messages to a Telegram chat.

    Network errors and 5xx responses are retried with a linear back-off
    (1 s, 2 s, 3 s, ...). Client errors (4xx) are final.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        retries: int = _DEFAULT_RETRIES,
        retry_delay: float = _RETRY_DELAY,
        timeout: float = 30.0,
        parse_mode: str | None = None,
    ) -> None:
        """Initialize the sink.

        Args:
            bot_token: Telegram bot token.
            chat_id: Target chat identifier.
            retries: Retries after the first attempt.
            retry_delay: Base delay multiplied by the attempt number.
            timeout: Request timeout in seconds.
            parse_mode: Telegram parse mode; None sends plain text.
        """
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._retries = retries
        self._retry_delay = retry_delay
        self._timeout = timeout
        self._parse_mode = parse_mode
        self._log = logger.bind(component="notify", subcomponent="telegram")

    def publish(self, text: str) -> PublishResult:
        """Send a message to the configured chat.

        Args:
            text: Message text.

        Returns:
            PublishResult; failures are never raised.
        """
        if not self._bot_token or not self._chat_id:
            self._log.error("telegram_not_configured")
            return PublishResult(
                success=False,
                error="Bot token or chat id not configured",
            )

        url = f"{_API_URL}/bot{self._bot_token}/sendMessage"
        payload: dict[str, object] = {
            "chat_id": self._chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if self._parse_mode:
            payload["parse_mode"] = self._parse_mode

        error = "Unknown error"
        total_attempts = self._retries + 1
        for attempt in range(1, total_attempts + 1):
            try:
                response = httpx.post(url, json=payload, timeout=self._timeout)
            except httpx.HTTPError as exc:
                error = f"Network error: {exc}"
                self._log.warning(
                    "telegram_network_error",
                    attempt=attempt,
                    max_attempts=total_attempts,
                    error=str(exc),
                )
            else:
                if response.status_code == HTTPStatus.OK:
                    self._log.info("telegram_message_sent", attempt=attempt)
                    return PublishResult(success=True, attempts=attempt)

                description = _error_description(response)
                if (
                    HTTPStatus.BAD_REQUEST
                    <= response.status_code
                    < HTTPStatus.INTERNAL_SERVER_ERROR
                ):
                    self._log.error(
                        "telegram_client_error",
                        status=response.status_code,
                        description=description,
                    )
                    return PublishResult(
                        success=False,
                        error=f"API error: {description}",
                        attempts=attempt,
                    )

                error = f"API error {response.status_code}: {description}"
                self._log.warning(
                    "telegram_server_error",
                    status=response.status_code,
                    attempt=attempt,
                    max_attempts=total_attempts,
                )

            if attempt < total_attempts:
                time.sleep(self._retry_delay * attempt)

        self._log.error("telegram_send_failed", attempts=total_attempts, error=error)
        return PublishResult(success=False, error=error, attempts=total_attempts)


def _error_description(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("description") or response.reason_phrase)
    return response.reason_phrase
