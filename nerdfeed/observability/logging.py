"""Structured logging for the engine and its worker threads."""

import logging
import re
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

import structlog


# Credentials that can end up in log values (URLs, error strings)
SECRET_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("telegram_bot_token", re.compile(r"/bot\d+:[A-Za-z0-9_\-]+")),
    ("openrouter_key", re.compile(r"\bsk-or-[A-Za-z0-9\-]{16,}\b")),
    ("bearer_token", re.compile(r"\bBearer\s+[A-Za-z0-9_\-\.]+", re.IGNORECASE)),
]

REDACTED_VALUE = "[REDACTED]"

# Libraries that log every request URL at INFO
_NOISY_LOGGERS = ("httpx", "httpcore")


def redact_text(text: str) -> str:
    """Mask credentials in a string."""
    for name, pattern in SECRET_PATTERNS:
        if name == "telegram_bot_token":
            text = pattern.sub(f"/bot{REDACTED_VALUE}", text)
        else:
            text = pattern.sub(REDACTED_VALUE, text)
    return text


def redact_secrets(
    _logger: Any,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor masking credentials in string values."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = redact_text(value)
    return event_dict


def configure_logging(
    level: int = logging.INFO,
    output: TextIO | None = None,
    json_format: bool = True,
) -> None:
    """Configure structured logging for the application.

    Every event carries its level, an ISO timestamp, the bound run context
    and the name of the thread that emitted it, so rebuild, ingestion and
    digest threads can be told apart in a long-running process.

    Args:
        level: Logging level (default: INFO).
        output: Output stream (default: stderr at call time).
        json_format: Whether to use JSON format (default: True).
    """
    stream = output or sys.stderr
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            [structlog.processors.CallsiteParameter.THREAD_NAME]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_secrets,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=stream, level=level, force=True)
    # Request URLs contain the bot token
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_run_context(run_id: str, command: str | None = None) -> None:
    """Bind run context to all subsequent log messages.

    Args:
        run_id: Unique run identifier.
        command: CLI command that started the run.
    """
    context: dict[str, str] = {"run_id": run_id}
    if command:
        context["command"] = command
    structlog.contextvars.bind_contextvars(**context)


def clear_run_context() -> None:
    """Clear run context from log messages."""
    structlog.contextvars.unbind_contextvars("run_id", "command")
