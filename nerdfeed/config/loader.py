"""YAML loader for the engine configuration."""

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from nerdfeed.config.schemas import EngineConfig


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


def _format_errors(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {
            "location": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


def load_engine_config(path: Path | str | None = None) -> EngineConfig:
    """Load the engine configuration from a YAML file.

    A missing path yields the built-in defaults.

    Args:
        path: Optional path to a YAML file.

    Returns:
        Validated EngineConfig.

    Raises:
        ConfigValidationError: If the file cannot be parsed or validated.
    """
    if path is None:
        return EngineConfig()

    file_path = Path(path)
    log = logger.bind(component="config", file_path=str(file_path))

    try:
        raw = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        log.error("config_read_failed", error=str(exc))
        raise ConfigValidationError(
            [{"location": "<file>", "message": str(exc)}], str(file_path)
        ) from exc

    if not isinstance(raw, dict):
        raise ConfigValidationError(
            [{"location": "<root>", "message": "Top-level YAML must be a mapping"}],
            str(file_path),
        )

    try:
        config = EngineConfig.model_validate(raw)
    except ValidationError as exc:
        errors = _format_errors(exc)
        log.error("config_validation_failed", error_count=len(errors))
        raise ConfigValidationError(errors, str(file_path)) from exc

    log.info("config_loaded", version=config.version)
    return config
