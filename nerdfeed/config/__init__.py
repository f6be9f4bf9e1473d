"""Configuration schemas, loaders and environment settings."""

from nerdfeed.config.loader import ConfigValidationError, load_engine_config
from nerdfeed.config.schemas import (
    ClusteringConfig,
    DigestConfig,
    EngineConfig,
    FeedConfig,
    ScoringConfig,
)
from nerdfeed.config.settings import AppSettings, get_settings


__all__ = [
    "AppSettings",
    "ClusteringConfig",
    "ConfigValidationError",
    "DigestConfig",
    "EngineConfig",
    "FeedConfig",
    "ScoringConfig",
    "get_settings",
    "load_engine_config",
]
