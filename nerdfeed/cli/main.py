"""CLI commands for the nerdfeed engine."""

import logging
import sys
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path

import click
import structlog

from nerdfeed.config import (
    AppSettings,
    ConfigValidationError,
    EngineConfig,
    get_settings,
    load_engine_config,
)
from nerdfeed.digest import (
    DigestCurator,
    DigestPublisher,
    DigestRunStatus,
    DigestSchedule,
    ScheduledDigestJob,
)
from nerdfeed.feed import FeedCache, FeedRebuilder, FeedService, FeedStatus, FeedWorker
from nerdfeed.llm import OpenRouterClient
from nerdfeed.notify import TelegramSink
from nerdfeed.observability.logging import bind_run_context, configure_logging
from nerdfeed.store import FeedStore


logger = structlog.get_logger()

DEFAULT_TOP_ENTRIES = 10


@dataclass
class Engine:
    """Wired engine components for one process."""

    config: EngineConfig
    store: FeedStore
    cache: FeedCache
    rebuilder: FeedRebuilder
    service: FeedService


def _setup_logging(command: str, verbose: bool, json_logs: bool) -> str:
    run_id = str(uuid.uuid4())
    configure_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        json_format=json_logs,
    )
    bind_run_context(run_id, command)
    logger.info("cli_command_started", component="cli")
    return run_id


def _load_config(config_path: Path | None, settings: AppSettings) -> EngineConfig:
    path = config_path or (Path(settings.config_path) if settings.config_path else None)
    try:
        return load_engine_config(path)
    except ConfigValidationError as e:
        click.echo("Configuration validation failed:", err=True)
        for error in e.errors:
            click.echo(f"  - {error['location']}: {error['message']}", err=True)
        sys.exit(1)


def _build_engine(settings: AppSettings, config: EngineConfig) -> Engine:
    store = FeedStore(settings.db_path, query_limit=config.feed.query_limit)
    store.connect()
    cache = FeedCache()
    rebuilder = FeedRebuilder(store, cache, config)
    return Engine(
        config=config,
        store=store,
        cache=cache,
        rebuilder=rebuilder,
        service=FeedService(cache, rebuilder),
    )


def _build_publisher(
    settings: AppSettings,
    engine: Engine,
) -> DigestPublisher:
    summarizer = OpenRouterClient(
        api_key=settings.openrouter_api_key or "",
        model=settings.openrouter_model,
        embedding_model=settings.openrouter_embedding_model,
        window_hours=engine.config.digest.window_hours,
    )
    curator = DigestCurator(engine.store, engine.store, summarizer, engine.config)
    sink = TelegramSink(
        bot_token=settings.telegram_bot_token or "",
        chat_id=settings.telegram_chat_id or "",
    )
    return DigestPublisher(curator, sink, engine.store, usage_log=engine.store)


def _digest_configured(settings: AppSettings) -> bool:
    return bool(
        settings.openrouter_api_key
        and settings.telegram_bot_token
        and settings.telegram_chat_id
    )


_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to engine YAML configuration (default: built-in values).",
)
_json_logs_option = click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON format for logs (default: true).",
)
_verbose_option = click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging.",
)


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """nerdfeed ranking, clustering and digest engine."""


@cli.command()
@_config_option
@_json_logs_option
@_verbose_option
def serve(config_path: Path | None, json_logs: bool, verbose: bool) -> None:
    """Keep the feed fresh and publish scheduled digests until interrupted.

    Ingestion is not part of this process: collectors write items into the
    database on their own schedule, and the feed rebuild picks them up on
    its interval. The ingestion interval setting only applies when an
    ingestor is wired into FeedWorker programmatically.
    """
    _setup_logging("serve", verbose, json_logs)
    settings = get_settings()
    config = _load_config(config_path, settings)
    engine = _build_engine(settings, config)
    log = logger.bind(component="cli", command="serve")

    digest_check = None
    if _digest_configured(settings):
        digest_check = ScheduledDigestJob(
            DigestSchedule(config.digest, engine.store),
            _build_publisher(settings, engine),
        )
    else:
        log.warning("digest_schedule_disabled", reason="missing_credentials")

    log.info(
        "ingestion_external",
        rebuild_interval_minutes=config.feed.rebuild_interval_minutes,
    )
    worker = FeedWorker(
        engine.rebuilder,
        config.feed,
        digest_check=digest_check,
        digest_check_interval_minutes=config.digest.check_interval_minutes,
    )
    stop = threading.Event()
    worker.start()
    try:
        stop.wait()
    except KeyboardInterrupt:
        log.info("shutdown_requested")
    finally:
        worker.stop(timeout=30)
        engine.store.close()


@cli.command()
@_config_option
@_json_logs_option
@_verbose_option
@click.option(
    "--top",
    "top",
    type=int,
    default=DEFAULT_TOP_ENTRIES,
    help=f"Number of entries to print (default: {DEFAULT_TOP_ENTRIES}).",
)
def rebuild(config_path: Path | None, json_logs: bool, verbose: bool, top: int) -> None:
    """Rebuild the feed once and print the top entries."""
    _setup_logging("rebuild", verbose, json_logs)
    settings = get_settings()
    config = _load_config(config_path, settings)
    engine = _build_engine(settings, config)

    try:
        result = engine.rebuilder.rebuild()
        if not result.success:
            click.echo(f"Rebuild failed: {result.error}", err=True)
            sys.exit(1)

        view = engine.service.get_feed()
        if view.status != FeedStatus.READY:
            click.echo("Feed is not ready", err=True)
            sys.exit(1)

        click.echo(f"Feed rebuilt: {len(view.entries)} entries")
        for rank, entry in enumerate(view.entries[:top], start=1):
            tags = ", ".join(entry.source_tags)
            click.echo(
                f"{rank:>3}. {entry.boosted_score:10.2f}  {entry.display_name}  [{tags}]"
            )
            click.echo(f"       {entry.best_link}")
    finally:
        engine.store.close()


@cli.command()
@_config_option
@_json_logs_option
@_verbose_option
@click.option(
    "--force",
    is_flag=True,
    help="Ignore recently published topics.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Generate the digest and print it without publishing.",
)
def digest(
    config_path: Path | None,
    json_logs: bool,
    verbose: bool,
    force: bool,
    dry_run: bool,
) -> None:
    """Curate and publish one digest now."""
    _setup_logging("digest", verbose, json_logs)
    settings = get_settings()
    config = _load_config(config_path, settings)
    engine = _build_engine(settings, config)

    try:
        result = _build_publisher(settings, engine).run(force=force, dry_run=dry_run)
    finally:
        engine.store.close()

    click.echo(f"Digest status: {result.status.value}")
    if result.digest is not None and result.status == DigestRunStatus.DRY_RUN:
        click.echo("")
        click.echo(result.digest.content)
    if result.error:
        click.echo(f"Error: {result.error}", err=True)
    if result.status in {
        DigestRunStatus.FAILED,
        DigestRunStatus.PUBLISH_FAILED,
        DigestRunStatus.RECORD_FAILED,
    }:
        sys.exit(1)


if __name__ == "__main__":
    cli()
