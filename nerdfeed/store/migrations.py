"""SQLite schema migrations for the feed store."""

import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog


logger = structlog.get_logger()


@dataclass(frozen=True)
class Migration:
    """A database migration.

    Attributes:
        version: Target version after applying this migration.
        description: Human-readable description.
        up_sql: SQL to apply the migration.
    """

    version: int
    description: str
    up_sql: str


# Applied in ascending version order
MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="Items, metric snapshots and digest history",
        up_sql="""
-- Items table: one row per (id, source)
CREATE TABLE IF NOT EXISTS items (
    id TEXT NOT NULL,
    source TEXT NOT NULL,
    author TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL,
    stars REAL NOT NULL,
    url TEXT NOT NULL,
    created_at TEXT,
    summary TEXT,
    embedding TEXT,
    comments INTEGER,
    raw_json TEXT NOT NULL,
    inserted_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (id, source)
);
CREATE INDEX IF NOT EXISTS idx_items_created_at ON items(created_at);
CREATE INDEX IF NOT EXISTS idx_items_source ON items(source);

-- Popularity history, bounded per item by the store
CREATE TABLE IF NOT EXISTS item_snapshots (
    item_id TEXT NOT NULL,
    source TEXT NOT NULL,
    observed_at TEXT NOT NULL,
    stars REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_snapshots_item ON item_snapshots(item_id, source);

-- Topics already published in a digest
CREATE TABLE IF NOT EXISTS digest_history (
    entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic_summary TEXT NOT NULL,
    embedding TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_digest_history_created_at ON digest_history(created_at);
""",
    ),
    Migration(
        version=2,
        description="LLM usage accounting",
        up_sql="""
CREATE TABLE IF NOT EXISTS llm_usage (
    entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
    model_id TEXT NOT NULL,
    prompt_tokens INTEGER NOT NULL,
    completion_tokens INTEGER NOT NULL,
    total_cost REAL NOT NULL,
    reference TEXT,
    items_count INTEGER NOT NULL,
    created_at TEXT NOT NULL
);
""",
    ),
]


SCHEMA_VERSION_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL,
    description TEXT
);
"""


def schema_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied schema version, or 0 for a fresh database."""
    conn.execute(SCHEMA_VERSION_SQL)
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return int(row[0]) if row[0] is not None else 0


@dataclass(frozen=True)
class MigrationReport:
    """Outcome of bringing a database up to date.

    Attributes:
        from_version: Schema version found on connect.
        to_version: Schema version after migrating.
        applied: Versions applied in this call.
    """

    from_version: int
    to_version: int
    applied: tuple[int, ...]


def migrate(conn: sqlite3.Connection) -> MigrationReport:
    """Apply pending migrations, each in its own transaction.

    A failing migration is rolled back and re-raised; earlier migrations
    from the same call stay applied.

    Args:
        conn: Open SQLite connection.

    Returns:
        MigrationReport describing what changed.
    """
    log = logger.bind(component="store", operation="migration")
    start_version = schema_version(conn)
    conn.commit()

    applied: list[int] = []
    for migration in MIGRATIONS:
        if migration.version <= start_version:
            continue

        log.info(
            "applying_migration",
            version=migration.version,
            description=migration.description,
        )
        try:
            conn.executescript(f"BEGIN;\n{migration.up_sql}\nCOMMIT;")
        except sqlite3.Error as e:
            log.error("migration_failed", version=migration.version, error=str(e))
            if conn.in_transaction:
                conn.rollback()
            raise

        with conn:
            conn.execute(
                "INSERT INTO schema_version (version, applied_at, description) "
                "VALUES (?, ?, ?)",
                (
                    migration.version,
                    datetime.now(UTC).isoformat(),
                    migration.description,
                ),
            )
        applied.append(migration.version)

    if not applied:
        log.debug("schema_up_to_date", version=start_version)

    return MigrationReport(
        from_version=start_version,
        to_version=applied[-1] if applied else start_version,
        applied=tuple(applied),
    )
