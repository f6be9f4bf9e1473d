"""SQLite implementation of the item and digest-history stores."""

import json
import sqlite3
import threading
import time
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path

import structlog

from nerdfeed.store.errors import StoreConnectionError, StoreQueryError
from nerdfeed.store.filters import is_valid_item
from nerdfeed.store.migrations import migrate
from nerdfeed.store.models import (
    MAX_HISTORY_SNAPSHOTS,
    Item,
    LlmUsage,
    MetricSnapshot,
    TopicRecord,
)


logger = structlog.get_logger()

DEFAULT_QUERY_LIMIT = 500


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _encode_embedding(embedding: Sequence[float] | None) -> str | None:
    return json.dumps(list(embedding)) if embedding is not None else None


def _decode_embedding(raw: str | None) -> list[float] | None:
    if not raw:
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return [float(x) for x in decoded] if isinstance(decoded, list) else None


class FeedStore:
    """SQLite store for items, their popularity history and digest history.

    Implements the ItemStore, DigestHistoryStore and UsageLog protocols.
    The connection is shared across worker threads and serialized with a
    lock; WAL mode keeps readers and the single writer apart on disk.
    """

    def __init__(
        self,
        db_path: Path | str,
        query_limit: int = DEFAULT_QUERY_LIMIT,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file.
            query_limit: Maximum rows returned by a window query.
            clock: Source of the current time.
        """
        self._db_path = Path(db_path)
        self._query_limit = query_limit
        self._clock = clock
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._log = logger.bind(component="store", db_path=str(self._db_path))

    @property
    def db_path(self) -> Path:
        """Get the database path."""
        return self._db_path

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._conn is not None

    def connect(self) -> None:
        """Open connection to database and apply migrations."""
        if self._conn is not None:
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._log.info("connecting_to_database")

        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")

        report = migrate(self._conn)
        self._log.info(
            "database_connected",
            old_version=report.from_version,
            new_version=report.to_version,
            migrations_applied=list(report.applied),
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._log.info("database_closed")

    def __enter__(self) -> "FeedStore":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    def _ensure_connected(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreConnectionError("Database not connected. Call connect() first.")
        return self._conn

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Run a write transaction with timing and logging.

        Args:
            operation: Name of the operation for logging.

        Yields:
            The database connection.

        Raises:
            StoreQueryError: If the transaction fails.
        """
        with self._lock:
            conn = self._ensure_connected()
            tx_id = str(uuid.uuid4())[:8]
            start_ns = time.perf_counter_ns()

            try:
                yield conn
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                self._log.error(
                    "transaction_failed",
                    tx_id=tx_id,
                    op=operation,
                    error=str(exc),
                )
                raise StoreQueryError(operation, exc) from exc
            except Exception:
                conn.rollback()
                raise

            duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
            self._log.debug(
                "transaction_complete",
                tx_id=tx_id,
                op=operation,
                duration_ms=round(duration_ms, 2),
            )

    def _read(self, operation: str, sql: str, params: Sequence[object]) -> list[sqlite3.Row]:
        with self._lock:
            conn = self._ensure_connected()
            try:
                return conn.execute(sql, tuple(params)).fetchall()
            except sqlite3.Error as exc:
                self._log.error("query_failed", op=operation, error=str(exc))
                raise StoreQueryError(operation, exc) from exc

    # ===== Items =====

    def upsert_items(self, items: Sequence[Item]) -> int:
        """Insert or update items keyed on (id, source).

        Every upsert records a popularity snapshot; snapshots beyond the
        most recent MAX_HISTORY_SNAPSHOTS are evicted oldest first.

        Args:
            items: Items to persist.

        Returns:
            Number of items written.
        """
        if not items:
            return 0

        now = self._clock().isoformat()

        with self._transaction("upsert_items") as conn:
            for item in items:
                conn.execute(
                    """
                    INSERT INTO items (
                        id, source, author, title, description, stars, url,
                        created_at, summary, embedding, comments, raw_json,
                        inserted_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (id, source) DO UPDATE SET
                        author = excluded.author,
                        title = excluded.title,
                        description = excluded.description,
                        stars = excluded.stars,
                        url = excluded.url,
                        created_at = excluded.created_at,
                        summary = COALESCE(excluded.summary, items.summary),
                        embedding = COALESCE(excluded.embedding, items.embedding),
                        comments = excluded.comments,
                        raw_json = excluded.raw_json,
                        updated_at = excluded.updated_at
                    """,
                    (
                        item.id,
                        item.source,
                        item.author,
                        item.title,
                        item.description,
                        item.stars,
                        item.url,
                        item.created_at.isoformat() if item.created_at else None,
                        item.summary,
                        _encode_embedding(item.embedding),
                        item.comments,
                        item.raw_json,
                        now,
                        now,
                    ),
                )
                conn.execute(
                    """
                    INSERT INTO item_snapshots (item_id, source, observed_at, stars)
                    VALUES (?, ?, ?, ?)
                    """,
                    (item.id, item.source, now, item.stars),
                )
                conn.execute(
                    """
                    DELETE FROM item_snapshots
                    WHERE item_id = ? AND source = ? AND rowid NOT IN (
                        SELECT rowid FROM item_snapshots
                        WHERE item_id = ? AND source = ?
                        ORDER BY observed_at DESC, rowid DESC
                        LIMIT ?
                    )
                    """,
                    (item.id, item.source, item.id, item.source, MAX_HISTORY_SNAPSHOTS),
                )

        self._log.info("items_upserted", count=len(items))
        return len(items)

    def existing_ids(self, ids: Sequence[str]) -> set[str]:
        """Return the subset of ids already stored for any source."""
        if not ids:
            return set()
        placeholders = ",".join("?" for _ in ids)
        rows = self._read(
            "existing_ids",
            f"SELECT DISTINCT id FROM items WHERE id IN ({placeholders})",  # noqa: S608
            list(ids),
        )
        return {row["id"] for row in rows}

    def query_by_window(
        self,
        window_days: float,
        sources: Sequence[str] | None = None,
    ) -> list[Item]:
        """Return admitted items created and first stored inside the window.

        Rows are limited to the most popular ``query_limit`` items.

        Args:
            window_days: Lookback window in days.
            sources: Source tags to include; None means every source.

        Returns:
            Items with history attached, ordered by popularity.
        """
        cutoff = (self._clock() - timedelta(days=window_days)).isoformat()
        sql = "SELECT * FROM items WHERE created_at > ? AND inserted_at > ?"
        params: list[object] = [cutoff, cutoff]

        if sources is not None:
            wanted = [s.lower() for s in sources]
            if not wanted:
                return []
            sql += f" AND source IN ({','.join('?' for _ in wanted)})"
            params.extend(wanted)

        # Ties keep insertion order so clustering is reproducible
        sql += " ORDER BY stars DESC, inserted_at ASC, rowid ASC LIMIT ?"
        params.append(self._query_limit)

        rows = self._read("query_by_window", sql, params)
        histories = self._load_histories({(row["id"], row["source"]) for row in rows})

        items = [self._row_to_item(row, histories) for row in rows]
        admitted = [item for item in items if is_valid_item(item)]

        self._log.debug(
            "window_query_complete",
            window_days=window_days,
            rows=len(rows),
            admitted=len(admitted),
        )
        return admitted

    def _load_histories(
        self, keys: set[tuple[str, str]]
    ) -> dict[tuple[str, str], list[MetricSnapshot]]:
        histories: dict[tuple[str, str], list[MetricSnapshot]] = defaultdict(list)
        if not keys:
            return histories

        ids = sorted({item_id for item_id, _ in keys})
        placeholders = ",".join("?" for _ in ids)
        rows = self._read(
            "load_histories",
            f"SELECT * FROM item_snapshots WHERE item_id IN ({placeholders})"  # noqa: S608
            " ORDER BY observed_at",
            ids,
        )
        for row in rows:
            key = (row["item_id"], row["source"])
            if key in keys:
                histories[key].append(
                    MetricSnapshot(
                        timestamp=datetime.fromisoformat(row["observed_at"]),
                        stars=row["stars"],
                    )
                )
        return histories

    @staticmethod
    def _row_to_item(
        row: sqlite3.Row,
        histories: dict[tuple[str, str], list[MetricSnapshot]],
    ) -> Item:
        return Item(
            id=row["id"],
            source=row["source"],
            author=row["author"],
            title=row["title"],
            description=row["description"],
            stars=row["stars"],
            url=row["url"],
            created_at=row["created_at"],
            summary=row["summary"],
            embedding=_decode_embedding(row["embedding"]),
            comments=row["comments"],
            raw_json=row["raw_json"],
            history=histories.get((row["id"], row["source"]), []),
        )

    def last_updated(self) -> datetime | None:
        """Return the most recent item write time."""
        rows = self._read("last_updated", "SELECT MAX(updated_at) AS ts FROM items", [])
        if not rows or rows[0]["ts"] is None:
            return None
        return datetime.fromisoformat(rows[0]["ts"])

    # ===== Digest history =====

    def recent_topics(self, hours: float) -> list[TopicRecord]:
        """Return topics published within the trailing window."""
        cutoff = (self._clock() - timedelta(hours=hours)).isoformat()
        rows = self._read(
            "recent_topics",
            """
            SELECT topic_summary, embedding, created_at FROM digest_history
            WHERE created_at > ?
            ORDER BY created_at
            """,
            [cutoff],
        )
        return [
            TopicRecord(
                summary=row["topic_summary"],
                embedding=_decode_embedding(row["embedding"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def append_topics(self, topics: Sequence[TopicRecord]) -> None:
        """Record newly published topics."""
        if not topics:
            return
        with self._transaction("append_topics") as conn:
            conn.executemany(
                """
                INSERT INTO digest_history (topic_summary, embedding, created_at)
                VALUES (?, ?, ?)
                """,
                [
                    (
                        topic.summary,
                        _encode_embedding(topic.embedding),
                        topic.created_at.astimezone(UTC).isoformat(),
                    )
                    for topic in topics
                ],
            )
        self._log.info("digest_topics_appended", count=len(topics))

    # ===== LLM usage =====

    def log_llm_usage(self, usage: LlmUsage) -> None:
        """Persist one LLM usage record."""
        with self._transaction("log_llm_usage") as conn:
            conn.execute(
                """
                INSERT INTO llm_usage (
                    model_id, prompt_tokens, completion_tokens, total_cost,
                    reference, items_count, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    usage.model_id,
                    usage.prompt_tokens,
                    usage.completion_tokens,
                    usage.total_cost,
                    usage.reference,
                    usage.items_count,
                    self._clock().isoformat(),
                ),
            )
