"""Background timers driving rebuilds, ingestion and digest checks."""

import threading
from collections.abc import Callable

import structlog

from nerdfeed.config.schemas import FeedConfig
from nerdfeed.feed.rebuild import FeedRebuilder


logger = structlog.get_logger()

Job = Callable[[], object]


class RecurringTask:
    """Runs a job at a fixed interval on a daemon thread.

    Runs of the same task never overlap: a tick (or a manual ``run_now``)
    that finds the previous run still going is skipped. A failing run is
    logged and the schedule continues.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        job: Job,
        run_immediately: bool = False,
    ) -> None:
        """Initialize the task.

        Args:
            name: Task name for logs and the thread name.
            interval_seconds: Delay between runs.
            job: Callable to run.
            run_immediately: Run once as soon as the task starts.
        """
        self._name = name
        self._interval = interval_seconds
        self._job = job
        self._run_immediately = run_immediately
        self._guard = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._log = logger.bind(component="scheduler", task=name)

    @property
    def name(self) -> str:
        """Get the task name."""
        return self._name

    @property
    def interval_seconds(self) -> float:
        """Get the interval between runs."""
        return self._interval

    @property
    def is_alive(self) -> bool:
        """Check whether the timer thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the timer thread. Starting twice is a no-op."""
        if self.is_alive:
            return

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name=f"nerdfeed-{self._name}",
            daemon=True,
        )
        self._thread.start()
        self._log.info("task_started", interval_seconds=self._interval)

    def stop(self, timeout: float | None = None) -> None:
        """Stop the timer and wait for the thread to exit.

        Args:
            timeout: Seconds to wait for an in-flight run.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._log.info("task_stopped")

    def run_now(self) -> bool:
        """Run the job in the calling thread unless a run is in flight.

        Returns:
            True if the job ran (successfully or not), False if skipped.
        """
        if not self._guard.acquire(blocking=False):
            self._log.info("task_skipped", reason="already_running")
            return False

        try:
            self._job()
        except Exception as e:  # noqa: BLE001
            self._log.warning(
                "task_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
        finally:
            self._guard.release()
        return True

    def _loop(self) -> None:
        if self._run_immediately:
            self.run_now()
        while not self._stop.wait(self._interval):
            self.run_now()


class FeedWorker:
    """Owns the background jobs of a running engine.

    On start it kicks off the initial rebuild without blocking, then keeps
    the feed fresh on the rebuild interval. When an ingestor is supplied,
    it also runs ingestion followed by a rebuild on the ingestion
    interval. When a digest check is supplied, it runs on its own interval.
    """

    def __init__(
        self,
        rebuilder: FeedRebuilder,
        config: FeedConfig | None = None,
        ingestor: Job | None = None,
        digest_check: Job | None = None,
        digest_check_interval_minutes: float = 10,
    ) -> None:
        """Initialize the worker.

        Args:
            rebuilder: Feed rebuilder.
            config: Feed configuration with the intervals.
            ingestor: Optional callable pulling fresh items into the store.
            digest_check: Optional callable publishing the digest when due.
            digest_check_interval_minutes: Interval of the digest check.
        """
        self._rebuilder = rebuilder
        self._config = config or FeedConfig()
        self._ingestor = ingestor
        self._log = logger.bind(component="scheduler", subcomponent="worker")

        self._tasks: list[RecurringTask] = [
            RecurringTask(
                "feed-rebuild",
                self._config.rebuild_interval_minutes * 60,
                self._rebuilder.rebuild,
            ),
        ]
        if ingestor is not None:
            self._tasks.append(
                RecurringTask(
                    "ingestion",
                    self._config.ingestion_interval_minutes * 60,
                    self.ingest_and_rebuild,
                )
            )
        if digest_check is not None:
            self._tasks.append(
                RecurringTask(
                    "digest-check",
                    digest_check_interval_minutes * 60,
                    digest_check,
                )
            )

    @property
    def tasks(self) -> list[RecurringTask]:
        """Get the scheduled tasks."""
        return list(self._tasks)

    def ingest_and_rebuild(self) -> None:
        """Pull fresh items, then rebuild the feed.

        A failed ingestion skips the rebuild; the next rebuild tick picks
        up whatever made it into the store.
        """
        if self._ingestor is None:
            return

        try:
            self._ingestor()
        except Exception as e:  # noqa: BLE001
            self._log.warning(
                "ingestion_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        self._log.info("ingestion_completed")
        self._rebuilder.rebuild(wait=True)

    def start(self) -> None:
        """Trigger the initial rebuild and start all timers."""
        self._rebuilder.trigger_async()
        for task in self._tasks:
            task.start()
        self._log.info("worker_started", tasks=[t.name for t in self._tasks])

    def stop(self, timeout: float | None = None) -> None:
        """Stop all timers.

        Args:
            timeout: Seconds to wait for each task's thread.
        """
        for task in self._tasks:
            task.stop(timeout)
        self._log.info("worker_stopped")
