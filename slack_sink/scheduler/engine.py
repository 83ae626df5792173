"""
Batching engine: APScheduler interval job draining a bounded in-memory queue.

A flush runs on whichever comes first: the period elapsing since the last
flush, or the queue reaching the batch size limit. When the queue is full the
oldest pending item is dropped to make room; queue capacity bounds memory,
it is not a delivery guarantee.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from typing import Any

import structlog
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MAX_INSTANCES
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = structlog.get_logger()

FlushCallback = Callable[[Sequence[Any]], Awaitable[None]]

FLUSH_JOB_ID = "slack-sink-flush"


class BatchScheduler(ABC):
    """Producer-side queue plus a flush callback invoked per batch."""

    def __init__(self):
        self._callback: FlushCallback | None = None

    def register_flush_callback(self, callback: FlushCallback):
        self._callback = callback

    @abstractmethod
    def enqueue(self, item: Any) -> None: ...

    @abstractmethod
    def start(self) -> None: ...

    @abstractmethod
    async def flush(self) -> None: ...

    @abstractmethod
    async def shutdown(self) -> None: ...

    @property
    def dropped_count(self) -> int:
        return 0


class PeriodicBatchingScheduler(BatchScheduler):
    def __init__(self, batch_size_limit: int, period: float, queue_limit: int):
        super().__init__()
        if batch_size_limit < 1:
            raise ValueError("batch_size_limit must be >= 1")
        if period <= 0:
            raise ValueError("period must be > 0")
        if queue_limit < 1:
            raise ValueError("queue_limit must be >= 1")

        self.batch_size_limit = batch_size_limit
        self.period = period
        self.queue_limit = queue_limit

        self._queue: deque = deque()
        self._queue_lock = threading.Lock()
        self._flush_lock = asyncio.Lock()
        self._dropped = 0
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def dropped_count(self) -> int:
        return self._dropped

    @property
    def pending_count(self) -> int:
        with self._queue_lock:
            return len(self._queue)

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self):
        """Start the interval job. Must be called from a running event loop."""
        if self._scheduler:
            return
        if self._callback is None:
            raise RuntimeError("No flush callback registered")

        self._scheduler = AsyncIOScheduler(
            event_loop=asyncio.get_running_loop(),
            job_defaults={
                "coalesce": True,  # Combine missed ticks into one flush
                "max_instances": 1,  # A running flush already drains everything
                "misfire_grace_time": None,
            },
        )
        self._scheduler.add_listener(self._on_job_event, EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES)
        self._scheduler.add_job(
            self.flush,
            trigger=IntervalTrigger(seconds=self.period),
            id=FLUSH_JOB_ID,
            name="slack-sink-flush",
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(
            "batching.started",
            batch_size_limit=self.batch_size_limit,
            period=self.period,
            queue_limit=self.queue_limit,
        )

        # events enqueued before start may already fill a batch
        if self.pending_count >= self.batch_size_limit:
            self._trigger_now()

    def enqueue(self, item: Any):
        """Queue an item. Thread-safe; never blocks on delivery."""
        with self._queue_lock:
            dropped = len(self._queue) >= self.queue_limit
            if dropped:
                self._queue.popleft()
                self._dropped += 1
            self._queue.append(item)
            size = len(self._queue)

        if dropped:
            logger.warning("batching.queue_full", queue_limit=self.queue_limit, dropped=self._dropped)
        if size >= self.batch_size_limit:
            self._trigger_now()

    def _take_batch(self) -> list:
        with self._queue_lock:
            count = min(self.batch_size_limit, len(self._queue))
            return [self._queue.popleft() for _ in range(count)]

    def _trigger_now(self):
        """Pull the next interval run forward to now; the period restarts after it."""
        scheduler = self._scheduler
        if not scheduler or self._flush_lock.locked():
            # a running flush keeps draining until the queue is empty
            return
        try:
            scheduler.modify_job(FLUSH_JOB_ID, next_run_time=datetime.now(timezone.utc))
        except JobLookupError:
            # shutdown removed the job; the final flush picks the item up
            pass

    async def flush(self):
        """Drain the queue in batches of at most batch_size_limit, in order."""
        if self._callback is None:
            return
        async with self._flush_lock:
            while True:
                batch = self._take_batch()
                if not batch:
                    break
                try:
                    await self._callback(batch)
                except Exception:
                    # no retry: the batch is lost, the next one still goes out
                    logger.exception("batching.batch_failed", size=len(batch))

    async def shutdown(self):
        """Stop the timer, flush what is left, release the scheduler."""
        scheduler, self._scheduler = self._scheduler, None
        if scheduler:
            scheduler.remove_all_jobs()
            # executor shutdown cancels running jobs; let an in-flight flush finish first
            async with self._flush_lock:
                scheduler.shutdown(wait=False)
        await self.flush()
        if scheduler:
            logger.info("batching.shutdown", dropped=self._dropped)

    def _on_job_event(self, event):
        if event.code == EVENT_JOB_MAX_INSTANCES:
            logger.debug("batching.flush_already_running", job_id=event.job_id)
        elif event.exception:
            logger.error("batching.flush_failed", job_id=event.job_id, error=str(event.exception))
