import logging
import os
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.05  # seconds between cancel-token checks in take()


def default_workers() -> int:
    return max(1, os.cpu_count() or 1)


class DrainCancelled(Exception):
    """take() was abandoned because the cancel token was set."""


class WorkerPool:
    """Fixed-size thread pool. shutdown() waits for queued and running jobs."""

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max(1, max_workers or default_workers())
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                            thread_name_prefix="wordcount")
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, fn, *args) -> Future:
        return self._executor.submit(fn, *args)

    def shutdown(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
        logger.debug("Shutting down worker pool (%d workers)", self.max_workers)
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()


class CompletionCollector:
    """
    Hands back job results in the order the jobs finish.
    Each submitted job is delivered by take() exactly once.
    """

    def __init__(self, pool: WorkerPool):
        self.pool = pool
        self._done = queue.Queue()
        self._submitted = 0
        self._taken = 0

    @property
    def pending(self) -> int:
        return self._submitted - self._taken

    def submit(self, job) -> Future:
        fut = self.pool.submit(job.run)
        self._submitted += 1
        fut.add_done_callback(self._done.put)
        return fut

    def take(self, cancel: Optional[threading.Event] = None):
        """
        Block until some job has finished and return its result.
        Raises DrainCancelled if `cancel` is set while waiting; the token is left set.
        If the job itself raised, that exception is re-raised here.
        """
        if self.pending <= 0:
            raise RuntimeError("take() called with no pending jobs")

        while True:
            if cancel is not None and cancel.is_set():
                raise DrainCancelled("cancelled while waiting for a result")
            try:
                fut = self._done.get(timeout=POLL_INTERVAL if cancel is not None else None)
                break
            except queue.Empty:
                continue

        self._taken += 1
        return fut.result()
