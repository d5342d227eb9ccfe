import threading
import time

import pytest

from worker_pool import CompletionCollector, DrainCancelled, WorkerPool, default_workers


class EventJob:
    def __init__(self, value, gate=None):
        self.value = value
        self.gate = gate

    def run(self):
        if self.gate is not None:
            assert self.gate.wait(timeout=5)
        return self.value


class BoomJob:
    def run(self):
        raise ValueError("boom")


def test_default_workers_is_at_least_one():
    assert default_workers() >= 1
    assert WorkerPool(0).max_workers >= 1
    pool = WorkerPool(3)
    assert pool.max_workers == 3
    pool.shutdown()


def test_take_returns_in_completion_order():
    gate = threading.Event()
    with WorkerPool(2) as pool:
        collector = CompletionCollector(pool)
        collector.submit(EventJob("slow", gate))
        collector.submit(EventJob("fast"))

        assert collector.take() == "fast"
        gate.set()
        assert collector.take() == "slow"
        assert collector.pending == 0


def test_every_result_delivered_exactly_once():
    with WorkerPool(4) as pool:
        collector = CompletionCollector(pool)
        for i in range(50):
            collector.submit(EventJob(i))
        got = [collector.take() for _ in range(50)]

    assert sorted(got) == list(range(50))


def test_take_without_pending_jobs_raises():
    with WorkerPool(1) as pool:
        collector = CompletionCollector(pool)
        with pytest.raises(RuntimeError):
            collector.take()


def test_job_exception_reraised_and_counted():
    with WorkerPool(1) as pool:
        collector = CompletionCollector(pool)
        collector.submit(BoomJob())
        with pytest.raises(ValueError, match="boom"):
            collector.take()
        assert collector.pending == 0


def test_cancel_abandons_wait_and_stays_set():
    gate = threading.Event()
    cancel = threading.Event()
    pool = WorkerPool(1)
    try:
        collector = CompletionCollector(pool)
        collector.submit(EventJob("late", gate))
        threading.Timer(0.1, cancel.set).start()

        start = time.monotonic()
        with pytest.raises(DrainCancelled):
            collector.take(cancel)
        assert time.monotonic() - start < 5
        assert cancel.is_set()
        assert collector.pending == 1

        # token is still set, so the next take fails straight away
        with pytest.raises(DrainCancelled):
            collector.take(cancel)
    finally:
        gate.set()
        pool.shutdown()


def test_shutdown_waits_for_queued_jobs_and_is_idempotent():
    done = []

    def work(i):
        time.sleep(0.01)
        done.append(i)

    pool = WorkerPool(2)
    for i in range(10):
        pool.submit(work, i)
    pool.shutdown()
    pool.shutdown()

    assert pool.closed
    assert sorted(done) == list(range(10))
    with pytest.raises(RuntimeError):
        pool.submit(work, 99)
