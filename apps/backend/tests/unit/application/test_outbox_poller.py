"""
Name: Outbox Poller Tests

Responsibilities:
  - Scheduled runs invoke OutboxWorker.run_once
  - stop() ends the loop without waiting a full interval
  - Unexpected worker errors never kill the loop
"""

import threading
from unittest.mock import Mock

import pytest

from outbox.application.poller import OutboxPoller

pytestmark = pytest.mark.unit


def test_tick_runs_worker_once():
    worker = Mock()
    poller = OutboxPoller(worker, interval_seconds=60)

    poller.tick()

    worker.run_once.assert_called_once_with()
    assert poller.runs == 1


def test_tick_swallows_unexpected_errors():
    worker = Mock()
    worker.run_once.side_effect = RuntimeError("bug")
    poller = OutboxPoller(worker, interval_seconds=60)

    poller.tick()
    poller.tick()

    assert poller.runs == 2


def test_start_runs_immediately_and_stops_quickly():
    ran = threading.Event()
    worker = Mock()
    worker.run_once.side_effect = lambda: ran.set()
    poller = OutboxPoller(worker, interval_seconds=60)

    poller.start()
    try:
        assert ran.wait(timeout=2)
        assert poller.is_running()
    finally:
        poller.stop(timeout=2)

    assert not poller.is_running()
    assert worker.run_once.call_count == 1


def test_delayed_start_skips_run_when_stopped_first():
    worker = Mock()
    poller = OutboxPoller(worker, interval_seconds=60, run_immediately=False)

    poller.start()
    poller.stop(timeout=2)

    worker.run_once.assert_not_called()


def test_short_interval_runs_repeatedly():
    calls = threading.Semaphore(0)
    worker = Mock()
    worker.run_once.side_effect = lambda: calls.release()
    poller = OutboxPoller(worker, interval_seconds=0.01)

    poller.start()
    try:
        for _ in range(3):
            assert calls.acquire(timeout=2)
    finally:
        poller.stop(timeout=2)

    assert poller.runs >= 3


@pytest.mark.parametrize("interval", [0, -1])
def test_invalid_interval_rejected(interval):
    with pytest.raises(ValueError):
        OutboxPoller(Mock(), interval_seconds=interval)
