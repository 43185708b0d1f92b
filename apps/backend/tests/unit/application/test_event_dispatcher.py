"""
Name: Event Dispatcher Tests

Responsibilities:
  - Sequential fan-out in priority order
  - Fault isolation (a failing handler never blocks the next one)
  - Stop signals (False return / stop_propagation)
  - Queued handlers (should_queue) and enqueue failures
"""

import logging
from unittest.mock import Mock

import pytest

from outbox.application.dispatcher import EventDispatcher
from outbox.application.registry import HandlerOptions
from outbox.crosscutting.metrics import get_registry
from outbox.domain.event_types import EventType
from outbox.infrastructure.queue.errors import QueueEnqueueError

pytestmark = pytest.mark.unit


def _handler_failures(event_type: str) -> float:
    return (
        get_registry().get_sample_value(
            "outbox_handler_failures_total", {"event_type": event_type}
        )
        or 0.0
    )


def test_no_handlers_is_success(dispatcher, make_event):
    result = dispatcher.dispatch(make_event("nobody.listens"))

    assert result.ok
    assert result.executed == []
    assert result.failures == []


def test_failing_handler_does_not_block_lower_priority(
    registry, dispatcher, make_event, caplog
):
    calls = []

    def explode(event):
        calls.append("p10")
        raise RuntimeError("card processor down")

    def record(event):
        calls.append("p5")

    registry.subscribe(
        EventType.PAYMENT_SUCCEEDED, explode, HandlerOptions(priority=10, name="explode")
    )
    registry.subscribe(
        EventType.PAYMENT_SUCCEEDED, record, HandlerOptions(priority=5, name="record")
    )
    before = _handler_failures("payment.succeeded")

    with caplog.at_level(logging.ERROR):
        result = dispatcher.dispatch(make_event("payment.succeeded"))

    assert calls == ["p10", "p5"]
    assert result.executed == ["record"]
    assert not result.ok
    assert result.failures[0].handler == "explode"
    assert result.failures[0].error_type == "RuntimeError"
    assert "explode: RuntimeError: card processor down" in result.error_summary()
    assert any(r.levelno == logging.ERROR for r in caplog.records)
    assert _handler_failures("payment.succeeded") == before + 1


def test_order_is_identical_across_repeated_dispatches(registry, dispatcher, make_event):
    seen = []
    for name, priority in [("low", 1), ("high", 9), ("mid", 5), ("mid2", 5)]:
        registry.subscribe(
            "user.updated",
            lambda e, n=name: seen.append(n),
            HandlerOptions(priority=priority, name=name),
        )

    event = make_event("user.updated")
    dispatcher.dispatch(event)
    first = list(seen)
    seen.clear()
    dispatcher.dispatch(event)

    assert first == ["high", "mid", "mid2", "low"]
    assert seen == first


def test_false_return_stops_remaining_handlers(registry, dispatcher, make_event):
    tail = Mock()
    registry.subscribe("user.created", lambda e: False, HandlerOptions(priority=2, name="gate"))
    registry.subscribe("user.created", tail, HandlerOptions(priority=1, name="tail"))

    result = dispatcher.dispatch(make_event("user.created"))

    assert result.ok
    assert result.stopped_by == "gate"
    tail.assert_not_called()


def test_stop_propagation_option_halts_only_this_dispatch(registry, dispatcher, make_event):
    tail = Mock()
    registry.subscribe(
        "user.created",
        lambda e: None,
        HandlerOptions(priority=2, name="first", stop_propagation=True),
    )
    registry.subscribe("user.created", tail, HandlerOptions(priority=1, name="tail"))

    dispatcher.dispatch(make_event("user.created"))
    dispatcher.dispatch(make_event("user.created"))

    tail.assert_not_called()


def test_failed_stop_propagation_handler_does_not_stop(registry, dispatcher, make_event):
    tail = Mock()

    def broken(event):
        raise ValueError("bad")

    registry.subscribe(
        "user.created",
        broken,
        HandlerOptions(priority=2, name="broken", stop_propagation=True),
    )
    registry.subscribe("user.created", tail, HandlerOptions(priority=1, name="tail"))

    result = dispatcher.dispatch(make_event("user.created"))

    tail.assert_called_once()
    assert result.stopped_by is None
    assert not result.ok


def test_queued_handler_is_enqueued_not_run(registry, make_event):
    inline = Mock()
    queued = Mock()
    queue = Mock()
    registry.subscribe("payment.failed", queued, HandlerOptions(name="email", should_queue=True))
    registry.subscribe("payment.failed", inline, HandlerOptions(name="log"))
    dispatcher = EventDispatcher(registry, handler_queue=queue)
    event = make_event("payment.failed")

    result = dispatcher.dispatch(event)

    assert result.ok
    assert result.queued == ["email"]
    assert result.executed == ["log"]
    queued.assert_not_called()
    queue.enqueue_handler.assert_called_once_with("email", event)


def test_queued_handler_runs_inline_without_queue(registry, dispatcher, make_event):
    queued = Mock(return_value=None)
    registry.subscribe("payment.failed", queued, HandlerOptions(name="email", should_queue=True))

    result = dispatcher.dispatch(make_event("payment.failed"))

    queued.assert_called_once()
    assert result.executed == ["email"]


def test_enqueue_failure_counts_as_handler_failure(registry, make_event):
    queue = Mock()
    queue.enqueue_handler.side_effect = QueueEnqueueError("redis down")
    after = Mock()
    registry.subscribe(
        "payment.failed",
        Mock(),
        HandlerOptions(priority=1, name="email", should_queue=True),
    )
    registry.subscribe("payment.failed", after, HandlerOptions(name="log"))
    dispatcher = EventDispatcher(registry, handler_queue=queue)

    result = dispatcher.dispatch(make_event("payment.failed"))

    assert not result.ok
    assert result.failures[0].handler == "email"
    assert result.failures[0].error_type == "QueueEnqueueError"
    after.assert_called_once()
