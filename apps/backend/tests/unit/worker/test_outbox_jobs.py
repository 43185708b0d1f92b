"""
Name: Outbox Job Tests

Responsibilities:
  - Validate wake-up job wiring calls OutboxWorker.run_once
  - Validate queued handler jobs resolve and run the registered handler
"""

from unittest.mock import MagicMock, Mock, patch

import pytest

from outbox.application.dispatcher import EventDispatcher
from outbox.application.outbox_worker import BatchResult
from outbox.application.registry import HandlerOptions
from outbox.context import event_id_var, request_id_var
from outbox.worker.jobs import process_event_handler_job, process_outbox_job

pytestmark = pytest.mark.unit


def test_process_outbox_job_runs_one_batch():
    worker = MagicMock()
    worker.run_once.return_value = BatchResult(selected=3, processed=2, failed=1)

    with patch("outbox.worker.jobs.get_current_job", return_value=MagicMock(id="job-7")):
        with patch("outbox.worker.jobs.get_outbox_worker", return_value=worker):
            result = process_outbox_job()

    worker.run_once.assert_called_once_with()
    assert result == {"selected": 3, "processed": 2, "failed": 1}
    assert request_id_var.get() == ""


def test_process_event_handler_job_runs_registered_handler(registry, make_event):
    handler = Mock(return_value=None)
    registry.subscribe("payment.failed", handler, HandlerOptions(name="email", should_queue=True))
    event = make_event("payment.failed")

    with patch("outbox.worker.jobs.get_current_job", return_value=None):
        with patch("outbox.worker.jobs.build_handler_registry", return_value=registry):
            with patch(
                "outbox.worker.jobs.get_dispatcher",
                return_value=EventDispatcher(registry),
            ):
                process_event_handler_job("email", event.to_job_payload())

    handler.assert_called_once()
    delivered = handler.call_args.args[0]
    assert delivered.event_id == event.event_id
    assert delivered.payload == event.payload
    assert event_id_var.get() == ""


def test_process_event_handler_job_missing_handler_is_noop(registry, make_event):
    with patch("outbox.worker.jobs.get_current_job", return_value=None):
        with patch("outbox.worker.jobs.build_handler_registry", return_value=registry):
            with patch("outbox.worker.jobs.get_dispatcher") as get_dispatcher:
                process_event_handler_job("gone", make_event().to_job_payload())

    get_dispatcher.assert_not_called()


def test_process_event_handler_job_propagates_failures(registry, make_event):
    registry.subscribe(
        "payment.failed",
        Mock(side_effect=RuntimeError("smtp down")),
        HandlerOptions(name="email", should_queue=True),
    )

    with patch("outbox.worker.jobs.get_current_job", return_value=None):
        with patch("outbox.worker.jobs.build_handler_registry", return_value=registry):
            with patch(
                "outbox.worker.jobs.get_dispatcher",
                return_value=EventDispatcher(registry),
            ):
                with pytest.raises(RuntimeError, match="smtp down"):
                    process_event_handler_job(
                        "email", make_event("payment.failed").to_job_payload()
                    )
