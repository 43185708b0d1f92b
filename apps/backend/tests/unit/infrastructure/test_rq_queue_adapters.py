"""
Name: RQ Queue Adapter Tests

Responsibilities:
  - Wake-up bridge: coalescing with SET NX EX, enqueue, error translation
  - Handler job queue: primitive args, stable job ids, retries
  - Configuration validation

Notes:
  - rq.Queue is patched; Redis is a Mock (no server needed)
"""

from unittest.mock import MagicMock, patch
from uuid import UUID

import pytest

from outbox.crosscutting.metrics import get_registry
from outbox.infrastructure.queue import (
    QueueConfigurationError,
    QueueEnqueueError,
    RQHandlerJobQueue,
    RQOutboxWakeUp,
    RQQueueConfig,
    handler_job_id,
)
from outbox.infrastructure.queue.import_utils import (
    is_importable_dotted_path,
    require_importable,
)
from outbox.infrastructure.queue.job_paths import (
    PROCESS_EVENT_HANDLER_JOB_PATH,
    PROCESS_OUTBOX_JOB_PATH,
    WAKEUP_COALESCE_KEY,
)

pytestmark = pytest.mark.unit


def _wakeups(status: str) -> float:
    return get_registry().get_sample_value("outbox_wakeup_total", {"status": status}) or 0.0


@pytest.fixture
def queue_cls():
    with patch("rq.Queue") as mock_queue_cls:
        yield mock_queue_cls


# ============================================================================
# Wake-up bridge
# ============================================================================


def test_wakeup_enqueues_outbox_job(queue_cls):
    redis = MagicMock()
    redis.set.return_value = True
    wakeup = RQOutboxWakeUp(redis=redis, config=RQQueueConfig(), coalesce_seconds=2)
    before = _wakeups("sent")

    assert wakeup.trigger() is True

    redis.set.assert_called_once_with(WAKEUP_COALESCE_KEY, "1", nx=True, ex=2)
    queue_cls.assert_called_once_with(name="outbox", connection=redis)
    args, _ = queue_cls.return_value.enqueue.call_args
    assert args == (PROCESS_OUTBOX_JOB_PATH,)
    assert _wakeups("sent") == before + 1


def test_wakeup_is_coalesced_while_key_exists(queue_cls):
    redis = MagicMock()
    redis.set.return_value = None
    wakeup = RQOutboxWakeUp(redis=redis, config=RQQueueConfig())
    before = _wakeups("coalesced")

    assert wakeup.trigger() is False

    queue_cls.return_value.enqueue.assert_not_called()
    assert _wakeups("coalesced") == before + 1


def test_wakeup_without_coalescing_skips_redis_key(queue_cls):
    redis = MagicMock()
    wakeup = RQOutboxWakeUp(redis=redis, config=RQQueueConfig(), coalesce_seconds=0)

    assert wakeup.trigger() is True
    redis.set.assert_not_called()


def test_wakeup_failure_raises_enqueue_error(queue_cls):
    redis = MagicMock()
    redis.set.side_effect = ConnectionError("redis down")
    wakeup = RQOutboxWakeUp(redis=redis, config=RQQueueConfig())
    before = _wakeups("failed")

    with pytest.raises(QueueEnqueueError) as exc_info:
        wakeup.trigger()

    assert isinstance(exc_info.value.original_error, ConnectionError)
    assert _wakeups("failed") == before + 1


# ============================================================================
# Handler job queue
# ============================================================================


def test_enqueue_handler_sends_primitive_payload(queue_cls, make_event):
    queue_cls.return_value.enqueue.return_value = MagicMock(id="job-1")
    jobs = RQHandlerJobQueue(
        redis=MagicMock(),
        config=RQQueueConfig(queue_name="events", retry_max_attempts=2),
    )
    event = make_event("payment.failed")

    job_id = jobs.enqueue_handler("notifications.email", event)

    assert job_id == "job-1"
    args, kwargs = queue_cls.return_value.enqueue.call_args
    assert args == (PROCESS_EVENT_HANDLER_JOB_PATH,)
    handler_name, payload = kwargs["args"]
    assert handler_name == "notifications.email"
    assert payload["event_id"] == str(event.event_id)
    assert kwargs["job_id"] == f"{event.event_id}-notifications_email"
    assert kwargs["retry"].max == 2


def test_enqueue_handler_without_retries(queue_cls, make_event):
    jobs = RQHandlerJobQueue(
        redis=MagicMock(), config=RQQueueConfig(retry_max_attempts=0)
    )

    jobs.enqueue_handler("h", make_event())

    _, kwargs = queue_cls.return_value.enqueue.call_args
    assert kwargs["retry"] is None


def test_enqueue_handler_failure_raises(queue_cls, make_event):
    queue_cls.return_value.enqueue.side_effect = RuntimeError("redis down")
    jobs = RQHandlerJobQueue(redis=MagicMock(), config=RQQueueConfig())

    with pytest.raises(QueueEnqueueError):
        jobs.enqueue_handler("h", make_event())


def test_handler_job_id_is_rq_safe(make_event):
    event = make_event(event_id=UUID("12345678-1234-5678-1234-567812345678"))

    job_id = handler_job_id(event, "outbox.handlers:send email")

    assert job_id == "12345678-1234-5678-1234-567812345678-outbox_handlers_send_email"


# ============================================================================
# Configuration
# ============================================================================


@pytest.mark.parametrize(
    "config",
    [
        RQQueueConfig(retry_max_attempts=-1),
        RQQueueConfig(job_timeout_seconds=0),
        RQQueueConfig(result_ttl_seconds=-5),
    ],
)
def test_invalid_config_rejected(queue_cls, config):
    with pytest.raises(QueueConfigurationError):
        RQHandlerJobQueue(redis=MagicMock(), config=config)


def test_blank_queue_name_defaults_to_outbox(queue_cls):
    RQHandlerJobQueue(redis=MagicMock(), config=RQQueueConfig(queue_name="  "))

    assert queue_cls.call_args.kwargs["name"] == "outbox"


def test_job_paths_are_importable():
    assert is_importable_dotted_path(PROCESS_OUTBOX_JOB_PATH)
    assert is_importable_dotted_path(PROCESS_EVENT_HANDLER_JOB_PATH)
    assert not is_importable_dotted_path("outbox.worker.jobs.missing_job")
    assert not is_importable_dotted_path("no_dots")


def test_require_importable_fails_fast():
    with pytest.raises(QueueConfigurationError):
        require_importable("outbox.nowhere.job")
