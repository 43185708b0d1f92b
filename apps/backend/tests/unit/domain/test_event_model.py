"""
Name: Domain Event Model Tests

Responsibilities:
  - Event type taxonomy helpers
  - Row state transitions (processed / failed / pending)
  - Job payload serialization used by queued handlers
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from outbox.domain.entities import (
    LAST_ERROR_MAX_CHARS,
    ActorType,
    DomainEvent,
    truncate_error,
)
from outbox.domain.event_types import (
    EventType,
    event_type_value,
    get_event_types_by_domain,
    is_valid_event_type,
)

pytestmark = pytest.mark.unit


def test_event_type_value_normalizes_enum_and_strings():
    assert event_type_value(EventType.PRACTICE_CREATED) == "practice.created"
    assert event_type_value("  payment.succeeded ") == "payment.succeeded"


def test_is_valid_event_type():
    assert is_valid_event_type(EventType.PAYMENT_SUCCEEDED)
    assert is_valid_event_type("auth.user_signed_up")
    assert not is_valid_event_type("practice.exploded")


@pytest.mark.parametrize("bad_type", [None, 7, b"payment.failed"])
def test_event_type_value_rejects_non_strings(bad_type):
    with pytest.raises(TypeError):
        event_type_value(bad_type)

    assert not is_valid_event_type(bad_type)


def test_get_event_types_by_domain():
    payment = get_event_types_by_domain("payment")
    assert EventType.PAYMENT_SUCCEEDED in payment
    assert EventType.INTAKE_PAYMENT_SUCCEEDED not in payment
    assert all(t.value.startswith("payment.") for t in payment)


def test_state_transitions_keep_identity(make_event):
    event = make_event()
    now = datetime.now(timezone.utc)

    failed = event.as_failed("boom").as_failed("boom again")
    assert failed.retry_count == 2
    assert failed.last_error == "boom again"
    assert failed.is_pending

    processed = failed.as_processed(now)
    assert processed.processed is True
    assert processed.processed_at == now
    assert processed.event_id == event.event_id

    pending = processed.as_pending()
    assert pending.is_pending
    assert pending.retry_count == 0
    assert pending.last_error is None
    assert pending.processed_at is None


def test_job_payload_is_primitive_and_rehydrates():
    event = DomainEvent(
        event_id=uuid4(),
        type="payment.succeeded",
        actor_id=uuid4(),
        actor_type=ActorType.WEBHOOK,
        organization_id=uuid4(),
        payload={"amount": 1000, "currency": "usd"},
        metadata={"source": "stripe"},
        created_at=datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )

    payload = event.to_job_payload()
    assert payload["event_id"] == str(event.event_id)
    assert payload["actor_type"] == "webhook"

    restored = DomainEvent.from_job_payload(payload)
    assert restored == event


def test_truncate_error_bounds_length():
    assert truncate_error("short") == "short"
    assert len(truncate_error("x" * (LAST_ERROR_MAX_CHARS + 500))) == LAST_ERROR_MAX_CHARS
