"""
Name: Event Schema Tests

Responsibilities:
  - Timeline filter validation (limit / offset bounds, type normalization)
  - Descriptor defaults
"""

from uuid import uuid4

import pytest

from outbox.application.schemas import (
    EventMetadata,
    parse_descriptor,
    parse_timeline_request,
)
from outbox.crosscutting.exceptions import EventValidationError
from outbox.domain.entities import ActorType
from outbox.domain.event_types import EventType

pytestmark = pytest.mark.unit


def test_timeline_defaults():
    query = parse_timeline_request({})

    assert query.limit == 50
    assert query.offset == 0
    assert query.event_types == ()
    assert query.actor_type is None


def test_timeline_normalizes_filters():
    actor = uuid4()
    query = parse_timeline_request(
        {
            "actor_id": str(actor),
            "actor_type": "webhook",
            "event_types": [EventType.PAYMENT_FAILED, "payment.succeeded"],
            "limit": 100,
            "offset": 20,
        }
    )

    assert query.actor_id == actor
    assert query.actor_type == ActorType.WEBHOOK
    assert query.event_types == ("payment.failed", "payment.succeeded")
    assert (query.limit, query.offset) == (100, 20)


@pytest.mark.parametrize(
    "data",
    [{"limit": 0}, {"limit": 101}, {"offset": -1}, {"actor_type": "robot"}],
)
def test_timeline_rejects_out_of_range(data):
    with pytest.raises(EventValidationError):
        parse_timeline_request(data)


def test_descriptor_defaults_version_and_payload():
    descriptor = parse_descriptor(
        {"type": "user.created", "actor_id": "system", "actor_type": "system"}
    )

    assert descriptor.version == "1.0.0"
    assert descriptor.payload == {}
    assert descriptor.metadata is None


def test_metadata_accepts_snake_and_camel_case():
    by_alias = EventMetadata.model_validate(
        {"source": "api", "environment": "test", "userAgent": "ua", "requestId": "r"}
    )
    by_name = EventMetadata(
        source="api", environment="test", user_agent="ua", request_id="r"
    )

    assert by_alias.to_json() == by_name.to_json()
    assert by_name.to_json()["userAgent"] == "ua"
