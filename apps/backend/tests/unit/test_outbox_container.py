"""
Name: Container & Facade Tests

Responsibilities:
  - Adapter selection from Settings (in-memory store in test, no-op wake-up
    without Redis)
  - Boot registration of domain handlers (frozen registry)
  - outbox.events facade end to end
"""

from unittest.mock import Mock

import pytest

from outbox import container, events
from outbox.crosscutting.config import get_settings
from outbox.crosscutting.exceptions import RegistryFrozenError
from outbox.domain.event_types import EventType
from outbox.domain.services import NoopWakeUp
from outbox.infrastructure.repositories import InMemoryEventStore

pytestmark = pytest.mark.unit


@pytest.fixture
def no_redis(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "")
    get_settings.cache_clear()


def test_test_env_uses_in_memory_store():
    assert isinstance(container.get_event_store(), InMemoryEventStore)


def test_no_redis_means_noop_wakeup_and_inline_handlers(no_redis):
    assert container.get_redis() is None
    assert isinstance(container.get_wakeup(), NoopWakeUp)
    assert container.get_handler_queue() is None


def test_wakeup_disabled_by_setting(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("OUTBOX_WAKEUP_ENABLED", "false")
    get_settings.cache_clear()

    assert isinstance(container.get_wakeup(), NoopWakeUp)


def test_build_handler_registry_registers_and_freezes(no_redis):
    registry = container.build_handler_registry()

    assert registry.frozen
    assert len(registry) > 0
    assert registry.find(EventType.PAYMENT_FAILED, "payments.log_failure") is not None
    assert container.build_handler_registry() is registry


def test_subscribe_after_boot_fails(no_redis):
    container.build_handler_registry()

    with pytest.raises(RegistryFrozenError):
        events.subscribe_to_event("user.created", Mock())


def test_facade_publish_and_process(no_redis):
    handler = Mock(return_value=None)
    events.subscribe_to_event("custom.thing_happened", handler)

    event_id = events.publish_simple_event("custom.thing_happened", "cron", None, {"n": 1})
    result = container.get_outbox_worker().run_once()

    assert result.processed == 1
    handler.assert_called_once()
    stored = container.get_event_store().get_event(event_id)
    assert stored.processed is True
    assert events.wake_worker() is False


def test_facade_transactional_publish(no_redis):
    store = container.get_event_store()

    with store.transaction() as tx:
        event_id = events.publish_event_tx(
            tx,
            {
                "type": "practice.switched",
                "actor_id": "api",
                "actor_type": "api",
                "metadata": events.create_event_metadata("api", request_id="r-1"),
            },
        )

    stored = store.get_event(event_id)
    assert stored.metadata["requestId"] == "r-1"
    assert stored.metadata["source"] == "api"
