"""Dominio del outbox: eventos, actores, taxonomía y puertos."""

from .actors import (
    API_ACTOR_UUID,
    CRON_ACTOR_UUID,
    ORGANIZATION_ACTOR_UUID,
    SENTINEL_ACTORS,
    SYSTEM_ACTOR_UUID,
    WEBHOOK_ACTOR_UUID,
    actor_type_for,
    resolve_actor_id,
)
from .entities import (
    DEFAULT_EVENT_VERSION,
    ActorType,
    DomainEvent,
    EventTimelineQuery,
)
from .event_types import (
    EVENT_DOMAINS,
    EventType,
    get_event_types_by_domain,
    is_valid_event_type,
)
from .repositories import EventStore
from .services import HandlerJobQueue, NoopWakeUp, OutboxWakeUp

__all__ = [
    "ActorType",
    "DomainEvent",
    "EventTimelineQuery",
    "DEFAULT_EVENT_VERSION",
    "EventType",
    "EVENT_DOMAINS",
    "get_event_types_by_domain",
    "is_valid_event_type",
    "SYSTEM_ACTOR_UUID",
    "WEBHOOK_ACTOR_UUID",
    "CRON_ACTOR_UUID",
    "API_ACTOR_UUID",
    "ORGANIZATION_ACTOR_UUID",
    "SENTINEL_ACTORS",
    "resolve_actor_id",
    "actor_type_for",
    "EventStore",
    "OutboxWakeUp",
    "HandlerJobQueue",
    "NoopWakeUp",
]
