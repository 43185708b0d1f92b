"""
===============================================================================
TARJETA CRC — outbox/events.py (fachada del proceso)
===============================================================================

Responsabilidades:
  - API corta para el código de negocio: publicar y suscribir sin tocar el
    container.

Uso:
    from outbox.events import publish_event_tx, publish_simple_event
    from outbox.infrastructure.db import transaction

    with transaction() as tx:
        practice_repo.insert(tx, practice)
        publish_event_tx(tx, {
            "type": EventType.PRACTICE_CREATED,
            "actor_id": user_id,
            "actor_type": "user",
            "organization_id": practice.id,
            "payload": {"name": practice.name},
        })
    wake_worker()

Colaboradores:
  - container.get_publisher / container.get_registry
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from .application.registry import EventHandler, HandlerOptions, HandlerRegistration
from .application.schemas import EventDescriptor
from .container import get_publisher, get_registry
from .domain.entities import ActorType
from .domain.event_types import EventType


def publish_event_tx(tx: Any, descriptor: EventDescriptor | Mapping[str, Any]) -> UUID:
    return get_publisher().publish_event_tx(tx, descriptor)


def publish_simple_event(
    event_type: EventType | str,
    actor_id: UUID | str,
    organization_id: UUID | str | None,
    payload: Mapping[str, Any] | None = None,
    *,
    actor_type: ActorType | str | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> UUID | None:
    return get_publisher().publish_simple_event(
        event_type,
        actor_id,
        organization_id,
        payload,
        actor_type=actor_type,
        metadata=metadata,
    )


def subscribe_to_event(
    event_type: EventType | str,
    handler: EventHandler,
    options: HandlerOptions | None = None,
) -> HandlerRegistration:
    """Suscribe al registry del proceso (solo antes del boot)."""
    return get_registry().subscribe(event_type, handler, options)


def create_event_metadata(
    source: str,
    *,
    ip: str | None = None,
    user_agent: str | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    return get_publisher().create_event_metadata(
        source, ip=ip, user_agent=user_agent, request_id=request_id
    )


def wake_worker() -> bool:
    return get_publisher().wake_worker()


__all__ = [
    "publish_event_tx",
    "publish_simple_event",
    "subscribe_to_event",
    "create_event_metadata",
    "wake_worker",
]
