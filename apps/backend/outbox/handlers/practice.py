"""
Handlers del dominio practice (organizaciones).

Hoy solo dejan traza estructurada de cada evento; las acciones de negocio
(emails de bienvenida, invalidación de caches) se cuelgan acá como handlers
adicionales con su propia prioridad.
"""

from __future__ import annotations

import logging

from ..application.registry import EventHandler, HandlerOptions, HandlerRegistry
from ..domain.entities import DomainEvent
from ..domain.event_types import EventType

logger = logging.getLogger(__name__)

_PRACTICE_MESSAGES: dict[EventType, str] = {
    EventType.PRACTICE_CREATED: "Practice creada",
    EventType.PRACTICE_UPDATED: "Practice actualizada",
    EventType.PRACTICE_DELETED: "Practice eliminada",
    EventType.PRACTICE_SWITCHED: "Practice activa cambiada",
    EventType.PRACTICE_DETAILS_CREATED: "Detalles de practice creados",
    EventType.PRACTICE_DETAILS_UPDATED: "Detalles de practice actualizados",
    EventType.PRACTICE_DETAILS_DELETED: "Detalles de practice eliminados",
    EventType.PRACTICE_MEMBER_INVITED: "Miembro invitado a practice",
    EventType.PRACTICE_MEMBER_JOINED: "Miembro se unió a practice",
    EventType.PRACTICE_MEMBER_REMOVED: "Miembro removido de practice",
    EventType.PRACTICE_MEMBER_ROLE_CHANGED: "Rol de miembro cambiado",
}


def _log_practice_event(message: str) -> EventHandler:
    def handle(event: DomainEvent) -> None:
        logger.info(
            message,
            extra={
                "organization_id": str(event.organization_id)
                if event.organization_id
                else None,
                "actor_id": str(event.actor_id),
            },
        )

    return handle


def register_practice_events(registry: HandlerRegistry) -> int:
    """Registra los handlers de practice. Devuelve cuántos registró."""
    for event_type, message in _PRACTICE_MESSAGES.items():
        registry.subscribe(
            event_type,
            _log_practice_event(message),
            HandlerOptions(name=f"practice.log.{event_type.value}"),
        )
    logger.info(
        "Handlers de practice registrados", extra={"count": len(_PRACTICE_MESSAGES)}
    )
    return len(_PRACTICE_MESSAGES)
