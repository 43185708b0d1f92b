"""Handlers de eventos de usuario y autenticación (traza estructurada)."""

from __future__ import annotations

import logging

from ..application.registry import EventHandler, HandlerOptions, HandlerRegistry
from ..domain.entities import DomainEvent
from ..domain.event_types import EventType

logger = logging.getLogger(__name__)

_USER_MESSAGES: dict[EventType, str] = {
    EventType.AUTH_USER_SIGNED_UP: "Usuario registrado",
    EventType.AUTH_USER_LOGGED_IN: "Usuario inició sesión",
    EventType.AUTH_USER_LOGGED_OUT: "Usuario cerró sesión",
    EventType.AUTH_EMAIL_VERIFIED: "Email verificado",
    EventType.AUTH_PASSWORD_CHANGED: "Password cambiado",
    EventType.AUTH_PASSWORD_RESET_REQUESTED: "Reset de password solicitado",
    EventType.AUTH_ACCOUNT_DELETED: "Cuenta eliminada",
    EventType.USER_CREATED: "Usuario creado",
    EventType.USER_UPDATED: "Usuario actualizado",
    EventType.USER_DELETED: "Usuario eliminado",
    EventType.USER_PROFILE_UPDATED: "Perfil actualizado",
    EventType.USER_EMAIL_CHANGED: "Email cambiado",
}


def _log_user_event(message: str) -> EventHandler:
    def handle(event: DomainEvent) -> None:
        # Solo las claves del payload: puede traer emails/tokens.
        logger.info(
            message,
            extra={
                "actor_id": str(event.actor_id),
                "payload_keys": sorted(event.payload),
            },
        )

    return handle


def register_user_events(registry: HandlerRegistry) -> int:
    for event_type, message in _USER_MESSAGES.items():
        registry.subscribe(
            event_type,
            _log_user_event(message),
            HandlerOptions(name=f"user.log.{event_type.value}"),
        )
    logger.info("Handlers de usuario registrados", extra={"count": len(_USER_MESSAGES)})
    return len(_USER_MESSAGES)
