"""
===============================================================================
TARJETA CRC — handlers/ (registro de handlers por dominio)
===============================================================================

Responsabilidades:
  - Registrar, al boot, los handlers de cada dominio en el registry.
  - Congelar el registry al terminar (suscribir después es un error).

Colaboradores:
  - application.registry.HandlerRegistry
  - handlers.auth / handlers.practice / handlers.payments
===============================================================================
"""

from __future__ import annotations

import logging

from ..application.registry import HandlerRegistry
from .auth import register_user_events
from .payments import register_payment_events
from .practice import register_practice_events

logger = logging.getLogger(__name__)


def register_event_handlers(registry: HandlerRegistry, *, freeze: bool = True) -> HandlerRegistry:
    """Registra todos los handlers de la aplicación."""
    count = 0
    count += register_user_events(registry)
    count += register_practice_events(registry)
    count += register_payment_events(registry)

    if freeze:
        registry.freeze()

    logger.info(
        "Handlers de eventos registrados",
        extra={"count": count, "event_types": len(registry.event_types())},
    )
    return registry


__all__ = [
    "register_event_handlers",
    "register_user_events",
    "register_practice_events",
    "register_payment_events",
]
