"""
Handlers de pagos.

Los eventos de pago llegan desde webhooks (actor "organization" -> system)
con payload {stripe_payment_intent_id, amount, currency, intake_payment_id, ...}.
"""

from __future__ import annotations

import logging

from ..application.registry import HandlerOptions, HandlerRegistry
from ..domain.entities import DomainEvent
from ..domain.event_types import EventType

logger = logging.getLogger(__name__)

_PAYMENT_EVENTS: tuple[EventType, ...] = (
    EventType.PAYMENT_SESSION_CREATED,
    EventType.PAYMENT_RECEIVED,
    EventType.PAYMENT_SUCCEEDED,
    EventType.PAYMENT_CANCELED,
    EventType.INTAKE_PAYMENT_CREATED,
    EventType.INTAKE_PAYMENT_SUCCEEDED,
    EventType.INTAKE_PAYMENT_CANCELED,
)

_FAILED_PAYMENT_EVENTS: tuple[EventType, ...] = (
    EventType.PAYMENT_FAILED,
    EventType.INTAKE_PAYMENT_FAILED,
)


def _payment_fields(event: DomainEvent) -> dict[str, object]:
    payload = event.payload
    return {
        "organization_id": str(event.organization_id) if event.organization_id else None,
        "payment_intent": payload.get("stripe_payment_intent_id"),
        "amount": payload.get("amount"),
        "currency": payload.get("currency"),
    }


def log_payment_event(event: DomainEvent) -> None:
    logger.info("Evento de pago", extra=_payment_fields(event))


def log_failed_payment(event: DomainEvent) -> None:
    logger.warning(
        "Pago fallido",
        extra={
            **_payment_fields(event),
            "failure_code": event.payload.get("failure_code"),
        },
    )


def register_payment_events(registry: HandlerRegistry) -> int:
    # Prioridad alta: la traza de pagos corre antes que cualquier otro handler.
    for event_type in _PAYMENT_EVENTS:
        registry.subscribe(
            event_type,
            log_payment_event,
            HandlerOptions(priority=100, name="payments.log"),
        )
    for event_type in _FAILED_PAYMENT_EVENTS:
        registry.subscribe(
            event_type,
            log_failed_payment,
            HandlerOptions(priority=100, name="payments.log_failure"),
        )

    count = len(_PAYMENT_EVENTS) + len(_FAILED_PAYMENT_EVENTS)
    logger.info("Handlers de pagos registrados", extra={"count": count})
    return count
