"""
===============================================================================
SERVICE: Event Dispatcher (fan-out secuencial con aislamiento de fallos)
===============================================================================

Name:
    Event Dispatcher

Qué hace:
    Entrega UN evento a todos sus handlers, en orden de prioridad, uno por vez.

Reglas:
    - Sin handlers -> éxito (no es error).
    - Un handler que levanta se loguea, se registra en la falla y el dispatch
      SIGUE con el próximo handler.
    - Un handler que devuelve False, o registrado con stop_propagation y que
      terminó bien, corta el resto de ESTE dispatch (nada más).
    - should_queue=True + cola configurada -> se encola (job por handler);
      sin cola, corre inline. Un enqueue fallido cuenta como falla del handler.

Éxito:
    DispatchResult.ok  <=>  ningún handler levantó (incluye enqueue).
    Lo que un handler encolado haga después no se espera.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component: EventDispatcher
Responsibilities:
  - Resolver handlers del registry
  - Ejecutar / encolar en orden y aislar fallos
  - Reportar el resultado para que el worker decida processed vs retry
Collaborators:
  - application.registry.HandlerRegistry
  - domain.services.HandlerJobQueue (opcional)
  - crosscutting.metrics / crosscutting.tracing
===============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..crosscutting.metrics import record_handler_failure
from ..crosscutting.tracing import span
from ..domain.entities import DomainEvent
from ..domain.services import HandlerJobQueue
from .registry import HandlerRegistration, HandlerRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandlerFailure:
    handler: str
    error_type: str
    message: str

    def describe(self) -> str:
        return f"{self.handler}: {self.error_type}: {self.message}"


@dataclass
class DispatchResult:
    """Resultado de entregar un evento a sus handlers."""

    event_id: str
    event_type: str
    executed: list[str] = field(default_factory=list)
    queued: list[str] = field(default_factory=list)
    failures: list[HandlerFailure] = field(default_factory=list)
    stopped_by: str | None = None

    @property
    def ok(self) -> bool:
        return not self.failures

    def error_summary(self) -> str:
        """Texto para last_error (una línea por handler fallido)."""
        return "\n".join(f.describe() for f in self.failures)


class EventDispatcher:
    """Fan-out secuencial de un evento a sus handlers."""

    def __init__(
        self,
        registry: HandlerRegistry,
        *,
        handler_queue: HandlerJobQueue | None = None,
    ) -> None:
        self._registry = registry
        self._handler_queue = handler_queue

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    def dispatch(self, event: DomainEvent) -> DispatchResult:
        result = DispatchResult(event_id=str(event.event_id), event_type=event.type)
        registrations = self._registry.handlers_for(event.type)

        if not registrations:
            logger.debug(
                "Evento sin handlers",
                extra={"event_id": result.event_id, "event_type": event.type},
            )
            return result

        with span(
            "outbox.dispatch",
            {"event_type": event.type, "handlers": len(registrations)},
        ):
            for registration in registrations:
                succeeded, returned = self._run_one(registration, event, result)

                if not succeeded:
                    continue
                if returned is False or registration.stop_propagation:
                    result.stopped_by = registration.name
                    logger.info(
                        "Propagación detenida por handler",
                        extra={
                            "event_id": result.event_id,
                            "event_type": event.type,
                            "handler": registration.name,
                        },
                    )
                    break

        return result

    def run_inline(self, registration: HandlerRegistration, event: DomainEvent) -> object:
        """Ejecuta el handler en el proceso actual (jobs encolados incluidos)."""
        return registration.handler(event)

    # -------------------------------------------------------------------------
    # Internos
    # -------------------------------------------------------------------------
    def _run_one(
        self,
        registration: HandlerRegistration,
        event: DomainEvent,
        result: DispatchResult,
    ) -> tuple[bool, object]:
        try:
            if registration.should_queue and self._handler_queue is not None:
                self._handler_queue.enqueue_handler(registration.name, event)
                result.queued.append(registration.name)
                return True, None

            returned = self.run_inline(registration, event)
            result.executed.append(registration.name)
            return True, returned
        except Exception as exc:
            failure = HandlerFailure(
                handler=registration.name,
                error_type=type(exc).__name__,
                message=str(exc),
            )
            result.failures.append(failure)
            record_handler_failure(event.type)
            logger.exception(
                "Handler falló; se continúa con el siguiente",
                extra={
                    "event_id": result.event_id,
                    "event_type": event.type,
                    "handler": registration.name,
                    "priority": registration.priority,
                    "error_type": failure.error_type,
                },
            )
            return False, None
