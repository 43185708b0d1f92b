"""
===============================================================================
SERVICE: Handler Registry (suscripciones por tipo de evento)
===============================================================================

Name:
    Handler Registry

Qué es:
    Mapa explícito event_type -> handlers ordenados, construido UNA vez al
    boot del proceso y pasado al dispatcher/worker (no es un singleton
    implícito de módulo: cada test puede armar el suyo).

Orden:
    - priority DESC; empates por orden de registro (sequence ASC).
    - El orden es estable entre dispatches repetidos.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component: HandlerRegistry
Responsibilities:
  - Registrar handlers con opciones (priority, stop_propagation, should_queue)
  - Devolver los handlers de un tipo en orden de ejecución
  - Resolver un handler por nombre (jobs encolados)
  - Congelarse al terminar el boot (subscribe posterior -> RegistryFrozenError)
Collaborators:
  - application.dispatcher.EventDispatcher
  - handlers.register_event_handlers (registro por dominio)
  - worker.jobs.process_event_handler_job (find por nombre)
===============================================================================
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from ..crosscutting.exceptions import RegistryFrozenError
from ..domain.entities import DomainEvent
from ..domain.event_types import EventType, event_type_value

logger = logging.getLogger(__name__)

# Un handler recibe el evento hidratado. Devolver False corta la propagación.
EventHandler = Callable[[DomainEvent], Optional[bool]]


@dataclass(frozen=True)
class HandlerOptions:
    """Opciones de suscripción."""

    priority: int = 0
    stop_propagation: bool = False
    should_queue: bool = False
    name: str | None = None


@dataclass(frozen=True, slots=True)
class HandlerRegistration:
    """Handler registrado para un tipo de evento."""

    event_type: str
    name: str
    handler: EventHandler
    priority: int
    stop_propagation: bool
    should_queue: bool
    sequence: int

    def sort_key(self) -> tuple[int, int]:
        return (-self.priority, self.sequence)


def _default_handler_name(handler: EventHandler) -> str:
    module = getattr(handler, "__module__", None) or ""
    qualname = (
        getattr(handler, "__qualname__", None)
        or getattr(handler, "__name__", None)
        or type(handler).__name__
    )
    return f"{module}.{qualname}" if module else qualname


class HandlerRegistry:
    """Registro explícito de handlers (boot-only)."""

    def __init__(self) -> None:
        self._handlers: dict[str, tuple[HandlerRegistration, ...]] = {}
        self._sequence = 0
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        return self._frozen

    def subscribe(
        self,
        event_type: EventType | str,
        handler: EventHandler,
        options: HandlerOptions | None = None,
    ) -> HandlerRegistration:
        """
        Registra `handler` para `event_type`.

        Raises:
            RegistryFrozenError: si el registry ya fue congelado.
            ValueError: tipo vacío, handler no callable o nombre duplicado
                para el mismo tipo.
        """
        opts = options or HandlerOptions()
        key = event_type_value(event_type)
        if not key:
            raise ValueError("event_type must not be empty")
        if not callable(handler):
            raise ValueError("handler must be callable")

        name = (opts.name or "").strip() or _default_handler_name(handler)

        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(
                    f"No se puede suscribir '{name}' a '{key}': registry congelado"
                )

            current = self._handlers.get(key, ())
            if any(r.name == name for r in current):
                raise ValueError(f"Handler '{name}' already registered for '{key}'")

            self._sequence += 1
            registration = HandlerRegistration(
                event_type=key,
                name=name,
                handler=handler,
                priority=int(opts.priority),
                stop_propagation=bool(opts.stop_propagation),
                should_queue=bool(opts.should_queue),
                sequence=self._sequence,
            )
            self._handlers[key] = tuple(
                sorted((*current, registration), key=HandlerRegistration.sort_key)
            )

        logger.debug(
            "Handler registrado",
            extra={
                "event_type": key,
                "handler": name,
                "priority": registration.priority,
                "should_queue": registration.should_queue,
            },
        )
        return registration

    def handlers_for(self, event_type: EventType | str) -> tuple[HandlerRegistration, ...]:
        """Handlers del tipo en orden de ejecución (tupla vacía si no hay)."""
        return self._handlers.get(event_type_value(event_type), ())

    def find(self, event_type: EventType | str, name: str) -> HandlerRegistration | None:
        for registration in self.handlers_for(event_type):
            if registration.name == name:
                return registration
        return None

    def event_types(self) -> list[str]:
        return sorted(self._handlers)

    def freeze(self) -> None:
        """Cierra el registro: a partir de acá solo lecturas."""
        with self._lock:
            self._frozen = True
        logger.info(
            "Registry de handlers congelado",
            extra={"event_types": len(self._handlers), "handlers": len(self)},
        )

    def __len__(self) -> int:
        return sum(len(v) for v in self._handlers.values())

    def __iter__(self) -> Iterator[HandlerRegistration]:
        for key in sorted(self._handlers):
            yield from self._handlers[key]
