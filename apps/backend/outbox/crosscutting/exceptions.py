# apps/backend/outbox/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Excepciones tipadas del outbox
===============================================================================

Objetivo
--------
Tener excepciones internas coherentes, con:
- error_code estable
- error_id para correlación con logs
- message “humana” (sin filtrar payloads ni secretos)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  OutboxError + subclases

Responsabilidades:
  - Estandarizar los errores del lado productor (publicación) y del store
  - Generar error_id para rastreo

Política de propagación:
  - Productor (publish_event_tx): los errores SIEMPRE se propagan y abortan
    la transacción del caller.
  - Consumidor (handlers / worker): los errores se recuperan localmente y
    nunca escapan del loop del worker.

Colaboradores:
  - application/publisher.py
  - application/registry.py
  - infrastructure/repositories/postgres/event_store.py
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class ErrorResponse:
    """Estructura mínima para reportar errores de forma consistente."""

    error_code: str
    message: str
    error_id: str

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class OutboxError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      OutboxError

    Responsabilidades:
      - Base para errores internos del sistema de eventos
      - Proveer error_code + error_id + message
    ----------------------------------------------------------------------------
    """

    error_code: str = "OUTBOX_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code, message=self.message, error_id=self.error_id
        )


class DatabaseError(OutboxError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"


class PublishError(OutboxError):
    """El insert del evento en el Event Store falló."""

    error_code: str = "PUBLISH_ERROR"


class EventValidationError(OutboxError):
    """El descriptor del evento no cumple el contrato (tipo, actor_type, org, versión)."""

    error_code: str = "EVENT_VALIDATION_ERROR"


class RegistryFrozenError(OutboxError):
    """Se intentó suscribir un handler después del boot."""

    error_code: str = "REGISTRY_FROZEN"
