"""
===============================================================================
TARJETA CRC — outbox/context.py (Contexto por request / evento)
===============================================================================

Responsabilidades:
  - Mantener contexto “request-scoped” usando ContextVars (thread/async-safe).
  - Permitir correlación de logs/métricas/trazas sin pasar parámetros por todo el stack.
  - Proveer helpers mínimos: set_*(), get_context_dict(), clear_context().

Colaboradores:
  - Capa HTTP (externa): setea request_id al inicio del request; el publisher
    lo copia a metadata.requestId.
  - outbox.crosscutting.logger: enriquece logs leyendo get_context_dict().
  - outbox.crosscutting.tracing: setea trace_id/span_id si OTel está habilitado.
  - outbox.application.outbox_worker: setea event_id/event_type por fila.

Restricciones:
  - Solo tipos primitivos (str) para serialización segura.
  - Defaults vacíos ("") para evitar None y simplificar JSON.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Final

# Identificador de request o job (idealmente UUID o ID estable).
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Identificadores de traza (hex) si está habilitado tracing (OpenTelemetry).
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")
span_id_var: ContextVar[str] = ContextVar("span_id", default="")

# Evento que el worker está despachando.
event_id_var: ContextVar[str] = ContextVar("event_id", default="")
event_type_var: ContextVar[str] = ContextVar("event_type", default="")

_CTX_REQUEST_ID: Final[str] = "request_id"
_CTX_TRACE_ID: Final[str] = "trace_id"
_CTX_SPAN_ID: Final[str] = "span_id"
_CTX_EVENT_ID: Final[str] = "event_id"
_CTX_EVENT_TYPE: Final[str] = "event_type"


def set_request_context(*, request_id: str = "") -> None:
    """Setea el request_id del request/job en curso."""
    request_id_var.set(request_id or "")


def set_event_context(*, event_id: str = "", event_type: str = "") -> None:
    """Setea el evento en curso (worker / jobs de handlers)."""
    event_id_var.set(event_id or "")
    event_type_var.set(event_type or "")


def get_context_dict() -> dict[str, str]:
    """
    Devuelve el contexto actual como dict, omitiendo claves vacías.
    """
    ctx: dict[str, str] = {}

    if val := request_id_var.get():
        ctx[_CTX_REQUEST_ID] = val
    if val := trace_id_var.get():
        ctx[_CTX_TRACE_ID] = val
    if val := span_id_var.get():
        ctx[_CTX_SPAN_ID] = val
    if val := event_id_var.get():
        ctx[_CTX_EVENT_ID] = val
    if val := event_type_var.get():
        ctx[_CTX_EVENT_TYPE] = val

    return ctx


def clear_event_context() -> None:
    """Limpia solo el evento en curso (entre filas de un mismo batch)."""
    event_id_var.set("")
    event_type_var.set("")


def clear_context() -> None:
    """
    Limpia el contexto al final del request/job.

    Importante:
      - Evita “filtración de contexto” entre jobs en el mismo thread.
    """
    request_id_var.set("")
    trace_id_var.set("")
    span_id_var.set("")
    clear_event_context()
