# apps/backend/outbox/crosscutting/tracing.py
"""
===============================================================================
MÓDULO: Tracing OpenTelemetry (opt-in) + correlación con logs
===============================================================================

Objetivo
--------
- Activar spans cuando OTEL_ENABLED=1 (corridas del worker, dispatch)
- Setear trace_id/span_id en contextvars para logs

Diseño
------
- No-op cuando está deshabilitado (default).

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  span() context manager

Responsabilidades:
  - Crear spans con atributos
  - Enriquecer contexto de logging con trace/span ids

Colaboradores:
  - outbox/context.py (trace_id_var, span_id_var)
  - crosscutting/config.py (otel_enabled)
===============================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from pydantic import ValidationError

from ..context import span_id_var, trace_id_var

_tracer: Optional[Any] = None
_enabled: bool = False


def _init_tracing() -> None:
    global _tracer, _enabled

    from .config import get_settings

    try:
        enabled = bool(get_settings().otel_enabled)
    except ValidationError:
        enabled = False

    if not enabled:
        _enabled = False
        _tracer = None
        return

    resource = Resource.create({"service.name": "outbox-worker"})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer("outbox")
    _enabled = True


_init_tracing()


@contextmanager
def span(name: str, attributes: Optional[dict] = None) -> Generator[Any, None, None]:
    """
    Uso:
      with span("outbox.run_once", {"batch_size": 10}):
          ...

    Si tracing no está habilitado, es no-op.
    """
    if not _enabled or _tracer is None:
        yield None
        return

    with _tracer.start_as_current_span(name) as s:
        for k, v in (attributes or {}).items():
            s.set_attribute(k, v)

        # Correlación con logs
        ctx = s.get_span_context()
        trace_id_var.set(format(ctx.trace_id, "032x"))
        span_id_var.set(format(ctx.span_id, "016x"))

        yield s


def is_tracing_enabled() -> bool:
    return bool(_enabled and _tracer is not None)
