"""
===============================================================================
TARJETA CRC — worker/jobs.py (Jobs RQ del outbox)
===============================================================================

Responsabilidades:
  - process_outbox_job: una corrida del outbox disparada por wake-up.
  - process_event_handler_job: ejecutar UN handler should_queue para UN evento.
  - Setear contexto de logs (request_id = job_id, evento en curso) y limpiarlo.

Contratos:
  - process_outbox_job nunca levanta (OutboxWorker.run_once no levanta).
  - process_event_handler_job SÍ levanta si el handler falla: RQ aplica los
    reintentos configurados en el enqueue.

Colaboradores:
  - container.get_outbox_worker / build_handler_registry / get_dispatcher
  - domain.entities.DomainEvent.from_job_payload
  - crosscutting.tracing.span
  - context (request_id_var, set_event_context, clear_context)
===============================================================================
"""

from __future__ import annotations

import time
from typing import Any

from rq import get_current_job

from ..container import build_handler_registry, get_dispatcher, get_outbox_worker
from ..context import clear_context, request_id_var, set_event_context
from ..crosscutting.logger import logger
from ..crosscutting.tracing import span
from ..domain.entities import DomainEvent


def _current_job_id() -> str | None:
    job = get_current_job()
    return getattr(job, "id", None)


def process_outbox_job() -> dict[str, Any]:
    """Job RQ: corre el outbox una vez (wake-up)."""
    job_id = _current_job_id()
    request_id_var.set(job_id or "outbox-wakeup")
    try:
        result = get_outbox_worker().run_once()
        return {
            "selected": result.selected,
            "processed": result.processed,
            "failed": result.failed,
        }
    finally:
        clear_context()


def process_event_handler_job(handler_name: str, event_payload: dict[str, Any]) -> None:
    """
    Job RQ: ejecuta un handler encolado.

    Si el handler ya no está registrado (deploy que lo quitó), se loguea y
    el job termina sin reintentar.
    """
    job_id = _current_job_id()
    request_id_var.set(job_id or handler_name)

    start = time.perf_counter()
    status = "UNKNOWN"
    try:
        event = DomainEvent.from_job_payload(event_payload)
        set_event_context(event_id=str(event.event_id), event_type=event.type)

        registration = build_handler_registry().find(event.type, handler_name)
        if registration is None:
            status = "MISSING_HANDLER"
            logger.error(
                "Handler encolado no registrado",
                extra={"handler": handler_name, "job_id": job_id},
            )
            return

        with span(
            "outbox.queued_handler",
            {"event_type": event.type, "handler": handler_name},
        ):
            get_dispatcher().run_inline(registration, event)
        status = "OK"

    except Exception:
        status = "FAILED"
        logger.exception(
            "Handler encolado falló",
            extra={"handler": handler_name, "job_id": job_id},
        )
        raise

    finally:
        logger.info(
            "Job de handler finalizado",
            extra={
                "handler": handler_name,
                "job_id": job_id,
                "status": status,
                "duration_seconds": round(time.perf_counter() - start, 3),
            },
        )
        clear_context()


__all__ = ["process_outbox_job", "process_event_handler_job"]
