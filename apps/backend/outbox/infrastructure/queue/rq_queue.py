"""
===============================================================================
ARCHIVO: infrastructure/queue/rq_queue.py
===============================================================================

CRC CARD (Clases)
-------------------------------------------------------------------------------
Clases:
    RQOutboxWakeUp (Adapter de OutboxWakeUp)
    RQHandlerJobQueue (Adapter de HandlerJobQueue)

Responsabilidades:
    - Wake-up bridge: encolar una corrida del outbox worker al publicar,
      colapsando ráfagas con una clave Redis (SET NX EX).
    - Encolar handlers marcados should_queue como jobs independientes, con
      reintentos de RQ y job_id estable por (evento, handler).
    - Validar configuración y job paths en modo fail-fast.

Colaboradores:
    - domain.services.OutboxWakeUp / HandlerJobQueue
    - job_paths (rutas y clave de coalescing)
    - import_utils.require_importable
    - errors.QueueConfigurationError / QueueEnqueueError
    - crosscutting.logger / crosscutting.metrics

Notas:
    - El wake-up es un "hint": si se pierde, el poll programado lo cubre.
    - rq se importa lazy: el publisher puede vivir sin Redis (NoopWakeUp).
===============================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from ...crosscutting.logger import logger
from ...crosscutting.metrics import record_handler_queued, record_wakeup
from ...domain.entities import DomainEvent
from .errors import QueueConfigurationError, QueueEnqueueError
from .import_utils import require_importable
from .job_paths import (
    OUTBOX_QUEUE_NAME,
    PROCESS_EVENT_HANDLER_JOB_PATH,
    PROCESS_OUTBOX_JOB_PATH,
    WAKEUP_COALESCE_KEY,
)

_JOB_ID_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


@dataclass(frozen=True)
class RQQueueConfig:
    """Configuración común de los adapters RQ.

    queue_name:
        Cola Redis que consume el worker del outbox.
    retry_max_attempts:
        Reintentos de RQ para jobs de handlers (0 = sin retry).
    job_timeout_seconds:
        Timeout de ejecución de cada job.
    result_ttl_seconds:
        TTL del resultado (0 = no guardar).
    """

    queue_name: str = OUTBOX_QUEUE_NAME
    retry_max_attempts: int = 3
    job_timeout_seconds: int = 300
    result_ttl_seconds: int = 0


def handler_job_id(event: DomainEvent, handler_name: str) -> str:
    """job_id estable por (evento, handler); RQ solo acepta [A-Za-z0-9_-]."""
    return f"{event.event_id}-{_JOB_ID_UNSAFE.sub('_', handler_name)}"


class RQOutboxWakeUp:
    """Nudge al outbox worker vía RQ (coalescido)."""

    def __init__(
        self, *, redis: Any, config: RQQueueConfig, coalesce_seconds: int = 1
    ) -> None:
        self._redis = redis
        self._config = _validate_config(config)
        self._coalesce_seconds = max(int(coalesce_seconds), 0)
        self._job_path = require_importable(PROCESS_OUTBOX_JOB_PATH)

        rq = _lazy_import_rq()
        self._queue = rq.Queue(name=self._config.queue_name, connection=redis)

        logger.info(
            "Wake-up RQ inicializado",
            extra={
                "queue": self._config.queue_name,
                "coalesce_seconds": self._coalesce_seconds,
            },
        )

    def trigger(self) -> bool:
        """Encola una corrida. False si otra ya está pendiente en la ventana."""
        try:
            if self._coalesce_seconds > 0:
                acquired = self._redis.set(
                    WAKEUP_COALESCE_KEY, "1", nx=True, ex=self._coalesce_seconds
                )
                if not acquired:
                    record_wakeup("coalesced")
                    return False

            self._queue.enqueue(
                self._job_path,
                job_timeout=self._config.job_timeout_seconds,
                result_ttl=self._config.result_ttl_seconds,
                description="process_outbox:wakeup",
            )
        except Exception as exc:
            record_wakeup("failed")
            raise QueueEnqueueError(
                "No se pudo encolar el wake-up del outbox", original_error=exc
            ) from exc

        record_wakeup("sent")
        return True


class RQHandlerJobQueue:
    """Ejecución diferida de handlers should_queue."""

    def __init__(self, *, redis: Any, config: RQQueueConfig) -> None:
        self._redis = redis
        self._config = _validate_config(config)
        self._job_path = require_importable(PROCESS_EVENT_HANDLER_JOB_PATH)

        rq = _lazy_import_rq()
        self._queue = rq.Queue(name=self._config.queue_name, connection=redis)
        self._retry = (
            rq.Retry(max=self._config.retry_max_attempts)
            if self._config.retry_max_attempts > 0
            else None
        )

        logger.info(
            "Cola de handlers RQ inicializada",
            extra={
                "queue": self._config.queue_name,
                "retry_max_attempts": self._config.retry_max_attempts,
                "job_timeout_seconds": self._config.job_timeout_seconds,
            },
        )

    def enqueue_handler(self, handler_name: str, event: DomainEvent) -> str:
        """
        Encola un handler para un evento.

        En la cola viajan primitivos (event.to_job_payload()): nada de pickles
        de objetos de dominio.
        """
        job_id = handler_job_id(event, handler_name)
        try:
            job = self._queue.enqueue(
                self._job_path,
                args=(handler_name, event.to_job_payload()),
                job_id=job_id,
                retry=self._retry,
                job_timeout=self._config.job_timeout_seconds,
                result_ttl=self._config.result_ttl_seconds,
                description=f"event_handler:{event.type}:{handler_name}",
            )
        except Exception as exc:
            logger.exception(
                "Error al encolar handler",
                extra={
                    "event_id": str(event.event_id),
                    "event_type": event.type,
                    "handler": handler_name,
                    "queue": self._config.queue_name,
                },
            )
            raise QueueEnqueueError(
                f"No se pudo encolar el handler {handler_name}", original_error=exc
            ) from exc

        record_handler_queued()
        logger.info(
            "Handler encolado",
            extra={
                "event_id": str(event.event_id),
                "event_type": event.type,
                "handler": handler_name,
                "job_id": job_id,
            },
        )
        return str(getattr(job, "id", None) or job_id)


# -----------------------------------------------------------------------------
# Helpers privados (módulo)
# -----------------------------------------------------------------------------


def _validate_config(config: RQQueueConfig) -> RQQueueConfig:
    queue_name = (config.queue_name or "").strip() or OUTBOX_QUEUE_NAME
    retry_max_attempts = int(config.retry_max_attempts)
    job_timeout_seconds = int(config.job_timeout_seconds)
    result_ttl_seconds = int(config.result_ttl_seconds)

    if retry_max_attempts < 0:
        raise QueueConfigurationError("retry_max_attempts no puede ser negativo")
    if job_timeout_seconds <= 0:
        raise QueueConfigurationError("job_timeout_seconds debe ser > 0")
    if result_ttl_seconds < 0:
        raise QueueConfigurationError("result_ttl_seconds no puede ser negativo")

    return RQQueueConfig(
        queue_name=queue_name,
        retry_max_attempts=retry_max_attempts,
        job_timeout_seconds=job_timeout_seconds,
        result_ttl_seconds=result_ttl_seconds,
    )


def _lazy_import_rq():
    try:
        import rq
    except ImportError as exc:
        raise QueueConfigurationError(
            "RQ no está disponible. Instalar dependencia 'rq' para usar colas."
        ) from exc
    return rq
