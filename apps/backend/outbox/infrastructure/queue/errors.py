"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Errores Tipados de Cola

Responsabilidades:
    - Diferenciar "cola mal configurada" (boot) de "no se pudo encolar" (runtime).
    - Permitir que el publisher trague un wake-up fallido sin tragar bugs de config.

Colaboradores:
    - rq_queue.RQOutboxWakeUp / RQHandlerJobQueue
    - application.publisher (loguea y sigue)
    - application.dispatcher (cuenta el fallo como fallo del handler)
===============================================================================
"""

from __future__ import annotations


class QueueError(Exception):
    """Error base del subsistema de colas."""

    code: str = "QUEUE_ERROR"


class QueueConfigurationError(QueueError):
    """Cola mal configurada (job path no importable, timeouts inválidos)."""

    code = "QUEUE_CONFIGURATION_ERROR"


class QueueEnqueueError(QueueError):
    """Falló el enqueue del job (Redis caído, timeout de red)."""

    code = "QUEUE_ENQUEUE_ERROR"

    def __init__(
        self, message: str, *, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error
