"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Package)
-------------------------------------------------------------------------------
Nombre:
    infrastructure.queue

Responsabilidades:
    - Exponer los adapters RQ del outbox (wake-up + handlers encolados).
    - Exponer configuración y errores tipados.
===============================================================================
"""

from .errors import QueueConfigurationError, QueueEnqueueError, QueueError
from .rq_queue import (
    RQHandlerJobQueue,
    RQOutboxWakeUp,
    RQQueueConfig,
    handler_job_id,
)

__all__ = [
    "RQOutboxWakeUp",
    "RQHandlerJobQueue",
    "RQQueueConfig",
    "handler_job_id",
    "QueueError",
    "QueueConfigurationError",
    "QueueEnqueueError",
]
