"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Rutas y Constantes de Jobs del outbox

Responsabilidades:
    - Centralizar nombre de cola, rutas importables de jobs y claves Redis.

Colaboradores:
    - rq_queue.RQOutboxWakeUp / RQHandlerJobQueue
    - worker.jobs (process_outbox_job / process_event_handler_job)

Notas:
    - Si se mueve un job, se actualiza acá; los adapters validan el path al boot.
===============================================================================
"""

from __future__ import annotations

OUTBOX_QUEUE_NAME: str = "outbox"

# Una corrida del outbox worker (disparada por wake-up).
PROCESS_OUTBOX_JOB_PATH: str = "outbox.worker.jobs.process_outbox_job"

# Un handler registrado con should_queue=True para un evento.
PROCESS_EVENT_HANDLER_JOB_PATH: str = "outbox.worker.jobs.process_event_handler_job"

# Clave de coalescing: mientras exista, los wake-ups se colapsan en uno.
WAKEUP_COALESCE_KEY: str = "outbox:wakeup:pending"
