"""
===============================================================================
SERVICE: Outbox Worker (lado consumidor)
===============================================================================

Name:
    Outbox Worker

Qué hace (una corrida = run_once):
    1) Selecciona hasta `batch_size` filas con processed=false, más viejas
       primero (created_at ASC, event_id ASC).
    2) Para cada fila, en secuencia: dispatch a sus handlers.
    3) Éxito -> processed=true, processed_at=now().
       Falla -> retry_count+1, last_error=<resumen> ; la fila sigue pendiente.
    4) Siempre continúa con la fila siguiente.

Garantías:
    - run_once NUNCA levanta: errores del store o del dispatch se loguean.
    - Entrega at-least-once: si el proceso muere entre dispatch y el update,
      la fila se vuelve a entregar (los handlers deben ser idempotentes).
    - Corridas serializadas dentro del proceso (lock): poll programado y
      wake-ups no se pisan.

Reintentos:
    - max_retries == 0 -> reintento infinito (default).
    - max_retries > 0  -> techo: al llegarlo se loguea error, se cuenta en
      outbox_retry_exhausted_total y la fila deja de seleccionarse (queda
      processed=false para inspección / replay).

Fuera de alcance:
    - Varios workers en paralelo: no hay claim/lease de filas. Correr UNA
      réplica hasta agregar selección con lock de fila.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component: OutboxWorker
Responsibilities:
  - Ejecutar corridas acotadas del outbox
  - Registrar resultado por fila en el Event Store
  - Replay manual de un evento (volver a pendiente)
Collaborators:
  - domain.repositories.EventStore
  - application.dispatcher.EventDispatcher
  - crosscutting.metrics / crosscutting.tracing / context
===============================================================================
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Final
from uuid import UUID

from ..context import clear_event_context, set_event_context
from ..crosscutting.metrics import (
    observe_batch,
    record_event_outcome,
    record_poll_failure,
    record_retry_exhausted,
)
from ..crosscutting.tracing import span
from ..domain.entities import DomainEvent
from ..domain.repositories import EventStore
from .dispatcher import EventDispatcher

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE: Final[int] = 10


@dataclass(frozen=True)
class BatchResult:
    selected: int = 0
    processed: int = 0
    failed: int = 0
    duration_seconds: float = 0.0


class OutboxWorker:
    """Procesa el outbox en corridas acotadas."""

    def __init__(
        self,
        store: EventStore,
        dispatcher: EventDispatcher,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_retries: int = 0,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be greater than 0")
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._store = store
        self._dispatcher = dispatcher
        self._batch_size = batch_size
        self._max_retries = max_retries
        self._lock = threading.Lock()

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def run_once(self) -> BatchResult:
        """Una corrida del outbox. Nunca levanta."""
        with self._lock:
            start = time.perf_counter()
            with span("outbox.run_once", {"batch_size": self._batch_size}):
                result = self._run_batch(start)
            observe_batch(result.selected, result.duration_seconds)

        if result.selected:
            logger.info(
                "Corrida del outbox terminada",
                extra={
                    "selected": result.selected,
                    "processed": result.processed,
                    "failed": result.failed,
                    "duration_ms": round(result.duration_seconds * 1000, 2),
                },
            )
        return result

    def replay_event(self, event_id: UUID) -> bool:
        """
        Vuelve un evento a pendiente (processed=false, sin reintentos).

        La próxima corrida lo re-despacha: los handlers deben tolerar el
        duplicado.
        """
        found = self._store.reset_for_replay(event_id)
        if found:
            logger.info("Evento marcado para replay", extra={"event_id": str(event_id)})
        else:
            logger.warning(
                "Replay de evento inexistente", extra={"event_id": str(event_id)}
            )
        return found

    # -------------------------------------------------------------------------
    # Internos
    # -------------------------------------------------------------------------
    def _run_batch(self, start: float) -> BatchResult:
        try:
            events = self._store.fetch_unprocessed(
                limit=self._batch_size, max_retries=self._max_retries
            )
        except Exception:
            record_poll_failure()
            logger.exception("No se pudieron seleccionar eventos pendientes")
            return BatchResult(duration_seconds=time.perf_counter() - start)

        processed = 0
        failed = 0
        for event in events:
            set_event_context(event_id=str(event.event_id), event_type=event.type)
            try:
                if self._process_event(event):
                    processed += 1
                else:
                    failed += 1
            finally:
                clear_event_context()

        return BatchResult(
            selected=len(events),
            processed=processed,
            failed=failed,
            duration_seconds=time.perf_counter() - start,
        )

    def _process_event(self, event: DomainEvent) -> bool:
        try:
            dispatch = self._dispatcher.dispatch(event)
            error = None if dispatch.ok else dispatch.error_summary()
        except Exception as exc:
            logger.exception("Dispatch falló inesperadamente")
            error = f"dispatcher: {type(exc).__name__}: {exc}"

        if error is None:
            return self._mark_processed(event)

        self._mark_failed(event, error)
        return False

    def _mark_processed(self, event: DomainEvent) -> bool:
        try:
            self._store.mark_processed(event.event_id)
        except Exception:
            # La fila queda pendiente y se re-entrega (at-least-once).
            logger.exception("No se pudo marcar el evento como procesado")
            record_event_outcome("failed")
            return False
        record_event_outcome("processed")
        return True

    def _mark_failed(self, event: DomainEvent, error: str) -> None:
        record_event_outcome("failed")
        try:
            retry_count = self._store.mark_failed(event.event_id, error)
        except Exception:
            logger.exception("No se pudo registrar la falla del evento")
            return

        logger.warning(
            "Evento con handlers fallidos; queda pendiente",
            extra={"retry_count": retry_count},
        )
        if self._max_retries > 0 and retry_count >= self._max_retries:
            record_retry_exhausted()
            logger.error(
                "Evento alcanzó el máximo de reintentos; no se volverá a seleccionar",
                extra={"retry_count": retry_count, "max_retries": self._max_retries},
            )
