"""
===============================================================================
SERVICE: Outbox Poller (disparo programado)
===============================================================================

Name:
    Outbox Poller

Qué hace:
    Corre OutboxWorker.run_once() cada `interval_seconds` (default 60s) en un
    thread daemon, hasta que se pide stop(). Es el respaldo de corrección:
    aunque se pierdan todos los wake-ups, ningún evento queda pendiente más de
    un intervalo (salvo fallas de handlers).

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component: OutboxPoller
Responsibilities:
  - Programar corridas a intervalo fijo
  - Parar limpio (threading.Event) sin esperar el intervalo completo
Collaborators:
  - application.outbox_worker.OutboxWorker
  - worker.worker (arranque/parada del proceso)
===============================================================================
"""

from __future__ import annotations

import logging
import threading

from .outbox_worker import OutboxWorker

logger = logging.getLogger(__name__)


class OutboxPoller:
    def __init__(
        self,
        worker: OutboxWorker,
        *,
        interval_seconds: float = 60.0,
        run_immediately: bool = True,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than 0")
        self._worker = worker
        self._interval = float(interval_seconds)
        self._run_immediately = run_immediately
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._runs = 0

    @property
    def runs(self) -> int:
        return self._runs

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_forever, name="outbox-poller", daemon=True
        )
        self._thread.start()
        logger.info(
            "Poller del outbox iniciado",
            extra={"interval_seconds": self._interval},
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("Poller del outbox detenido", extra={"runs": self._runs})

    def join(self, timeout: float | None = None) -> None:
        """Bloquea hasta que el thread del poller termine."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)

    def run_forever(self) -> None:
        """Loop bloqueante (también usable sin thread)."""
        if not self._run_immediately and self._stop.wait(self._interval):
            return
        while not self._stop.is_set():
            self.tick()
            if self._stop.wait(self._interval):
                break

    def tick(self) -> None:
        # run_once no levanta; el guard cubre bugs inesperados del worker.
        try:
            self._worker.run_once()
        except Exception:
            logger.exception("Corrida del outbox levantó una excepción inesperada")
        finally:
            self._runs += 1
