"""
===============================================================================
TARJETA CRC — worker/worker.py (Entrypoint del proceso Outbox Worker)
===============================================================================

Responsabilidades:
  - Inicializar recursos del proceso: pool de BD (+ Redis si hay REDIS_URL).
  - Armar el registry de handlers (boot) y congelarlo.
  - Correr el poller programado (respaldo de corrección).
  - Consumir wake-ups y handlers encolados con un RQ SimpleWorker en el
    mismo proceso (sin fork: comparte registry y pool).
  - Exponer HTTP liviano de health/ready/metrics.
  - Apagar todo de forma ordenada.

Uso:
    python -m outbox.worker.worker

Colaboradores:
  - crosscutting.config.get_settings
  - infrastructure.db.pool.init_pool / close_pool
  - container (registry, worker, redis)
  - application.poller.OutboxPoller
  - worker_server.start_worker_http_server
  - rq.SimpleWorker / rq.Queue

Restricciones:
  - UNA réplica: no hay claim/lease de filas entre procesos.
===============================================================================
"""

from __future__ import annotations

from rq import Queue, SimpleWorker

from ..application.poller import OutboxPoller
from ..container import build_handler_registry, get_outbox_worker, get_redis
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.tracing import is_tracing_enabled
from ..infrastructure.db.pool import close_pool, init_pool
from .worker_server import start_worker_http_server


def main() -> None:
    settings = get_settings()

    # Pool DB (fail-fast si no inicializa).
    init_pool(
        database_url=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        statement_timeout_ms=settings.db_statement_timeout_ms,
        application_name="outbox-worker",
    )

    redis_conn = get_redis()
    if redis_conn is not None:
        try:
            redis_conn.ping()
        except Exception as exc:
            logger.error("Redis no disponible para worker", extra={"error": str(exc)})
            close_pool()
            raise SystemExit("Redis no disponible.")

    registry = build_handler_registry()
    poller = OutboxPoller(
        get_outbox_worker(), interval_seconds=settings.outbox_poll_interval_seconds
    )

    server = None
    try:
        poller.start()
        server = start_worker_http_server(settings.worker_http_port, poller=poller)

        logger.info(
            "Outbox worker arrancando",
            extra={
                "queue": settings.outbox_queue_name,
                "http_port": settings.worker_http_port,
                "redis_configured": redis_conn is not None,
                "batch_size": settings.outbox_batch_size,
                "poll_interval_seconds": settings.outbox_poll_interval_seconds,
                "max_retries": settings.outbox_max_retries,
                "handlers": len(registry),
                "tracing": is_tracing_enabled(),
            },
        )

        if redis_conn is not None:
            queue = Queue(name=settings.outbox_queue_name, connection=redis_conn)
            rq_worker = SimpleWorker([queue], connection=redis_conn)
            rq_worker.work(with_scheduler=False)
        else:
            # Solo poller: bloquea hasta señal.
            poller.join()

    except KeyboardInterrupt:
        logger.info("Worker detenido por señal (KeyboardInterrupt)")
    finally:
        poller.stop()
        if server is not None:
            server.shutdown()
            server.server_close()
        close_pool()
        logger.info("Outbox worker apagado")


if __name__ == "__main__":
    main()
