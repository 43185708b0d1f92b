"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool de conexiones PostgreSQL (singleton por proceso)

Responsabilidades:
  - Inicializar, exponer y cerrar el pool.
  - Configurar cada conexión nueva (statement_timeout, application_name).
  - Ofrecer `transaction()` para que el caller abra SU transacción y publique
    eventos dentro de ella (publish_event_tx con conn=...).

Colaboradores:
  - psycopg_pool.ConnectionPool
  - infrastructure/db/instrumentation.InstrumentedConnectionPool
  - container.get_event_store / worker.worker

Principios:
  - Fail-fast (doble init, uso sin init)
  - Un único pool global por proceso (web o worker)
===============================================================================
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError
from .instrumentation import InstrumentedConnectionPool, TimedConnection

_pool: Optional[InstrumentedConnectionPool] = None
_pool_lock = threading.Lock()


def _make_configure(statement_timeout_ms: int, application_name: str):
    def _configure_connection(conn) -> None:
        # Guardrail contra queries colgadas: el worker no debe bloquearse para siempre.
        if statement_timeout_ms > 0:
            conn.execute(f"SET statement_timeout = {int(statement_timeout_ms)}")
        conn.execute(
            "SELECT set_config('application_name', %s, false)", (application_name,)
        )
        conn.commit()

    return _configure_connection


def init_pool(
    database_url: str,
    min_size: int,
    max_size: int,
    *,
    statement_timeout_ms: int = 30000,
    application_name: str = "outbox",
) -> InstrumentedConnectionPool:
    """
    Inicializa el pool (una vez por proceso) y lo devuelve instrumentado.
    """
    global _pool

    with _pool_lock:
        if _pool is not None:
            raise PoolAlreadyInitializedError("El pool ya fue inicializado.")

        from psycopg_pool import ConnectionPool

        logger.info(
            "Inicializando pool DB",
            extra={
                "min_size": min_size,
                "max_size": max_size,
                "application_name": application_name,
            },
        )

        real_pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=_make_configure(statement_timeout_ms, application_name),
            open=True,
        )
        _pool = InstrumentedConnectionPool(real_pool)

        logger.info("Pool DB inicializado")
        return _pool


def get_pool() -> InstrumentedConnectionPool:
    """Retorna el pool instrumentado singleton."""
    if _pool is None:
        raise PoolNotInitializedError(
            "Pool no inicializado. Llamar init_pool() primero."
        )
    return _pool


def is_pool_initialized() -> bool:
    return _pool is not None


@contextmanager
def transaction(pool: InstrumentedConnectionPool | None = None) -> Iterator[TimedConnection]:
    """
    Abre una conexión + transacción del caller.

    Commit al salir sin error; rollback si el bloque levanta (y re-lanza).
    Los eventos publicados con `conn=` dentro del bloque comparten el destino
    de los cambios de negocio.
    """
    active = pool or get_pool()
    with active.connection() as conn:
        with conn.transaction():
            yield conn


def close_pool() -> None:
    """Cierra el pool (idempotente)."""
    global _pool

    with _pool_lock:
        if _pool is not None:
            logger.info("Cerrando pool DB")
            try:
                _pool.close()
            finally:
                _pool = None
            logger.info("Pool DB cerrado")


def reset_pool() -> None:
    """Reset para tests: cierra sin propagar errores de cierre."""
    global _pool

    with _pool_lock:
        if _pool is not None:
            try:
                _pool.close()
            except Exception as exc:
                logger.warning(
                    "Error cerrando pool en reset",
                    extra={"error_type": type(exc).__name__},
                )
        _pool = None
