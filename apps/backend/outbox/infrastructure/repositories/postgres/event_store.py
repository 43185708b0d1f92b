"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/event_store.py
============================================================
Class: PostgresEventStore

Responsibilities:
  - Persistir eventos de dominio en la tabla `events` (outbox durable).
  - Insertar dentro de la transacción del caller (conn=...) sin commitear.
  - Seleccionar pendientes en orden estable (created_at ASC, event_id ASC).
  - Registrar el resultado por fila (processed / retry_count + last_error).
  - Replay (volver a pendiente) y timeline (created_at DESC, paginado).

Collaborators:
  - domain.entities.DomainEvent / EventTimelineQuery
  - psycopg_pool.ConnectionPool (vía infrastructure.db.pool)
  - psycopg.types.json.Json (payload / metadata JSON)
  - crosscutting.exceptions.DatabaseError

Constraints / Notes:
  - Queries SIEMPRE parametrizadas.
  - Las filas nunca se borran: solo mutan columnas de procesamiento.
  - created_at = now() del servidor: dentro de una misma transacción todas
    las filas comparten timestamp, por eso event_id desempata el orden.
============================================================
"""

from __future__ import annotations

from typing import Any, Iterable
from uuid import UUID

from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....domain.entities import (
    LAST_ERROR_MAX_CHARS,
    ActorType,
    DomainEvent,
    EventTimelineQuery,
    truncate_error,
)

_COLUMNS = """
    event_id, type, event_version, actor_id, actor_type, organization_id,
    payload, metadata, processed, processed_at, retry_count, last_error, created_at
"""


def _row_to_event(row: tuple) -> DomainEvent:
    (
        event_id,
        event_type,
        event_version,
        actor_id,
        actor_type,
        organization_id,
        payload,
        metadata,
        processed,
        processed_at,
        retry_count,
        last_error,
        created_at,
    ) = row
    return DomainEvent(
        event_id=event_id,
        type=event_type,
        event_version=event_version,
        actor_id=actor_id,
        actor_type=ActorType(actor_type),
        organization_id=organization_id,
        payload=payload or {},
        metadata=metadata or {},
        processed=bool(processed),
        processed_at=processed_at,
        retry_count=int(retry_count or 0),
        last_error=last_error,
        created_at=created_at,
    )


class PostgresEventStore:
    """Event Store sobre PostgreSQL (tabla events)."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool

        from ...db.pool import get_pool

        return get_pool()

    # ------------------------------------------------------------
    # Helpers internos
    # ------------------------------------------------------------
    def _fetchall(
        self,
        *,
        query: str,
        params: Iterable[object],
        error_message: str,
        extra: dict[str, object],
    ) -> list[tuple]:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            logger.exception(error_message, extra={**extra, "error": str(exc)})
            raise DatabaseError(f"{error_message}: {exc}") from exc

    def _fetchone(
        self,
        *,
        query: str,
        params: Iterable[object],
        error_message: str,
        extra: dict[str, object],
    ) -> tuple | None:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchone()
        except Exception as exc:
            logger.exception(error_message, extra={**extra, "error": str(exc)})
            raise DatabaseError(f"{error_message}: {exc}") from exc

    # ------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------
    def insert(self, event: DomainEvent, *, conn: Any = None) -> None:
        """
        Inserta un evento nuevo (processed=false, retry_count=0).

        Con `conn`: usa la transacción del caller y NO commitea (si el caller
        hace rollback, el evento desaparece con sus cambios de negocio).
        Sin `conn`: conexión propia del pool, commit al salir.
        """
        query = """
            INSERT INTO events (
                event_id, type, event_version, actor_id, actor_type,
                organization_id, payload, metadata
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        """
        params = (
            event.event_id,
            event.type,
            event.event_version,
            event.actor_id,
            event.actor_type.value,
            event.organization_id,
            Json(event.payload or {}),
            Json(event.metadata or {}),
        )

        try:
            if conn is not None:
                conn.execute(query, params)
                return
            with self._get_pool().connection() as own_conn:
                own_conn.execute(query, params)
        except Exception as exc:
            logger.exception(
                "PostgresEventStore: Failed to insert event",
                extra={
                    "event_id": str(event.event_id),
                    "event_type": event.type,
                    "in_caller_tx": conn is not None,
                    "error": str(exc),
                },
            )
            raise DatabaseError(f"Failed to insert event: {exc}") from exc

    def mark_processed(self, event_id: UUID) -> None:
        self._fetchone(
            query="""
                UPDATE events
                SET processed = true, processed_at = now()
                WHERE event_id = %s
                RETURNING event_id
            """,
            params=[event_id],
            error_message="PostgresEventStore: Failed to mark event processed",
            extra={"event_id": str(event_id)},
        )

    def mark_failed(self, event_id: UUID, error: str) -> int:
        row = self._fetchone(
            query="""
                UPDATE events
                SET retry_count = retry_count + 1, last_error = %s
                WHERE event_id = %s
                RETURNING retry_count
            """,
            params=[truncate_error(error), event_id],
            error_message="PostgresEventStore: Failed to mark event failed",
            extra={"event_id": str(event_id)},
        )
        return int(row[0]) if row else 0

    def reset_for_replay(self, event_id: UUID) -> bool:
        row = self._fetchone(
            query="""
                UPDATE events
                SET processed = false, processed_at = NULL,
                    retry_count = 0, last_error = NULL
                WHERE event_id = %s
                RETURNING event_id
            """,
            params=[event_id],
            error_message="PostgresEventStore: Failed to reset event for replay",
            extra={"event_id": str(event_id)},
        )
        return row is not None

    # ------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------
    def fetch_unprocessed(
        self, *, limit: int, max_retries: int = 0
    ) -> list[DomainEvent]:
        if limit <= 0:
            return []

        conditions = ["processed = false"]
        params: list[object] = []
        if max_retries > 0:
            conditions.append("retry_count < %s")
            params.append(max_retries)

        rows = self._fetchall(
            query=f"""
                SELECT {_COLUMNS}
                FROM events
                WHERE {' AND '.join(conditions)}
                ORDER BY created_at ASC, event_id ASC
                LIMIT %s
            """,
            params=[*params, limit],
            error_message="PostgresEventStore: Failed to fetch unprocessed events",
            extra={"limit": limit, "max_retries": max_retries},
        )
        return [_row_to_event(row) for row in rows]

    def get_event(self, event_id: UUID) -> DomainEvent | None:
        row = self._fetchone(
            query=f"SELECT {_COLUMNS} FROM events WHERE event_id = %s",
            params=[event_id],
            error_message="PostgresEventStore: Failed to get event",
            extra={"event_id": str(event_id)},
        )
        return _row_to_event(row) if row else None

    def list_events(self, query: EventTimelineQuery) -> list[DomainEvent]:
        """
        Timeline: más nuevos primero, filtros opcionales combinados con AND.
        """
        if query.limit <= 0:
            return []

        conditions: list[str] = []
        params: list[object] = []

        if query.actor_id is not None:
            conditions.append("actor_id = %s")
            params.append(query.actor_id)
        if query.actor_type is not None:
            conditions.append("actor_type = %s")
            params.append(query.actor_type.value)
        if query.organization_id is not None:
            conditions.append("organization_id = %s")
            params.append(query.organization_id)
        if query.event_types:
            conditions.append("type = ANY(%s)")
            params.append(list(query.event_types))

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        rows = self._fetchall(
            query=f"""
                SELECT {_COLUMNS}
                FROM events
                {where_clause}
                ORDER BY created_at DESC, event_id DESC
                LIMIT %s OFFSET %s
            """,
            params=[*params, query.limit, max(query.offset, 0)],
            error_message="PostgresEventStore: Failed to list events",
            extra={
                "actor_type": query.actor_type.value if query.actor_type else None,
                "event_types": len(query.event_types),
                "limit": query.limit,
                "offset": query.offset,
            },
        )
        return [_row_to_event(row) for row in rows]
