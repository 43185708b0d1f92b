"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Modelo de Eventos de Dominio

Responsabilidades:
    - Definir el registro de evento (DomainEvent) tal como vive en el Event Store.
    - Definir el conjunto cerrado de tipos de actor (ActorType).
    - Mantener el contrato independiente de infraestructura (sin SQL, sin psycopg).

Colaboradores:
    - domain.repositories.EventStore: persiste y lee DomainEvent.
    - application.publisher: construye DomainEvent nuevos.
    - application.dispatcher: entrega DomainEvent hidratados a los handlers.

Invariantes:
    - Append-only: solo processed / processed_at / retry_count / last_error mutan.
    - event_id es único globalmente y nunca se reutiliza.
    - actor_id siempre es un UUID canónico (ver domain.actors).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

DEFAULT_EVENT_VERSION = "1.0.0"


class ActorType(str, Enum):
    """Tipos de actor soportados (conjunto cerrado)."""

    USER = "user"
    SYSTEM = "system"
    WEBHOOK = "webhook"
    CRON = "cron"
    API = "api"


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Fila del Event Store / evento entregado a los handlers."""

    event_id: UUID
    type: str
    actor_id: UUID
    actor_type: ActorType
    payload: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    event_version: str = DEFAULT_EVENT_VERSION
    organization_id: UUID | None = None
    processed: bool = False
    retry_count: int = 0
    last_error: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return not self.processed

    def as_processed(self, processed_at: datetime) -> "DomainEvent":
        return replace(self, processed=True, processed_at=processed_at)

    def as_failed(self, error: str) -> "DomainEvent":
        return replace(self, retry_count=self.retry_count + 1, last_error=error)

    def as_pending(self) -> "DomainEvent":
        return replace(
            self, processed=False, processed_at=None, retry_count=0, last_error=None
        )

    def to_job_payload(self) -> dict[str, Any]:
        """Serialización primitiva (strings) para jobs de RQ."""
        return {
            "event_id": str(self.event_id),
            "type": self.type,
            "event_version": self.event_version,
            "actor_id": str(self.actor_id),
            "actor_type": self.actor_type.value,
            "organization_id": str(self.organization_id)
            if self.organization_id
            else None,
            "payload": self.payload,
            "metadata": self.metadata,
            "retry_count": self.retry_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_job_payload(cls, data: dict[str, Any]) -> "DomainEvent":
        organization_id = data.get("organization_id")
        created_at = data.get("created_at")
        return cls(
            event_id=UUID(data["event_id"]),
            type=data["type"],
            event_version=data.get("event_version") or DEFAULT_EVENT_VERSION,
            actor_id=UUID(data["actor_id"]),
            actor_type=ActorType(data["actor_type"]),
            organization_id=UUID(organization_id) if organization_id else None,
            payload=data.get("payload") or {},
            metadata=data.get("metadata") or {},
            retry_count=int(data.get("retry_count") or 0),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )


@dataclass(frozen=True, slots=True)
class EventTimelineQuery:
    """Filtros del timeline de eventos (listado, más nuevos primero)."""

    actor_id: UUID | None = None
    actor_type: ActorType | None = None
    organization_id: UUID | None = None
    event_types: tuple[str, ...] = ()
    limit: int = 50
    offset: int = 0


LAST_ERROR_MAX_CHARS = 2000


def truncate_error(error: str) -> str:
    """Acota last_error (los stacktraces pueden ser enormes)."""
    return error[:LAST_ERROR_MAX_CHARS]
