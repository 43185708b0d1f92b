"""
===============================================================================
SERVICE: Event Publisher (outbox - lado productor)
===============================================================================

Name:
    Event Publisher

Qué es:
    Punto único para registrar eventos de dominio en el Event Store.

Dos contratos:
    - publish_event_tx(tx, descriptor) -> UUID
        Inserta con la conexión/transacción ABIERTA del caller. El evento
        existe sí y solo sí la transacción del caller commitea. Cualquier
        error (validación o insert) se propaga: el caller debe abortar.
    - publish_simple_event(type, actor_id, organization_id, payload)
        Conexión propia, autocommit. Nunca levanta: loguea, cuenta en
        outbox_publish_failures_total{mode="simple"} y sigue. Si el insert
        salió bien, despierta al worker (best-effort).

Why:
    - Outbox pattern: el evento y el cambio de negocio comparten destino.
    - Un log de auditoría/notificación no debe tumbar el flujo principal
      (por eso el modo "simple" traga errores, pero quedan medidos).

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component: EventPublisher
Responsibilities:
  - Validar descriptor (schemas.parse_descriptor)
  - Resolver actor a UUID canónico (domain.actors)
  - Construir metadata estándar {source, environment, ip?, userAgent?, requestId?}
  - Insertar en el Event Store (tx del caller o autocommit)
  - Disparar el wake-up bridge (advisory)
Collaborators:
  - domain.repositories.EventStore
  - domain.services.OutboxWakeUp
  - crosscutting.metrics / crosscutting.exceptions
===============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping
from uuid import UUID, uuid4

from ..context import request_id_var
from ..crosscutting.exceptions import EventValidationError, PublishError
from ..crosscutting.metrics import record_event_published, record_publish_failure
from ..domain.actors import actor_type_for, resolve_actor_id
from ..domain.entities import ActorType, DomainEvent
from ..domain.event_types import EventType, event_type_value, is_valid_event_type
from ..domain.repositories import EventStore
from ..domain.services import NoopWakeUp, OutboxWakeUp
from .schemas import EventDescriptor, EventMetadata, parse_descriptor

logger = logging.getLogger(__name__)

DEFAULT_EVENT_SOURCE = "system"
SIMPLE_EVENT_SOURCE = "simple-event"


def create_event_metadata(
    source: str,
    *,
    environment: str,
    ip: str | None = None,
    user_agent: str | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Metadata estándar de un evento.

    requestId cae al contexto del request en curso (request_id_var) si no
    se pasa explícito. Las claves opcionales vacías se omiten.
    """
    return EventMetadata(
        source=source,
        environment=environment,
        ip=ip or None,
        user_agent=user_agent or None,
        request_id=request_id or request_id_var.get() or None,
    ).to_json()


class EventPublisher:
    """Publica eventos de dominio en el outbox."""

    def __init__(
        self,
        store: EventStore,
        *,
        wakeup: OutboxWakeUp | None = None,
        environment: str = "development",
    ) -> None:
        self._store = store
        self._wakeup = wakeup or NoopWakeUp()
        self._environment = environment

    def create_event_metadata(
        self,
        source: str,
        *,
        ip: str | None = None,
        user_agent: str | None = None,
        request_id: str | None = None,
    ) -> dict[str, Any]:
        return create_event_metadata(
            source,
            environment=self._environment,
            ip=ip,
            user_agent=user_agent,
            request_id=request_id,
        )

    # -------------------------------------------------------------------------
    # Transaccional
    # -------------------------------------------------------------------------
    def publish_event_tx(
        self, tx: Any, descriptor: EventDescriptor | Mapping[str, Any]
    ) -> UUID:
        """
        Inserta el evento dentro de la transacción `tx` del caller.

        No commitea ni despierta al worker: el caller decide el commit y, si
        quiere latencia baja, llama wake_worker() después de commitear.

        Raises:
            EventValidationError: descriptor inválido (nada se insertó).
            PublishError: falló el insert (la tx del caller debe abortar).
        """
        if tx is None:
            raise EventValidationError(
                "publish_event_tx requiere la transacción abierta del caller"
            )

        if not isinstance(descriptor, EventDescriptor):
            descriptor = {
                **descriptor,
                "metadata": self._merge_metadata(
                    descriptor.get("metadata"), DEFAULT_EVENT_SOURCE
                ),
            }
        parsed = parse_descriptor(descriptor)
        event = self._build_event(
            event_type=parsed.type,
            event_version=parsed.version,
            actor_id=parsed.actor_id,
            actor_type=parsed.actor_type,
            organization_id=parsed.organization_id,
            payload=parsed.payload,
            metadata=(
                parsed.metadata.to_json()
                if parsed.metadata is not None
                else self.create_event_metadata(DEFAULT_EVENT_SOURCE)
            ),
        )

        try:
            self._store.insert(event, conn=tx)
        except Exception as exc:
            record_publish_failure("tx")
            logger.error(
                "Fallo al insertar evento en la transacción del caller",
                extra={"event_type": event.type, "error_type": type(exc).__name__},
            )
            raise PublishError(
                f"No se pudo publicar el evento {event.type}", original_error=exc
            ) from exc

        record_event_published("tx")
        logger.info(
            "Evento publicado (tx)",
            extra={"event_id": str(event.event_id), "event_type": event.type},
        )
        return event.event_id

    # -------------------------------------------------------------------------
    # Fire-and-forget
    # -------------------------------------------------------------------------
    def publish_simple_event(
        self,
        event_type: EventType | str,
        actor_id: UUID | str,
        organization_id: UUID | str | None,
        payload: Mapping[str, Any] | None = None,
        *,
        actor_type: ActorType | str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> UUID | None:
        """
        Publica fuera de cualquier transacción. Nunca levanta.

        Devuelve el event_id, o None si la publicación falló (ya logueada).
        """
        try:
            type_value = event_type_value(event_type)
            body = dict(payload or {})
            body.setdefault("timestamp", datetime.now(timezone.utc).isoformat())

            parsed = parse_descriptor(
                {
                    "type": type_value,
                    "actor_id": actor_id,
                    "actor_type": self._simple_actor_type(actor_id, actor_type),
                    "organization_id": organization_id,
                    "payload": body,
                    "metadata": self._merge_metadata(metadata, SIMPLE_EVENT_SOURCE),
                }
            )
            event = self._build_event(
                event_type=parsed.type,
                event_version=parsed.version,
                actor_id=parsed.actor_id,
                actor_type=parsed.actor_type,
                organization_id=parsed.organization_id,
                payload=parsed.payload,
                metadata=parsed.metadata.to_json() if parsed.metadata else {},
            )
            self._store.insert(event)
        except Exception as exc:
            record_publish_failure("simple")
            logger.error(
                "Fallo al publicar evento simple (se ignora)",
                extra={"event_type": str(event_type), "error_type": type(exc).__name__},
                exc_info=True,
            )
            return None

        record_event_published("simple")
        logger.info(
            "Evento publicado (simple)",
            extra={"event_id": str(event.event_id), "event_type": event.type},
        )
        self.wake_worker()
        return event.event_id

    # -------------------------------------------------------------------------
    # Wake-up bridge
    # -------------------------------------------------------------------------
    def wake_worker(self) -> bool:
        """Nudge best-effort al worker. Nunca levanta."""
        try:
            return bool(self._wakeup.trigger())
        except Exception as exc:
            logger.warning(
                "No se pudo despertar al worker; el poll programado lo cubre",
                extra={"error_type": type(exc).__name__},
            )
            return False

    # -------------------------------------------------------------------------
    # Internos
    # -------------------------------------------------------------------------
    @staticmethod
    def _simple_actor_type(
        actor_id: UUID | str, actor_type: ActorType | str | None
    ) -> ActorType:
        if actor_type is None:
            return actor_type_for(actor_id)
        try:
            return ActorType(actor_type)
        except ValueError:
            inferred = actor_type_for(actor_id)
            logger.warning(
                "actor_type desconocido; se infiere desde actor_id",
                extra={"actor_type": str(actor_type), "inferred": inferred.value},
            )
            return inferred

    def _merge_metadata(
        self, metadata: Mapping[str, Any] | EventMetadata | None, source: str
    ) -> dict[str, Any]:
        """Metadata por defecto + lo que mande el caller (el caller gana)."""
        merged = self.create_event_metadata(source)
        if isinstance(metadata, EventMetadata):
            merged.update(metadata.to_json())
        elif metadata:
            merged.update(metadata)
        return merged

    def _build_event(
        self,
        *,
        event_type: str,
        event_version: str,
        actor_id: UUID | str,
        actor_type: ActorType,
        organization_id: UUID | None,
        payload: dict[str, Any],
        metadata: dict[str, Any],
    ) -> DomainEvent:
        if not is_valid_event_type(event_type):
            logger.warning(
                "Tipo de evento fuera de la taxonomía conocida",
                extra={"event_type": event_type},
            )
        return DomainEvent(
            event_id=uuid4(),
            type=event_type,
            event_version=event_version,
            actor_id=resolve_actor_id(actor_id),
            actor_type=actor_type,
            organization_id=organization_id,
            payload=payload,
            metadata=metadata,
        )
