"""
===============================================================================
TARJETA CRC — application/schemas.py
===============================================================================

Módulo:
    Contratos de entrada del publisher (descriptor + metadata + timeline)

Responsabilidades:
    - Validar el descriptor de un evento ANTES del insert (tipo, versión,
      actor_type cerrado, organization_id UUID, payload objeto JSON).
    - Modelar la metadata estándar {source, environment, ip?, userAgent?, requestId?}.
    - Validar filtros del timeline (limit 1..100, offset >= 0).
    - Traducir pydantic.ValidationError a EventValidationError.

Colaboradores:
    - domain.entities.ActorType / EventTimelineQuery
    - domain.event_types.EventType
    - crosscutting.exceptions.EventValidationError
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..crosscutting.exceptions import EventValidationError
from ..domain.entities import DEFAULT_EVENT_VERSION, ActorType, EventTimelineQuery
from ..domain.event_types import event_type_value

_SEMVER_PATTERN = r"^\d+\.\d+\.\d+$"


class EventMetadata(BaseModel):
    """Metadata estándar de un evento (claves camelCase en JSON)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    source: str = Field(..., min_length=1)
    environment: str = Field(..., min_length=1)
    ip: str | None = None
    user_agent: str | None = Field(default=None, alias="userAgent")
    request_id: str | None = Field(default=None, alias="requestId")

    def to_json(self) -> dict[str, Any]:
        """Dict listo para la columna metadata (sin claves vacías)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class EventDescriptor(BaseModel):
    """Descriptor de publicación transaccional."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(..., min_length=1)
    version: str = Field(default=DEFAULT_EVENT_VERSION, pattern=_SEMVER_PATTERN)
    actor_id: UUID | str
    actor_type: ActorType
    organization_id: UUID | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    metadata: EventMetadata | None = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        return event_type_value(v)

    @field_validator("actor_id", mode="before")
    @classmethod
    def actor_id_not_blank(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            raise ValueError("actor_id must not be blank")
        return v


class EventTimelineRequest(BaseModel):
    """Filtros del timeline (paginado, más nuevos primero)."""

    actor_id: UUID | None = None
    actor_type: ActorType | None = None
    organization_id: UUID | None = None
    event_types: list[str] = Field(default_factory=list)
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @field_validator("event_types", mode="before")
    @classmethod
    def normalize_event_types(cls, v: Any) -> Any:
        if v is None:
            return []
        return [event_type_value(t) if isinstance(t, str) else t for t in v]

    def to_query(self) -> EventTimelineQuery:
        return EventTimelineQuery(
            actor_id=self.actor_id,
            actor_type=self.actor_type,
            organization_id=self.organization_id,
            event_types=tuple(self.event_types),
            limit=self.limit,
            offset=self.offset,
        )


def parse_descriptor(data: EventDescriptor | Mapping[str, Any]) -> EventDescriptor:
    """Valida un descriptor (dict o modelo) y normaliza errores."""
    if isinstance(data, EventDescriptor):
        return data
    try:
        return EventDescriptor.model_validate(dict(data))
    except ValidationError as exc:
        raise EventValidationError(
            f"Descriptor de evento inválido: {exc.error_count()} error(es)",
            original_error=exc,
        ) from exc


def parse_timeline_request(data: Mapping[str, Any]) -> EventTimelineQuery:
    """Valida filtros del timeline y devuelve la query de dominio."""
    try:
        return EventTimelineRequest.model_validate(dict(data)).to_query()
    except ValidationError as exc:
        raise EventValidationError(
            f"Filtros de timeline inválidos: {exc.error_count()} error(es)",
            original_error=exc,
        ) from exc
