"""
===============================================================================
TARJETA CRC — domain/actors.py (Actor Resolver)
===============================================================================

Responsabilidades:
    - Mapear identificadores de actor del caller a UUIDs canónicos.
    - Exponer los UUIDs centinela de actores no humanos.
    - Inferir el ActorType para publicaciones "simple" (sin descriptor).

Reglas:
    - UUID válido            -> se devuelve igual (normalizado).
    - Rol reconocido         -> UUID centinela fijo.
    - Cualquier otro string  -> centinela system + warning (fail-safe: publicar
                                 NUNCA falla por un actor desconocido).
    - Idempotente: resolve(resolve(x)) == resolve(x).

Colaboradores:
    - application.publisher
    - crosscutting.metrics.record_unknown_actor
===============================================================================
"""

from __future__ import annotations

import re
from typing import Final
from uuid import UUID

from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_unknown_actor
from .entities import ActorType

# Valores fijos: NO cambiar una vez desplegados (quedan persistidos en actor_id).
SYSTEM_ACTOR_UUID: Final[UUID] = UUID("00000000-0000-0000-0000-000000000000")
WEBHOOK_ACTOR_UUID: Final[UUID] = UUID("00000000-0000-0000-0000-000000000001")
CRON_ACTOR_UUID: Final[UUID] = UUID("00000000-0000-0000-0000-000000000002")
API_ACTOR_UUID: Final[UUID] = UUID("00000000-0000-0000-0000-000000000003")
ORGANIZATION_ACTOR_UUID: Final[UUID] = UUID("00000000-0000-0000-0000-000000000004")

SENTINEL_ACTORS: Final[dict[str, UUID]] = {
    "system": SYSTEM_ACTOR_UUID,
    "webhook": WEBHOOK_ACTOR_UUID,
    "cron": CRON_ACTOR_UUID,
    "api": API_ACTOR_UUID,
    "organization": ORGANIZATION_ACTOR_UUID,
}

_ROLE_ACTOR_TYPES: Final[dict[str, ActorType]] = {
    "system": ActorType.SYSTEM,
    "webhook": ActorType.WEBHOOK,
    "cron": ActorType.CRON,
    "api": ActorType.API,
    "organization": ActorType.SYSTEM,
}

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_uuid(value: str) -> bool:
    """True si el string tiene forma de UUID canónico (8-4-4-4-12)."""
    return bool(_UUID_RE.match(value))


def resolve_actor_id(actor_id: UUID | str) -> UUID:
    """Resuelve un actor a su UUID canónico (ver reglas del módulo)."""
    if isinstance(actor_id, UUID):
        return actor_id

    raw = actor_id if isinstance(actor_id, str) else str(actor_id)
    if is_uuid(raw):
        return UUID(raw)

    sentinel = SENTINEL_ACTORS.get(raw)
    if sentinel is not None:
        return sentinel

    logger.warning(
        "Actor desconocido mapeado a SYSTEM_ACTOR_UUID",
        extra={"actor": raw[:64]},
    )
    record_unknown_actor()
    return SYSTEM_ACTOR_UUID


def actor_type_for(actor_id: UUID | str) -> ActorType:
    """
    Infiere el tipo de actor a partir del identificador crudo.

    - UUID centinela     -> tipo del rol
    - UUID (de usuario)  -> USER
    - rol reconocido     -> su tipo ("organization" -> SYSTEM)
    - desconocido        -> SYSTEM (coherente con resolve_actor_id)
    """
    raw = str(actor_id)
    if isinstance(actor_id, UUID) or is_uuid(raw):
        as_uuid = actor_id if isinstance(actor_id, UUID) else UUID(raw)
        for role, sentinel in SENTINEL_ACTORS.items():
            if sentinel == as_uuid:
                return _ROLE_ACTOR_TYPES[role]
        return ActorType.USER
    return _ROLE_ACTOR_TYPES.get(raw, ActorType.SYSTEM)
