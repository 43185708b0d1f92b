"""
============================================================
TARJETA CRC
============================================================
Package: outbox.infrastructure.repositories

Responsibilities:
- Exponer las implementaciones del Event Store (Postgres e InMemory)
  en un único punto de importación.

Collaborators:
- PostgresEventStore (producción, SQL crudo)
- InMemoryEventStore (tests / desarrollo sin DB)
============================================================
"""

from .in_memory import InMemoryEventStore, InMemoryTransaction
from .postgres import LAST_ERROR_MAX_CHARS, PostgresEventStore

__all__ = [
    "PostgresEventStore",
    "InMemoryEventStore",
    "InMemoryTransaction",
    "LAST_ERROR_MAX_CHARS",
]
