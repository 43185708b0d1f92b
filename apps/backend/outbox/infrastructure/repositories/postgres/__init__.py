"""
PostgreSQL Event Store (raw SQL over psycopg).
"""

from .event_store import LAST_ERROR_MAX_CHARS, PostgresEventStore

__all__ = ["PostgresEventStore", "LAST_ERROR_MAX_CHARS"]
