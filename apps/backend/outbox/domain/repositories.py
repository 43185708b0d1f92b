"""
CRC — domain/repositories.py

Name
- Event Store Interface (Protocol)

Responsibilities
- Define the persistence contract of the outbox (port).
- Keep publisher/worker independent from PostgreSQL or in-memory storage.
- Enable dependency inversion and straightforward unit testing.

Collaborators
- domain.entities: DomainEvent, EventTimelineQuery
- infrastructure.repositories: PostgresEventStore, InMemoryEventStore

Constraints
- Pure interface only: no side effects, no infrastructure imports, no SQL.
- Rows are never deleted; only the processing columns are updated.

Notes
- `conn` in insert() is the caller's open transaction/connection. When given,
  the store MUST NOT commit: the caller's transaction decides.
"""

from typing import Any, List, Optional, Protocol
from uuid import UUID

from .entities import DomainEvent, EventTimelineQuery


class EventStore(Protocol):
    """
    R: Interface for the durable outbox table.

    Implementations must provide:
      - Transaction-bound and autocommitted inserts
      - Oldest-first selection of unprocessed rows
      - Per-row outcome bookkeeping (processed / retry)
      - Replay (reset to unprocessed) and timeline reads
    """

    def insert(self, event: DomainEvent, *, conn: Any = None) -> None:
        """R: Persist a new event row (processed=false, retry_count=0)."""
        ...

    def fetch_unprocessed(
        self, *, limit: int, max_retries: int = 0
    ) -> List[DomainEvent]:
        """
        R: Oldest-first (created_at ASC) rows with processed=false.

        max_retries > 0 excludes rows whose retry_count reached the ceiling.
        """
        ...

    def mark_processed(self, event_id: UUID) -> None:
        """R: Set processed=true, processed_at=now."""
        ...

    def mark_failed(self, event_id: UUID, error: str) -> int:
        """R: Increment retry_count, set last_error. Returns new retry_count."""
        ...

    def reset_for_replay(self, event_id: UUID) -> bool:
        """R: Set processed=false and clear retry bookkeeping. False if missing."""
        ...

    def get_event(self, event_id: UUID) -> Optional[DomainEvent]:
        """R: Fetch one event by id."""
        ...

    def list_events(self, query: EventTimelineQuery) -> List[DomainEvent]:
        """R: Timeline listing (created_at DESC) with optional filters."""
        ...
