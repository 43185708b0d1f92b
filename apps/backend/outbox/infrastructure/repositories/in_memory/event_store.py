# =============================================================================
# FILE: infrastructure/repositories/in_memory/event_store.py
# =============================================================================
"""
In-Memory Event Store for testing and development.

NOT FOR PRODUCTION USE - data is lost on restart and nothing is shared
between processes (the worker will not see events published elsewhere).

Transactions are emulated with `transaction()`: inserts made with
`conn=<tx>` are staged and only become visible when the block exits cleanly.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional
from uuid import UUID

from ....domain.entities import DomainEvent, EventTimelineQuery, truncate_error


class InMemoryTransaction:
    """Staging area for inserts done inside `InMemoryEventStore.transaction()`."""

    def __init__(self) -> None:
        self.staged: List[DomainEvent] = []
        self.closed = False

    def stage(self, event: DomainEvent) -> None:
        if self.closed:
            raise RuntimeError("Transaction already finished")
        self.staged.append(event)


class InMemoryEventStore:
    """
    In-memory implementation of EventStore.

    Useful for:
      - Unit testing publisher / worker semantics
      - Local development without database
    """

    def __init__(self) -> None:
        self._events: Dict[UUID, DomainEvent] = {}
        self._lock = threading.Lock()
        self._last_created_at: Optional[datetime] = None

    def _next_created_at(self) -> datetime:
        # Monotonic so insertion order == created_at order.
        now = datetime.now(timezone.utc)
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now

    def _store(self, event: DomainEvent) -> None:
        if event.event_id in self._events:
            raise ValueError(f"Duplicate event_id {event.event_id}")
        self._events[event.event_id] = replace(
            event,
            processed=False,
            processed_at=None,
            retry_count=0,
            last_error=None,
            created_at=self._next_created_at(),
        )

    @contextmanager
    def transaction(self) -> Iterator[InMemoryTransaction]:
        """Commit staged inserts on clean exit; discard them if the block raises."""
        tx = InMemoryTransaction()
        try:
            yield tx
        except BaseException:
            tx.closed = True
            raise
        tx.closed = True
        with self._lock:
            for event in tx.staged:
                self._store(event)

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------
    def insert(self, event: DomainEvent, *, conn: Any = None) -> None:
        if conn is not None:
            conn.stage(event)
            return
        with self._lock:
            self._store(event)

    def mark_processed(self, event_id: UUID) -> None:
        with self._lock:
            current = self._events.get(event_id)
            if current is not None:
                self._events[event_id] = current.as_processed(
                    datetime.now(timezone.utc)
                )

    def mark_failed(self, event_id: UUID, error: str) -> int:
        with self._lock:
            current = self._events.get(event_id)
            if current is None:
                return 0
            updated = current.as_failed(truncate_error(error))
            self._events[event_id] = updated
            return updated.retry_count

    def reset_for_replay(self, event_id: UUID) -> bool:
        with self._lock:
            current = self._events.get(event_id)
            if current is None:
                return False
            self._events[event_id] = current.as_pending()
            return True

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------
    def fetch_unprocessed(
        self, *, limit: int, max_retries: int = 0
    ) -> List[DomainEvent]:
        if limit <= 0:
            return []
        with self._lock:
            pending = [
                e
                for e in self._events.values()
                if not e.processed
                and (max_retries <= 0 or e.retry_count < max_retries)
            ]
        pending.sort(key=lambda e: (e.created_at, str(e.event_id)))
        return pending[:limit]

    def get_event(self, event_id: UUID) -> Optional[DomainEvent]:
        with self._lock:
            return self._events.get(event_id)

    def list_events(self, query: EventTimelineQuery) -> List[DomainEvent]:
        if query.limit <= 0:
            return []
        with self._lock:
            events = list(self._events.values())

        if query.actor_id is not None:
            events = [e for e in events if e.actor_id == query.actor_id]
        if query.actor_type is not None:
            events = [e for e in events if e.actor_type == query.actor_type]
        if query.organization_id is not None:
            events = [e for e in events if e.organization_id == query.organization_id]
        if query.event_types:
            allowed = set(query.event_types)
            events = [e for e in events if e.type in allowed]

        events.sort(key=lambda e: (e.created_at, str(e.event_id)), reverse=True)
        offset = max(query.offset, 0)
        return events[offset : offset + query.limit]

    def all_events(self) -> List[DomainEvent]:
        """Test helper: every stored row, oldest first."""
        with self._lock:
            events = list(self._events.values())
        events.sort(key=lambda e: (e.created_at, str(e.event_id)))
        return events

    def clear(self) -> None:
        """Clear all data (for testing)."""
        with self._lock:
            self._events.clear()
            self._last_created_at = None
