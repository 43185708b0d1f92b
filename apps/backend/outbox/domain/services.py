"""
CRC — domain/services.py

Name
- Outbox Service Interfaces (Protocols)

Responsibilities
- Define the ports the publisher and dispatcher depend on:
    * OutboxWakeUp: advisory nudge so the worker runs before its next poll.
    * HandlerJobQueue: deferred execution of handlers registered as queued.

Collaborators
- application.publisher (OutboxWakeUp)
- application.dispatcher (HandlerJobQueue)
- infrastructure.queue (RQ adapters)

Notes
- Wake-ups are advisory only: the scheduled poll remains the correctness
  backstop, so implementations may drop or coalesce nudges.
"""

from typing import Protocol

from .entities import DomainEvent


class OutboxWakeUp(Protocol):
    """R: Nudge the outbox worker."""

    def trigger(self) -> bool:
        """R: Request a worker run. Returns False if coalesced/skipped."""
        ...


class HandlerJobQueue(Protocol):
    """R: Queue one handler execution for one event."""

    def enqueue_handler(self, handler_name: str, event: DomainEvent) -> str:
        """R: Enqueue and return the job id (deduplicated per event+handler)."""
        ...


class NoopWakeUp:
    """Wake-up deshabilitado (sin Redis): el poll programado alcanza."""

    def trigger(self) -> bool:
        return False
