"""
In-Memory Event Store.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .event_store import InMemoryEventStore, InMemoryTransaction

__all__ = ["InMemoryEventStore", "InMemoryTransaction"]
