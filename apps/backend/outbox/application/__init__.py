"""Capa de aplicación del outbox: publisher, registry, dispatcher y worker."""

from .dispatcher import DispatchResult, EventDispatcher, HandlerFailure
from .outbox_worker import BatchResult, OutboxWorker
from .poller import OutboxPoller
from .publisher import EventPublisher, create_event_metadata
from .registry import (
    EventHandler,
    HandlerOptions,
    HandlerRegistration,
    HandlerRegistry,
)
from .schemas import (
    EventDescriptor,
    EventMetadata,
    EventTimelineRequest,
    parse_descriptor,
    parse_timeline_request,
)

__all__ = [
    "EventPublisher",
    "create_event_metadata",
    "EventDescriptor",
    "EventMetadata",
    "EventTimelineRequest",
    "parse_descriptor",
    "parse_timeline_request",
    "EventHandler",
    "HandlerOptions",
    "HandlerRegistration",
    "HandlerRegistry",
    "EventDispatcher",
    "DispatchResult",
    "HandlerFailure",
    "OutboxWorker",
    "BatchResult",
    "OutboxPoller",
]
