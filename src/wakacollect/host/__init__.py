"""Host editor integration."""

from wakacollect.host.events import (
    Document,
    EditorBridge,
    EditorEvent,
    EventHub,
    HostEvents,
    entity_for,
)

__all__ = [
    "Document",
    "EditorBridge",
    "EditorEvent",
    "EventHub",
    "HostEvents",
    "entity_for",
]
