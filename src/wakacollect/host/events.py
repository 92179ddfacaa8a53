"""Editor event adapter.

The host editor exposes lifecycle notifications (scene opened, saved,
closing, hierarchy edits, play mode changes...). This module abstracts
them behind a small subscribe/unsubscribe interface and binds them to a
HeartbeatCollector.

Usage:
    hub = EventHub()
    bridge = EditorBridge(collector, hub, data_path="/work/MyGame/Assets")
    with bridge:
        hub.emit(EditorEvent.SCENE_SAVED, Document("Assets/Main.unity"))
"""

import logging
import posixpath
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

from wakacollect.heartbeat.collector import HeartbeatCollector
from wakacollect.heartbeat.models import UNSAVED_ENTITY

logger = logging.getLogger(__name__)

ASSETS_PREFIX = "Assets/"
_WINDOWS_DRIVE = re.compile(r"^[A-Za-z]:/")


class EditorEvent(str, Enum):
    SCENE_OPENED = "scene_opened"
    SCENE_SAVED = "scene_saved"
    SCENE_CLOSING = "scene_closing"
    NEW_SCENE_CREATED = "new_scene_created"
    HIERARCHY_CHANGED = "hierarchy_changed"
    PLAY_MODE_CHANGED = "play_mode_changed"
    PROPERTY_MENU = "property_menu"


WRITE_EVENTS = frozenset({EditorEvent.SCENE_SAVED})


@dataclass(frozen=True)
class Document:
    """Handle on the document an event refers to.

    `path` is project-relative (Assets/...), absolute, or None for a
    document that has never been saved.
    """
    path: str | None = None


EventHandler = Callable[[EditorEvent, Document | None], None]


class HostEvents(Protocol):
    """What the collector needs from a host's event system."""

    def subscribe(self, kind: EditorEvent, handler: EventHandler) -> None: ...

    def unsubscribe(self, kind: EditorEvent, handler: EventHandler) -> None: ...


class EventHub:
    """In-process HostEvents implementation.

    Hosts that surface events through script callbacks forward them with
    emit(); the CLI replay and the tests use it directly.
    """

    def __init__(self):
        self._handlers: dict[EditorEvent, list[EventHandler]] = {}

    def subscribe(self, kind: EditorEvent, handler: EventHandler) -> None:
        self._handlers.setdefault(EditorEvent(kind), []).append(handler)

    def unsubscribe(self, kind: EditorEvent, handler: EventHandler) -> None:
        handlers = self._handlers.get(EditorEvent(kind), [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, kind: EditorEvent | None = None) -> int:
        if kind is not None:
            return len(self._handlers.get(EditorEvent(kind), []))
        return sum(len(h) for h in self._handlers.values())

    def emit(self, kind: EditorEvent | str, document: Document | None = None) -> None:
        kind = EditorEvent(kind)
        for handler in list(self._handlers.get(kind, [])):
            handler(kind, document)


def entity_for(document: Document | None, data_path: str | Path) -> str:
    """Derive the entity key for a document.

    Unsaved documents share the UNSAVED_ENTITY key. Separators are
    normalized to "/" so one resource always maps to one key.
    """
    path = document.path if document else None
    if not path:
        return UNSAVED_ENTITY

    path = path.replace("\\", "/")
    data_path = str(data_path).replace("\\", "/").rstrip("/")

    if path.startswith(ASSETS_PREFIX):
        return posixpath.normpath(f"{data_path}/{path[len(ASSETS_PREFIX):]}")
    if path.startswith("/") or _WINDOWS_DRIVE.match(path):
        return posixpath.normpath(path)
    return posixpath.normpath(posixpath.join(posixpath.dirname(data_path), path))


class EditorBridge:
    """Feeds host editor events into a HeartbeatCollector.

    Events that carry no document are attributed to the active document,
    as reported by `active_document`. Only saves produce write heartbeats.
    """

    def __init__(
        self,
        collector: HeartbeatCollector,
        events: HostEvents,
        data_path: str | Path,
        active_document: Callable[[], Document | None] | None = None,
    ):
        self.collector = collector
        self.events = events
        self.data_path = data_path
        self.active_document = active_document or (lambda: None)
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self) -> None:
        if self._attached:
            return
        for kind in EditorEvent:
            self.events.subscribe(kind, self._on_event)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        for kind in EditorEvent:
            self.events.unsubscribe(kind, self._on_event)
        self._attached = False

    def __enter__(self) -> "EditorBridge":
        self.attach()
        return self

    def __exit__(self, *exc) -> None:
        self.detach()

    def _on_event(self, kind: EditorEvent, document: Document | None = None) -> None:
        if document is None:
            document = self.active_document()
        entity = entity_for(document, self.data_path)
        logger.debug(f"{kind.value} on {entity}")
        self.collector.notify(entity, is_write=kind in WRITE_EVENTS)
