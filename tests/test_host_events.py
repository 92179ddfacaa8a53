"""Tests for the editor event adapter."""

import pytest

from wakacollect.heartbeat import UNSAVED_ENTITY, DedupGate, HeartbeatCollector
from wakacollect.host import Document, EditorBridge, EditorEvent, EventHub, entity_for
from wakacollect.vcs.branch import DisabledResolver

DATA_PATH = "/work/MyGame/Assets"


@pytest.fixture
def hub():
    return EventHub()


@pytest.fixture
def collector():
    return HeartbeatCollector(
        project="MyGame",
        project_root=DATA_PATH,
        resolver=DisabledResolver(),
        gate=DedupGate(120, clock=lambda: 0.0),
    )


@pytest.fixture
def received(collector):
    beats = []
    collector.subscribe(beats.append)
    return beats


class TestEntityFor:

    def test_assets_path_maps_under_data_path(self):
        doc = Document("Assets/Scenes/Main.unity")
        assert entity_for(doc, DATA_PATH) == "/work/MyGame/Assets/Scenes/Main.unity"

    def test_no_document_is_unsaved(self):
        assert entity_for(None, DATA_PATH) == UNSAVED_ENTITY

    def test_document_without_path_is_unsaved(self):
        assert entity_for(Document(None), DATA_PATH) == UNSAVED_ENTITY
        assert entity_for(Document(""), DATA_PATH) == UNSAVED_ENTITY

    def test_backslashes_normalized(self):
        a = entity_for(Document("Assets\\Scenes\\Main.unity"), "C:\\work\\MyGame\\Assets")
        b = entity_for(Document("Assets/Scenes/Main.unity"), "C:/work/MyGame/Assets/")
        assert a == b == "C:/work/MyGame/Assets/Scenes/Main.unity"

    def test_assets_path_is_normalized(self):
        doc = Document("Assets/Scenes/../Main.unity")
        assert entity_for(doc, DATA_PATH) == entity_for(Document("Assets/Main.unity"), DATA_PATH)
        assert entity_for(doc, DATA_PATH) == "/work/MyGame/Assets/Main.unity"

    def test_absolute_path_kept(self):
        assert entity_for(Document("/elsewhere/Level.unity"), DATA_PATH) == "/elsewhere/Level.unity"

    def test_other_relative_path_joins_project(self):
        doc = Document("Packages/com.example/Demo.unity")
        assert entity_for(doc, DATA_PATH) == "/work/MyGame/Packages/com.example/Demo.unity"


class TestEventHub:

    def test_emit_reaches_subscribers_of_that_kind(self, hub):
        seen = []
        hub.subscribe(EditorEvent.SCENE_OPENED, lambda kind, doc: seen.append((kind, doc)))
        hub.emit(EditorEvent.SCENE_SAVED)
        hub.emit("scene_opened", Document("Assets/A.unity"))
        assert seen == [(EditorEvent.SCENE_OPENED, Document("Assets/A.unity"))]

    def test_unsubscribe(self, hub):
        seen = []
        handler = lambda kind, doc: seen.append(kind)  # noqa: E731
        hub.subscribe(EditorEvent.SCENE_OPENED, handler)
        hub.unsubscribe(EditorEvent.SCENE_OPENED, handler)
        hub.unsubscribe(EditorEvent.SCENE_OPENED, handler)
        hub.emit(EditorEvent.SCENE_OPENED)
        assert seen == []

    def test_unknown_event_rejected(self, hub):
        with pytest.raises(ValueError):
            hub.emit("asset_imported")


class TestEditorBridge:

    def test_attach_subscribes_every_event(self, collector, hub):
        bridge = EditorBridge(collector, hub, DATA_PATH)
        bridge.attach()
        bridge.attach()
        assert hub.handler_count() == len(EditorEvent)
        bridge.detach()
        assert hub.handler_count() == 0
        assert not bridge.attached

    def test_save_produces_write_heartbeat(self, collector, hub, received):
        with EditorBridge(collector, hub, DATA_PATH):
            hub.emit(EditorEvent.SCENE_SAVED, Document("Assets/Main.unity"))
        assert len(received) == 1
        assert received[0].is_write is True
        assert received[0].entity == "/work/MyGame/Assets/Main.unity"

    @pytest.mark.parametrize("kind", [k for k in EditorEvent if k != EditorEvent.SCENE_SAVED])
    def test_other_events_are_not_writes(self, collector, hub, received, kind):
        with EditorBridge(collector, hub, DATA_PATH):
            hub.emit(kind, Document("Assets/Main.unity"))
        assert [hb.is_write for hb in received] == [False]

    def test_burst_of_events_is_deduplicated(self, collector, hub, received):
        with EditorBridge(collector, hub, DATA_PATH):
            for _ in range(50):
                hub.emit(EditorEvent.HIERARCHY_CHANGED, Document("Assets/Main.unity"))
        assert len(received) == 1

    def test_falls_back_to_active_document(self, collector, hub, received):
        bridge = EditorBridge(
            collector, hub, DATA_PATH,
            active_document=lambda: Document("Assets/Active.unity"),
        )
        with bridge:
            hub.emit(EditorEvent.PLAY_MODE_CHANGED)
        assert received[0].entity == "/work/MyGame/Assets/Active.unity"

    def test_no_active_document_is_unsaved_scene(self, collector, hub, received):
        with EditorBridge(collector, hub, DATA_PATH):
            hub.emit(EditorEvent.PROPERTY_MENU)
            hub.emit(EditorEvent.NEW_SCENE_CREATED, Document(None))
        assert [hb.entity for hb in received] == [UNSAVED_ENTITY]

    def test_detached_bridge_ignores_events(self, collector, hub, received):
        with EditorBridge(collector, hub, DATA_PATH):
            pass
        hub.emit(EditorEvent.SCENE_OPENED, Document("Assets/Main.unity"))
        assert received == []
