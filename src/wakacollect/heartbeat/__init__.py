"""Heartbeat deduplication and dispatch.

Exports:
    HeartbeatCollector - Cooldown gate + subscriber dispatch
    DedupGate - Per-entity cooldown record
    Heartbeat - The emitted record
"""

from wakacollect.heartbeat.collector import HeartbeatCollector
from wakacollect.heartbeat.gate import DedupGate
from wakacollect.heartbeat.models import UNSAVED_ENTITY, Heartbeat

__all__ = [
    "DedupGate",
    "Heartbeat",
    "HeartbeatCollector",
    "UNSAVED_ENTITY",
]
