"""Heartbeat record."""

import time
from dataclasses import dataclass, field
from typing import Any

UNSAVED_ENTITY = "Unsaved Scene"


@dataclass(frozen=True)
class Heartbeat:
    """A timestamped record of activity on one entity."""
    entity: str
    project: str = ""
    language: str = "Unity"
    branch: str | None = None  # None when the branch couldn't be determined
    is_write: bool = False     # True only for save-triggered heartbeats
    entity_type: str = "file"
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self):
        if not self.entity:
            raise ValueError("Heartbeat entity must be a non-empty string")

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "type": self.entity_type,
            "project": self.project,
            "language": self.language,
            "branch": self.branch,
            "is_write": self.is_write,
            "time": self.timestamp,
        }
