"""Per-entity cooldown gate.

Suppresses repeated heartbeats for the same entity within a fixed
cooldown window. The window is shared by all entities; each entity keeps
the time of its last admitted heartbeat.
"""

import threading
import time
from typing import Callable


class DedupGate:
    """Admits at most one heartbeat per entity per cooldown window.

    Usage:
        gate = DedupGate(cooldown_s=120)
        gate.admit("/project/Assets/Main.unity")  # True
        gate.admit("/project/Assets/Main.unity")  # False until 120s pass
    """

    def __init__(
        self,
        cooldown_s: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if cooldown_s < 0:
            raise ValueError(f"cooldown_s must be >= 0, got {cooldown_s}")
        self.cooldown_s = cooldown_s
        self._clock = clock
        self._last_admitted: dict[str, float] = {}
        self._lock = threading.Lock()

    def admit(self, entity: str) -> bool:
        """Record and return True if entity is outside its cooldown window."""
        now = self._clock()
        with self._lock:
            last = self._last_admitted.get(entity)
            if last is not None and (now - last) < self.cooldown_s:
                return False
            self._last_admitted[entity] = now
            return True

    def last_admitted(self, entity: str) -> float | None:
        with self._lock:
            return self._last_admitted.get(entity)

    def reset(self) -> None:
        """Forget every entity."""
        with self._lock:
            self._last_admitted.clear()

    def __contains__(self, entity: object) -> bool:
        with self._lock:
            return entity in self._last_admitted

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_admitted)
