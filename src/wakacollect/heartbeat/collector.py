"""Heartbeat collector - cooldown gate plus dispatch to subscribers.

Flow:
    host event -> notify(entity, is_write)
               -> DedupGate.admit(entity)       (drop if within cooldown)
               -> Heartbeat(branch=resolver.resolve(project_root))
               -> every subscriber, in registration order

The collector performs no I/O itself; branch lookup is delegated to the
resolver. A failing subscriber is logged and skipped, it never stops
delivery to the others or reaches the caller.
"""

import logging
import os
from pathlib import Path
from typing import Callable

from wakacollect.config import CollectorSettings
from wakacollect.heartbeat.gate import DedupGate
from wakacollect.heartbeat.models import Heartbeat
from wakacollect.vcs.branch import BranchResolver, make_resolver

logger = logging.getLogger(__name__)

HeartbeatCallback = Callable[[Heartbeat], object]


class HeartbeatCollector:
    """Turns activity notifications into rate-limited heartbeats.

    Usage:
        collector = HeartbeatCollector(
            project="MyGame",
            project_root="/work/MyGame/Assets",
            resolver=HeadFileResolver(),
        )
        collector.subscribe(lambda hb: print(hb.entity))
        collector.notify("/work/MyGame/Assets/Main.unity", is_write=True)
    """

    def __init__(
        self,
        project: str,
        project_root: str | Path,
        resolver: BranchResolver,
        cooldown_s: float = 120.0,
        language: str = "Unity",
        gate: DedupGate | None = None,
    ):
        self.project = project
        self.project_root = project_root
        self.resolver = resolver
        self.language = language
        self.gate = gate or DedupGate(cooldown_s=cooldown_s)

        self._subscribers: list[HeartbeatCallback] = []

    @classmethod
    def from_settings(
        cls,
        settings: CollectorSettings,
        project_root: str | Path,
        project: str | None = None,
    ) -> "HeartbeatCollector":
        """Build a collector with the resolver chosen by configuration."""
        resolver = make_resolver(
            settings.git_options,
            git_timeout_s=settings.git_timeout,
            cache_ttl_s=settings.branch_cache_ttl,
        )
        if project is None:
            project = settings.project_name or _project_name(project_root)
        return cls(
            project=project,
            project_root=project_root,
            resolver=resolver,
            cooldown_s=settings.same_file_timeout,
            language=settings.language,
        )

    def subscribe(self, callback: HeartbeatCallback) -> None:
        """Register a callback to receive every emitted heartbeat."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: HeartbeatCallback) -> None:
        """Remove a callback. Unknown callbacks are ignored."""
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def notify(self, entity: str, is_write: bool = False) -> Heartbeat | None:
        """Report activity on entity.

        Returns the emitted heartbeat, or None if the entity is still
        within its cooldown window.
        """
        if not self.gate.admit(entity):
            logger.debug(f"Heartbeat for {entity} suppressed (cooldown)")
            return None

        heartbeat = self.create_heartbeat(entity, is_write=is_write)
        self._publish(heartbeat)
        return heartbeat

    def create_heartbeat(self, entity: str, is_write: bool = False) -> Heartbeat:
        return Heartbeat(
            entity=entity,
            project=self.project,
            language=self.language,
            branch=self.resolver.resolve(self.project_root),
            is_write=is_write,
        )

    def _publish(self, heartbeat: Heartbeat) -> None:
        # Snapshot so a subscriber can unsubscribe itself mid-dispatch
        for callback in list(self._subscribers):
            try:
                callback(heartbeat)
            except Exception as e:
                logger.warning(
                    f"Heartbeat subscriber {_callback_name(callback)} failed "
                    f"for {heartbeat.entity}: {e}"
                )


def _project_name(project_root: str | Path) -> str:
    root = os.path.abspath(project_root)
    # Editor data paths end in "Assets"; the project is the folder above
    if os.path.basename(root) == "Assets":
        root = os.path.dirname(root)
    return os.path.basename(root) or root


def _callback_name(callback: HeartbeatCallback) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)
