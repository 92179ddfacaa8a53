"""Branch resolution for heartbeat annotation.

Determines the active git branch for a working directory. Two
interchangeable strategies are available:

- GitCliResolver: asks the git executable (`git rev-parse --abbrev-ref HEAD`).
  Understands worktrees and submodules, but needs git on PATH.
- HeadFileResolver: walks up to `.git/HEAD` and parses it directly.
  No external dependency; returns nothing rather than guess whenever the
  file departs from the common `ref: refs/<kind>/<name>` shape.

A third option, DisabledResolver, turns branch annotation off.

Lookups never raise. `lookup()` returns a BranchLookup carrying either the
branch or the reason it could not be determined; `resolve()` logs that
reason and returns the branch or None.
"""

import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

HEAD_REF_PREFIX = "ref: refs"
HEAD_SYMREF_PREFIX = "ref: "


class GitOptions(str, Enum):
    """How the branch name is determined."""
    CLI = "cli"            # Run the git executable
    FILE_IO = "file_io"    # Parse .git/HEAD directly
    DISABLED = "disabled"  # No branch annotation


@dataclass(frozen=True)
class BranchLookup:
    """Outcome of a branch lookup: a branch name, or why there is none."""
    branch: str | None = None
    reason: str = ""

    @property
    def found(self) -> bool:
        return self.branch is not None

    @classmethod
    def absent(cls, reason: str) -> "BranchLookup":
        return cls(branch=None, reason=reason)


class BranchResolver:
    """Base class for branch resolution strategies."""

    name = "base"

    def lookup(self, working_dir: str | Path) -> BranchLookup:
        raise NotImplementedError

    def resolve(self, working_dir: str | Path) -> str | None:
        """Return the branch for working_dir, or None if it can't be determined."""
        result = self.lookup(working_dir)
        if not result.found and result.reason:
            logger.warning(f"Couldn't determine branch name: {result.reason}")
        return result.branch


class DisabledResolver(BranchResolver):
    """Branch annotation turned off. Performs no I/O."""

    name = GitOptions.DISABLED.value

    def lookup(self, working_dir: str | Path) -> BranchLookup:
        return BranchLookup.absent("")


class GitCliResolver(BranchResolver):
    """Resolve the branch by invoking the git executable."""

    name = GitOptions.CLI.value

    def __init__(self, executable: str = "git", timeout_s: float | None = 5.0):
        self.executable = executable
        self.timeout_s = timeout_s

    @property
    def command(self) -> list[str]:
        return [self.executable, "rev-parse", "--abbrev-ref", "HEAD"]

    def lookup(self, working_dir: str | Path) -> BranchLookup:
        if not os.path.isdir(working_dir):
            return BranchLookup.absent(
                f"working directory {working_dir!r} does not exist")
        try:
            proc = subprocess.run(
                self.command,
                cwd=str(working_dir),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                errors="replace",
                timeout=self.timeout_s,
                # Keep Windows from flashing a console window
                creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
            )
        except FileNotFoundError as e:
            return BranchLookup.absent(
                f"'{e.filename or self.executable}' was not found, is git installed?")
        except subprocess.TimeoutExpired:
            return BranchLookup.absent(
                f"'{self.executable} rev-parse' timed out after {self.timeout_s}s in {working_dir}")
        except OSError as e:
            return BranchLookup.absent(
                f"couldn't run '{self.executable}' in {working_dir}: {e}, is git installed?")
        except ValueError as e:
            return BranchLookup.absent(
                f"couldn't run '{self.executable}' in {working_dir!r}: {e}")

        lines = (proc.stdout or "").splitlines()
        branch = lines[0].strip() if lines else ""
        if not branch:
            return BranchLookup.absent(
                f"'{self.executable} rev-parse' returned no output in {working_dir}")
        return BranchLookup(branch=branch)


def find_head_file(working_dir: str | Path) -> Path | None:
    """Find the nearest `.git/HEAD` at or above working_dir.

    Ascends one directory at a time and stops once ascending no longer
    changes the directory (the filesystem root).
    """
    current = os.path.abspath(working_dir)
    while True:
        head = Path(current, ".git", "HEAD")
        if head.is_file():
            return head
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def parse_head(content: str) -> BranchLookup:
    """Extract the branch name from the text of a `.git/HEAD` file."""
    if content.startswith(HEAD_REF_PREFIX):
        # ref: refs/<kind>/<name>, where <kind> is usually "heads".
        # The name keeps any further slashes (feature/x).
        parts = content.split("/", 2)
        branch = parts[2].strip() if len(parts) == 3 else ""
        if not branch:
            return BranchLookup.absent(
                f"unknown git HEAD, please report this problem:\n{content}")
        return BranchLookup(branch=branch)

    if content.startswith(HEAD_SYMREF_PREFIX):
        return BranchLookup.absent(
            f"unknown git HEAD, please report this problem:\n{content}")

    return BranchLookup.absent("the git HEAD is in a detached state")


class HeadFileResolver(BranchResolver):
    """Resolve the branch by reading `.git/HEAD` without external tools."""

    name = GitOptions.FILE_IO.value

    def lookup(self, working_dir: str | Path) -> BranchLookup:
        try:
            head = find_head_file(working_dir)
        except (OSError, ValueError) as e:
            return BranchLookup.absent(
                f"couldn't search for .git/HEAD above {working_dir!r}: {e}")
        if head is None:
            return BranchLookup.absent(
                f"git is not initialized, no .git/HEAD found above {working_dir}")

        try:
            content = head.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return BranchLookup.absent(
                f"check if there is a problem with file '{head}': {e}")

        return parse_head(content)


class CachingResolver(BranchResolver):
    """Memoize another resolver's lookups per working directory.

    Absent results are cached too, so a missing git install is not
    re-probed on every heartbeat.
    """

    def __init__(
        self,
        inner: BranchResolver,
        ttl_s: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.inner = inner
        self.ttl_s = ttl_s
        self._clock = clock
        self._cache: dict[str, tuple[float, BranchLookup]] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self.inner.name

    def lookup(self, working_dir: str | Path) -> BranchLookup:
        key = os.path.abspath(working_dir)
        now = self._clock()
        with self._lock:
            cached = self._cache.get(key)
            if cached and (now - cached[0]) < self.ttl_s:
                return cached[1]

        result = self.inner.lookup(working_dir)
        with self._lock:
            self._cache[key] = (now, result)
        return result

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


def make_resolver(
    option: GitOptions | str,
    git_timeout_s: float | None = 5.0,
    cache_ttl_s: float = 0.0,
) -> BranchResolver:
    """Build the resolver for a configured strategy."""
    option = GitOptions(option)

    if option == GitOptions.DISABLED:
        return DisabledResolver()

    if option == GitOptions.CLI:
        resolver: BranchResolver = GitCliResolver(timeout_s=git_timeout_s)
    else:
        resolver = HeadFileResolver()

    if cache_ttl_s > 0:
        resolver = CachingResolver(resolver, ttl_s=cache_ttl_s)
    return resolver
