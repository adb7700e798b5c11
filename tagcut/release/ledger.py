"""Ordered record of the side effects one release attempt has committed.

Each ``Effect`` carries what was done, to what, and the closure that undoes
it. Revert replays the ledger newest-first, so effects are undone in the
opposite order of their creation.

The ledger is private to one orchestrator instance. Appends are guarded by
a lock because asset uploads may complete on worker threads.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum

from tagcut.core.deadline import Deadline
from tagcut.core.result import Result

UndoFn = Callable[[Deadline], Result[None, str]]


class EffectKind(Enum):
    TAG_CREATED = "tag_created"
    TAG_PUSHED = "tag_pushed"
    RELEASE_CREATED = "release_created"
    ASSET_UPLOADED = "asset_uploaded"
    PROTECTION_DISABLED = "protection_disabled"
    VERSION_COMMITTED = "version_committed"


@dataclass(frozen=True, slots=True)
class Effect:
    """One committed side effect.

    Attributes:
        kind: What happened
        target: Identifier of what it happened to (tag, release id, asset id, path)
        undo_description: Human-readable compensation, shown when it fails
        undo: Performs the compensation; Err carries the failure reason
    """

    kind: EffectKind
    target: str
    undo_description: str
    undo: UndoFn

    def describe(self) -> str:
        return f"{self.kind.value} {self.target}"


class EffectLedger:
    def __init__(self) -> None:
        self._entries: list[Effect] = []
        self._lock = threading.Lock()

    def record(self, effect: Effect) -> None:
        with self._lock:
            self._entries.append(effect)

    def entries(self) -> tuple[Effect, ...]:
        """Snapshot in commit order."""
        with self._lock:
            return tuple(self._entries)

    def reversed(self) -> Iterator[Effect]:
        """Newest first; iterates over a snapshot."""
        return reversed(self.entries())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __bool__(self) -> bool:
        return len(self) > 0
