from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from tagcut.core.config import ReleaseModel
from tagcut.git.repository import RepositoryIdentity
from tagcut.release.semver import Segment, SemanticVersion


class ReleaseState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    EXECUTING = "executing"
    COMMITTED = "committed"
    REVERTING = "reverting"
    REVERTED = "reverted"
    REVERT_FAILED = "revert_failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ReleaseState.COMMITTED, ReleaseState.REVERTED, ReleaseState.REVERT_FAILED)


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """What the caller asks for. The credential lives in the host client."""

    working_directory: Path
    segment: Segment = "patch"
    comment: str = ""
    build: bool = False
    # Overrides release.model from config when set.
    model: ReleaseModel | None = None


@dataclass(frozen=True, slots=True)
class ReleasePlan:
    """Immutable input to Run, produced once by Dry."""

    identity: RepositoryIdentity
    base_branch: str
    head_commit: str
    current_version: SemanticVersion
    segment: Segment
    next_version: SemanticVersion
    tag: str
    previous_tag: str | None
    # Commit subjects since previous_tag, newest first.
    changes: tuple[str, ...]
    comment: str
    build: bool

    @property
    def repo(self) -> str:
        return self.identity.slug

    @property
    def title(self) -> str:
        return self.tag

    def body(self) -> str:
        """Release notes: the caller's comment, then the change list."""
        parts: list[str] = []
        if self.comment.strip():
            parts.append(self.comment.strip())
        if self.changes:
            since = f" since {self.previous_tag}" if self.previous_tag else ""
            lines = [f"Changes{since}:", ""]
            lines.extend(f"- {subject}" for subject in self.changes)
            parts.append("\n".join(lines))
        return "\n\n".join(parts)
