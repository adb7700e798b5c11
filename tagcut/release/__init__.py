"""Release bounded context: versioning, the effect ledger and orchestration."""

from tagcut.release.errors import RevertFailed, RunError, UndoError, ValidationError
from tagcut.release.ledger import Effect, EffectKind, EffectLedger
from tagcut.release.lock import LOCK_FILE_NAME, ReleaseLock
from tagcut.release.model import ReleasePlan, ReleaseRequest, ReleaseState
from tagcut.release.orchestrator import ReleaseOrchestrator, ReleaseOutcome
from tagcut.release.semver import SemanticVersion, compare, parse

__all__ = [
    "LOCK_FILE_NAME",
    "Effect",
    "EffectKind",
    "EffectLedger",
    "ReleaseLock",
    "ReleaseOrchestrator",
    "ReleaseOutcome",
    "ReleasePlan",
    "ReleaseRequest",
    "ReleaseState",
    "RevertFailed",
    "RunError",
    "SemanticVersion",
    "UndoError",
    "ValidationError",
    "compare",
    "parse",
]
