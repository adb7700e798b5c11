"""Error payloads for the release bounded context.

``ValidationError``, ``RunError`` and ``RevertFailed`` are the three failure
outcomes of one attempt. Each maps to its own exit code so wrappers can tell
"nothing happened" from "cleaned up" from "needs manual cleanup".
"""

from __future__ import annotations

from dataclasses import dataclass

from tagcut.core.errors import ErrorCode

# Stable Dry precondition reasons.
DIRTY_WORKING_COPY = "dirty working copy"
WRONG_RELEASE_BRANCH = "wrong release branch"
RELEASE_EXISTS = "release already exists"
BUILD_UNRESOLVABLE = "build configuration unresolvable"
RELEASE_IN_PROGRESS = "release already in progress"
CANNOT_INSPECT_REPOSITORY = "cannot inspect repository"
CANNOT_QUERY_HOST = "cannot query host"
INVALID_CURRENT_VERSION = "invalid current version"


@dataclass(frozen=True, slots=True)
class ParseError:
    text: str
    message: str


@dataclass(frozen=True, slots=True)
class ValidationError:
    """A Dry precondition failed. Nothing was mutated."""

    reason: str
    detail: str | None = None
    hint: str | None = None

    @property
    def message(self) -> str:
        if self.detail:
            return f"{self.reason}: {self.detail}"
        return self.reason

    @property
    def code(self) -> ErrorCode:
        return ErrorCode.VALIDATION_FAILED


@dataclass(frozen=True, slots=True)
class RunError:
    """A Run step failed after zero or more side effects were recorded."""

    step: str
    reason: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"{self.step}: {self.reason}"

    @property
    def code(self) -> ErrorCode:
        return ErrorCode.RUN_FAILED


@dataclass(frozen=True, slots=True)
class UndoError:
    """One compensation that could not be applied."""

    effect: str
    reason: str

    @property
    def message(self) -> str:
        return f"undo {self.effect}: {self.reason}"


@dataclass(frozen=True, slots=True)
class RevertFailed:
    """Run failed and Revert could not undo everything.

    The repository and/or host are left partially mutated; ``undo_errors``
    lists what an operator has to clean up by hand.
    """

    run_error: RunError
    undo_errors: tuple[UndoError, ...]

    @property
    def message(self) -> str:
        lines = [f"revert incomplete after {self.run_error.message}"]
        lines.extend(f"  - {e.message}" for e in self.undo_errors)
        return "\n".join(lines)

    @property
    def hint(self) -> str:
        return "manual cleanup required for the effects listed above"

    @property
    def code(self) -> ErrorCode:
        return ErrorCode.REVERT_FAILED
