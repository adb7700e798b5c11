"""Release orchestration over a git working copy and a release host.

The two systems share no transaction, so one attempt runs in three phases:

- Dry validates preconditions with read-only calls. Nothing is mutated.
- Run performs the mutating steps in a fixed order and records every
  completed side effect in an ``EffectLedger``.
- Revert, after a failed Run, replays the ledger newest-first. Every entry
  gets exactly one undo attempt; an undo failure is collected and the loop
  moves on.

State machine::

    IDLE -> VALIDATING -> EXECUTING -> COMMITTED
                                    -> REVERTING -> REVERTED | REVERT_FAILED

A failed Dry returns to IDLE: no side effect exists.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from tagcut.build.builder import ArtifactBuilder
from tagcut.build.errors import describe_build_error
from tagcut.core.config import Config, ReleaseModel
from tagcut.core.deadline import REVERT_GRACE_SECONDS, Deadline
from tagcut.core.errors import ErrorCode
from tagcut.core.result import Err, Ok, Result
from tagcut.git.repository import RepositoryError, RepositoryIdentity, WorkingCopy
from tagcut.host.github import ReleaseHost
from tagcut.host.models import Asset, HostError, Release, ReleaseInput
from tagcut.output.console import ConsoleProtocol, Style
from tagcut.release.errors import (
    BUILD_UNRESOLVABLE,
    CANNOT_INSPECT_REPOSITORY,
    CANNOT_QUERY_HOST,
    DIRTY_WORKING_COPY,
    INVALID_CURRENT_VERSION,
    RELEASE_EXISTS,
    RELEASE_IN_PROGRESS,
    WRONG_RELEASE_BRANCH,
    RevertFailed,
    RunError,
    UndoError,
    ValidationError,
)
from tagcut.release.ledger import Effect, EffectKind, EffectLedger
from tagcut.release.lock import ReleaseLock
from tagcut.release.model import ReleasePlan, ReleaseRequest, ReleaseState
from tagcut.release.semver import SemanticVersion, parse
from tagcut.release.version_file import VersionFile

STEP_COMPUTE_VERSION = "compute_version"
STEP_BUILD = "build"
STEP_TAG = "tag"
STEP_CREATE_RELEASE = "create_release"
STEP_UPLOAD_ASSETS = "upload_assets"
STEP_VERSION_FILE = "version_file"
STEP_PUBLISH = "publish"
STEP_RESTORE_PROTECTION = "restore_protection"

RUN_STEPS = (
    STEP_COMPUTE_VERSION,
    STEP_BUILD,
    STEP_TAG,
    STEP_CREATE_RELEASE,
    STEP_UPLOAD_ASSETS,
    STEP_VERSION_FILE,
    STEP_PUBLISH,
    STEP_RESTORE_PROTECTION,
)

StepFn = Callable[[ReleasePlan, Deadline], Result[None, str]]

OutcomeError = ValidationError | RunError | RevertFailed


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    """Final result of one attempt, as reported to the caller."""

    plan: ReleasePlan | None
    release: Release | None
    error: OutcomeError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def code(self) -> ErrorCode:
        return ErrorCode.OK if self.error is None else self.error.code


@dataclass
class _VersionCommit:
    """Progress of the version-file step, read by its undo closure."""

    previous: str | None
    pushed: bool = False


def _repo_reason(result: Result[None, RepositoryError]) -> Result[None, str]:
    return result.map_err(lambda e: e.pretty())


def _host_reason(result: Result[None, HostError]) -> Result[None, str]:
    return result.map_err(lambda e: e.message)


def _with_leftovers(reason: str, cleanup: list[Result[None, str]]) -> str:
    """Append failed cleanup reasons so the step error names what was left behind."""
    leftovers = [r.error for r in cleanup if isinstance(r, Err)]
    if not leftovers:
        return reason
    return f"{reason}; cleanup failed: {'; '.join(leftovers)}"


class ReleaseOrchestrator:
    """Runs one release attempt. Create a new instance per attempt."""

    def __init__(
        self,
        *,
        repo: WorkingCopy,
        host: ReleaseHost,
        config: Config,
        console: ConsoleProtocol,
        builder: ArtifactBuilder | None = None,
    ) -> None:
        self._repo = repo
        self._host = host
        self._config = config
        self._console = console
        self._builder = builder

        self._state = ReleaseState.IDLE
        self._ledger = EffectLedger()
        self._plan: ReleasePlan | None = None
        self._release: Release | None = None
        self._artifacts: list[Path] = []
        self._run_error: RunError | None = None

    @property
    def state(self) -> ReleaseState:
        return self._state

    @property
    def ledger(self) -> EffectLedger:
        return self._ledger

    @property
    def plan(self) -> ReleasePlan | None:
        return self._plan

    # -- full protocol ------------------------------------------------------

    def release(
        self,
        request: ReleaseRequest,
        *,
        deadline: Deadline,
        lock: ReleaseLock | None = None,
    ) -> ReleaseOutcome:
        """Dry, then Run, then Revert if Run failed."""
        if lock is not None:
            acquired = lock.acquire()
            if isinstance(acquired, Err):
                error = ValidationError(RELEASE_IN_PROGRESS, detail=acquired.error.message)
                self._console.error(error.message)
                return ReleaseOutcome(plan=None, release=None, error=error)

        try:
            return self._release_unlocked(request, deadline=deadline)
        finally:
            if lock is not None:
                lock.release()

    def _release_unlocked(self, request: ReleaseRequest, *, deadline: Deadline) -> ReleaseOutcome:
        planned = self.dry(request, deadline=deadline)
        if isinstance(planned, Err):
            return ReleaseOutcome(plan=None, release=None, error=planned.error)
        plan = planned.value

        ran = self.run(plan, deadline=deadline)
        if isinstance(ran, Ok):
            return ReleaseOutcome(plan=plan, release=ran.value)

        revert_deadline = deadline
        if deadline.expired:
            revert_deadline = Deadline.after(REVERT_GRACE_SECONDS)

        reverted = self.revert(deadline=revert_deadline)
        if isinstance(reverted, Err):
            return ReleaseOutcome(plan=plan, release=None, error=reverted.error)
        return ReleaseOutcome(plan=plan, release=None, error=ran.error)

    # -- Dry ----------------------------------------------------------------

    def dry(
        self, request: ReleaseRequest, *, deadline: Deadline
    ) -> Result[ReleasePlan, ValidationError]:
        """Check preconditions in order and build the plan. Read-only."""
        if self._state is not ReleaseState.IDLE:
            raise AssertionError(f"dry() called in state {self._state.value}")

        self._state = ReleaseState.VALIDATING
        self._console.header("Dry")

        result = self._validate(request, deadline=deadline)
        if isinstance(result, Err):
            self._state = ReleaseState.IDLE
            self._console.error(result.error.message)
            if result.error.hint:
                self._console.print(f"hint: {result.error.hint}", Style.DIM)
            return result

        self._plan = result.value
        self._console.success(
            f"{result.value.repo}: {result.value.current_version} -> {result.value.next_version}"
        )
        return result

    def compute_versions(
        self, request: ReleaseRequest, *, deadline: Deadline
    ) -> Result[tuple[SemanticVersion, SemanticVersion], ValidationError]:
        """(current, next) without checking any other precondition."""
        identity = self._repo.repository_identity(deadline=deadline)
        if isinstance(identity, Err):
            return Err(ValidationError(CANNOT_INSPECT_REPOSITORY, detail=identity.error.pretty()))

        current = self._current_version(identity.value, deadline=deadline)
        if isinstance(current, Err):
            return current
        return Ok((current.value, current.value.bump(request.segment)))

    def _validate(
        self, request: ReleaseRequest, *, deadline: Deadline
    ) -> Result[ReleasePlan, ValidationError]:
        # (a) clean working copy
        self._console.step("working copy is clean")
        clean = self._repo.is_clean(deadline=deadline)
        if isinstance(clean, Err):
            return Err(ValidationError(CANNOT_INSPECT_REPOSITORY, detail=clean.error.pretty()))
        if not clean.value:
            return Err(
                ValidationError(DIRTY_WORKING_COPY, hint="commit or stash local changes first")
            )

        # (b) release branch model
        model = request.model or self._config.release.model
        self._console.step(f"branch matches the {model} model")
        branch = self._repo.current_branch(deadline=deadline)
        if isinstance(branch, Err):
            return Err(ValidationError(CANNOT_INSPECT_REPOSITORY, detail=branch.error.pretty()))
        mismatch = self._branch_mismatch(branch.value, model)
        if mismatch is not None:
            return Err(ValidationError(WRONG_RELEASE_BRANCH, detail=mismatch))

        facts = self._inspect(deadline=deadline)
        if isinstance(facts, Err):
            return facts
        identity, head, previous_tag, changes = facts.value

        current = self._current_version(identity, deadline=deadline)
        if isinstance(current, Err):
            return current
        next_version = current.value.bump(request.segment)
        tag = next_version.tag(self._config.release.tag_prefix)

        # (c) no release for the next version yet
        self._console.step(f"no release exists for {tag}")
        existing = self._host.get_release(identity.slug, tag, deadline=deadline)
        if isinstance(existing, Err):
            return Err(ValidationError(CANNOT_QUERY_HOST, detail=existing.error.message))
        if existing.value is not None:
            return Err(
                ValidationError(
                    RELEASE_EXISTS,
                    detail=f"{tag} ({existing.value.html_url or existing.value.id})",
                )
            )

        # (d) build configuration resolves
        if request.build:
            self._console.step("build configuration resolves")
            if self._builder is None:
                return Err(ValidationError(BUILD_UNRESOLVABLE, detail="no artifact builder"))
            targets = self._builder.resolve(str(next_version))
            if isinstance(targets, Err):
                return Err(
                    ValidationError(BUILD_UNRESOLVABLE, detail=describe_build_error(targets.error))
                )

        return Ok(
            ReleasePlan(
                identity=identity,
                base_branch=branch.value,
                head_commit=head,
                current_version=current.value,
                segment=request.segment,
                next_version=next_version,
                tag=tag,
                previous_tag=previous_tag,
                changes=tuple(changes),
                comment=request.comment,
                build=request.build,
            )
        )

    def _branch_mismatch(self, branch: str, model: ReleaseModel) -> str | None:
        cfg = self._config.release
        if model == "master":
            if branch != cfg.branch:
                return f"on {branch!r}, releases are cut from {cfg.branch!r}"
            return None
        if not branch.startswith(cfg.branch_prefix):
            return f"on {branch!r}, release branches start with {cfg.branch_prefix!r}"
        return None

    def _inspect(
        self, *, deadline: Deadline
    ) -> Result[tuple[RepositoryIdentity, str, str | None, list[str]], ValidationError]:
        identity = self._repo.repository_identity(deadline=deadline)
        if isinstance(identity, Err):
            return Err(ValidationError(CANNOT_INSPECT_REPOSITORY, detail=identity.error.pretty()))
        head = self._repo.current_commit(deadline=deadline)
        if isinstance(head, Err):
            return Err(ValidationError(CANNOT_INSPECT_REPOSITORY, detail=head.error.pretty()))
        previous = self._repo.previous_tag(deadline=deadline)
        if isinstance(previous, Err):
            return Err(ValidationError(CANNOT_INSPECT_REPOSITORY, detail=previous.error.pretty()))
        changes = self._repo.log_subjects(since=previous.value, deadline=deadline)
        if isinstance(changes, Err):
            return Err(ValidationError(CANNOT_INSPECT_REPOSITORY, detail=changes.error.pretty()))
        return Ok((identity.value, head.value, previous.value, changes.value))

    def _current_version(
        self, identity: RepositoryIdentity, *, deadline: Deadline
    ) -> Result[SemanticVersion, ValidationError]:
        relpath = self._config.release.version_file
        if relpath:
            from_file = VersionFile(self._repo.root, relpath).read_version()
            if isinstance(from_file, Err):
                return Err(
                    ValidationError(
                        INVALID_CURRENT_VERSION,
                        detail=f"{from_file.error.path}: {from_file.error.message}",
                    )
                )
            if from_file.value is not None:
                return Ok(from_file.value)

        latest = self._host.get_latest_release(identity.slug, deadline=deadline)
        if isinstance(latest, Err):
            return Err(ValidationError(CANNOT_QUERY_HOST, detail=latest.error.message))
        if latest.value is None:
            return Ok(SemanticVersion(0, 0, 0))

        parsed = parse(latest.value.tag_name, prefix=self._config.release.tag_prefix)
        if isinstance(parsed, Err):
            return Err(ValidationError(INVALID_CURRENT_VERSION, detail=parsed.error.message))
        return Ok(parsed.value)

    # -- Run ----------------------------------------------------------------

    def run(self, plan: ReleasePlan, *, deadline: Deadline) -> Result[Release, RunError]:
        """Execute the mutating steps, stopping at the first failure.

        On failure the orchestrator is left in REVERTING; call ``revert()``.
        """
        if self._state is not ReleaseState.VALIDATING:
            raise AssertionError(f"run() called in state {self._state.value}")

        self._state = ReleaseState.EXECUTING
        self._ledger = EffectLedger()
        self._plan = plan
        self._release = None
        self._artifacts = []
        self._console.header(f"Run {plan.tag}")

        steps: dict[str, StepFn] = {
            STEP_COMPUTE_VERSION: self._step_compute_version,
            STEP_BUILD: self._step_build,
            STEP_TAG: self._step_tag,
            STEP_CREATE_RELEASE: self._step_create_release,
            STEP_UPLOAD_ASSETS: self._step_upload_assets,
            STEP_VERSION_FILE: self._step_version_file,
            STEP_PUBLISH: self._step_publish,
            STEP_RESTORE_PROTECTION: self._step_restore_protection,
        }

        for name in RUN_STEPS:
            self._console.step(name)
            if deadline.expired:
                outcome: Result[None, str] = Err("deadline exceeded")
            else:
                try:
                    outcome = steps[name](plan, deadline)
                except Exception as e:  # noqa: BLE001
                    outcome = Err(f"unexpected {type(e).__name__}: {e}")

            if isinstance(outcome, Err):
                error = RunError(step=name, reason=outcome.error)
                self._run_error = error
                self._state = ReleaseState.REVERTING
                self._console.error(error.message)
                return Err(error)

        if self._release is None:
            raise AssertionError("run completed without a release")

        self._state = ReleaseState.COMMITTED
        self._ledger.clear()
        self._console.success(f"released {plan.tag}: {self._release.html_url}")
        return Ok(self._release)

    def _step_compute_version(self, plan: ReleasePlan, deadline: Deadline) -> Result[None, str]:
        expected = plan.current_version.bump(plan.segment)
        if expected != plan.next_version:
            return Err(f"plan targets {plan.next_version}, {plan.segment} bump gives {expected}")
        return Ok(None)

    def _step_build(self, plan: ReleasePlan, deadline: Deadline) -> Result[None, str]:
        if not plan.build:
            return Ok(None)
        if self._builder is None:
            return Err("no artifact builder configured")

        built = self._builder.build(str(plan.next_version), deadline=deadline)
        if isinstance(built, Err):
            return Err(describe_build_error(built.error))
        self._artifacts = built.value
        self._console.print(f"built {len(built.value)} artifact(s)", Style.DIM)
        return Ok(None)

    def _step_tag(self, plan: ReleasePlan, deadline: Deadline) -> Result[None, str]:
        repo = self._repo
        remote = self._config.release.remote
        tag = plan.tag

        created = repo.create_tag(tag, message=plan.comment or f"Release {tag}", deadline=deadline)
        if isinstance(created, Err):
            return Err(created.error.pretty())
        self._ledger.record(
            Effect(
                kind=EffectKind.TAG_CREATED,
                target=tag,
                undo_description=f"delete local tag {tag}",
                undo=lambda d: _repo_reason(repo.delete_tag(tag, deadline=d)),
            )
        )

        pushed = repo.push_tag(remote, tag, deadline=deadline)
        if isinstance(pushed, Err):
            return Err(pushed.error.pretty())
        self._ledger.record(
            Effect(
                kind=EffectKind.TAG_PUSHED,
                target=tag,
                undo_description=f"delete tag {tag} on {remote}",
                undo=lambda d: _repo_reason(repo.delete_remote_tag(remote, tag, deadline=d)),
            )
        )
        return Ok(None)

    def _release_input(self, plan: ReleasePlan, *, draft: bool) -> ReleaseInput:
        return ReleaseInput(
            tag_name=plan.tag,
            target=plan.head_commit,
            name=plan.title,
            body=plan.body(),
            draft=draft,
            prerelease=self._config.release.prerelease,
        )

    def _step_create_release(self, plan: ReleasePlan, deadline: Deadline) -> Result[None, str]:
        host = self._host
        # Draft until assets and the version commit are in place.
        created = host.create_release(
            plan.repo, self._release_input(plan, draft=True), deadline=deadline
        )
        if isinstance(created, Err):
            return Err(created.error.message)

        release_id = created.value.id
        self._release = created.value
        self._ledger.record(
            Effect(
                kind=EffectKind.RELEASE_CREATED,
                target=str(release_id),
                undo_description=f"delete release {release_id}",
                undo=lambda d: _host_reason(host.delete_release(plan.repo, release_id, deadline=d)),
            )
        )
        return Ok(None)

    def _step_upload_assets(self, plan: ReleasePlan, deadline: Deadline) -> Result[None, str]:
        if not plan.build or not self._artifacts:
            return Ok(None)
        if self._release is None:
            return Err("no release to attach assets to")

        workers = self._config.build.upload_workers
        if workers > 1 and len(self._artifacts) > 1:
            return self._upload_parallel(plan, self._release, workers, deadline)

        for path in self._artifacts:
            uploaded = self._host.upload_asset(self._release, path, deadline=deadline)
            if isinstance(uploaded, Err):
                return Err(f"{path.name}: {uploaded.error.message}")
            self._record_asset(plan, uploaded.value)
        return Ok(None)

    def _upload_parallel(
        self, plan: ReleasePlan, release: Release, workers: int, deadline: Deadline
    ) -> Result[None, str]:
        # All uploads settle before returning; every landed asset is ledgered.
        failures: dict[Path, str] = {}
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                pool.submit(self._host.upload_asset, release, path, deadline=deadline): path
                for path in self._artifacts
            }
            for future in as_completed(futures):
                path = futures[future]
                uploaded = future.result()
                if isinstance(uploaded, Err):
                    failures[path] = uploaded.error.message
                else:
                    self._record_asset(plan, uploaded.value)

        for path in self._artifacts:
            if path in failures:
                return Err(f"{path.name}: {failures[path]}")
        return Ok(None)

    def _record_asset(self, plan: ReleasePlan, asset: Asset) -> None:
        host = self._host
        self._console.print(f"uploaded {asset.name}", Style.DIM)
        self._ledger.record(
            Effect(
                kind=EffectKind.ASSET_UPLOADED,
                target=f"{asset.name}#{asset.id}",
                undo_description=f"delete asset {asset.name}",
                undo=lambda d: _host_reason(host.delete_asset(plan.repo, asset.id, deadline=d)),
            )
        )

    def _step_version_file(self, plan: ReleasePlan, deadline: Deadline) -> Result[None, str]:
        relpath = self._config.release.version_file
        if not relpath:
            return Ok(None)

        repo = self._repo
        host = self._host
        cfg = self._config.release
        vf = VersionFile(repo.root, relpath)

        previous = vf.read_text()
        if isinstance(previous, Err):
            return Err(previous.error.message)

        if cfg.protect_admins:
            disabled = host.set_branch_protection_for_admins(
                plan.repo, plan.base_branch, False, deadline=deadline
            )
            if isinstance(disabled, Err):
                return Err(disabled.error.message)
            self._ledger.record(
                Effect(
                    kind=EffectKind.PROTECTION_DISABLED,
                    target=plan.base_branch,
                    undo_description=f"re-enable admin enforcement on {plan.base_branch}",
                    undo=lambda d: _host_reason(
                        host.set_branch_protection_for_admins(
                            plan.repo, plan.base_branch, True, deadline=d
                        )
                    ),
                )
            )

        written = vf.write_version(plan.next_version)
        if isinstance(written, Err):
            restored = vf.restore(previous.value).map_err(lambda e: e.message)
            return Err(_with_leftovers(written.error.message, [restored]))

        committed = repo.commit_paths([relpath], message=f"Release {plan.tag}", deadline=deadline)
        if isinstance(committed, Err):
            # Not ledgered yet: put the tree back before reporting.
            cleanup = [
                _repo_reason(repo.reset_to(plan.head_commit, deadline=deadline)),
                vf.restore(previous.value).map_err(lambda e: e.message),
            ]
            return Err(_with_leftovers(committed.error.pretty(), cleanup))

        progress = _VersionCommit(previous=previous.value)
        self._ledger.record(
            Effect(
                kind=EffectKind.VERSION_COMMITTED,
                target=relpath,
                undo_description=f"restore {relpath}",
                undo=lambda d: self._undo_version_commit(plan, vf, progress, d),
            )
        )

        pushed = repo.push_branch(cfg.remote, plan.base_branch, deadline=deadline)
        if isinstance(pushed, Err):
            return Err(pushed.error.pretty())
        progress.pushed = True
        return Ok(None)

    def _undo_version_commit(
        self, plan: ReleasePlan, vf: VersionFile, progress: _VersionCommit, deadline: Deadline
    ) -> Result[None, str]:
        if not progress.pushed:
            # Only local history changed; drop the commit.
            reset = _repo_reason(self._repo.reset_to(plan.head_commit, deadline=deadline))
            if isinstance(reset, Err):
                return reset
            return vf.restore(progress.previous).map_err(lambda e: e.message)

        # Published history is never rewritten: commit the old content on top.
        restored = vf.restore(progress.previous)
        if isinstance(restored, Err):
            return Err(restored.error.message)
        committed = self._repo.commit_paths(
            [vf.relpath], message=f"Revert release {plan.tag}", deadline=deadline
        )
        if isinstance(committed, Err):
            return Err(committed.error.pretty())
        return _repo_reason(
            self._repo.push_branch(self._config.release.remote, plan.base_branch, deadline=deadline)
        )

    def _step_publish(self, plan: ReleasePlan, deadline: Deadline) -> Result[None, str]:
        if self._release is None:
            return Err("no release to publish")
        edited = self._host.edit_release(
            plan.repo,
            self._release.id,
            self._release_input(plan, draft=self._config.release.draft),
            deadline=deadline,
        )
        if isinstance(edited, Err):
            return Err(edited.error.message)
        self._release = edited.value
        return Ok(None)

    def _step_restore_protection(self, plan: ReleasePlan, deadline: Deadline) -> Result[None, str]:
        if not self._config.release.protect_admins or not self._config.release.version_file:
            return Ok(None)
        enabled = self._host.set_branch_protection_for_admins(
            plan.repo, plan.base_branch, True, deadline=deadline
        )
        if isinstance(enabled, Err):
            return Err(enabled.error.message)
        return Ok(None)

    # -- Revert -------------------------------------------------------------

    def revert(self, *, deadline: Deadline) -> Result[None, RevertFailed]:
        """Undo every recorded effect, newest first, one attempt each."""
        if self._state is not ReleaseState.REVERTING or self._run_error is None:
            raise AssertionError(f"revert() called in state {self._state.value}")

        self._console.header("Revert")
        undo_errors: list[UndoError] = []
        for effect in self._ledger.reversed():
            self._console.step(effect.undo_description)
            try:
                undone = effect.undo(deadline)
            except Exception as e:  # noqa: BLE001
                undone = Err(f"unexpected {type(e).__name__}: {e}")

            if isinstance(undone, Err):
                undo_errors.append(UndoError(effect=effect.describe(), reason=undone.error))
                self._console.warning(f"{effect.undo_description}: {undone.error}")
            else:
                self._console.success(effect.undo_description)

        self._ledger.clear()

        if undo_errors:
            self._state = ReleaseState.REVERT_FAILED
            failed = RevertFailed(run_error=self._run_error, undo_errors=tuple(undo_errors))
            self._console.error(failed.message)
            self._console.print(f"hint: {failed.hint}", Style.DIM)
            return Err(failed)

        self._state = ReleaseState.REVERTED
        self._console.success("all side effects reverted")
        return Ok(None)
