"""Git working copy access.

``RepositoryInspector`` is the read-only capability set used by the Dry
phase. ``WorkingCopy`` extends it with the few mutations a release performs
(tag, push, commit). ``GitRepository`` implements both by shelling out to
``git``; tests substitute in-memory fakes.

Usage:
    repo = GitRepository(Path("."))
    match repo.is_clean():
        case Ok(True):
            ...
        case Ok(False):
            print("uncommitted changes")
        case Err(e):
            print(f"not a repository: {e.message}")
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from tagcut.core.deadline import Deadline
from tagcut.core.result import Err, Ok, Result
from tagcut.platform.process import ProcessError
from tagcut.platform.process import run as run_process

GIT_TIMEOUT_SECONDS = 30.0
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "clone", "ls-remote"})

# https://host/owner/name(.git), git@host:owner/name(.git), ssh://git@host/owner/name
_REMOTE_RE = re.compile(r"(?:[:/])(?P<owner>[^/:]+)/(?P<name>[^/]+?)(?:\.git)?/?$")

__all__ = [
    "GitRepository",
    "GitStatus",
    "RepositoryError",
    "RepositoryIdentity",
    "RepositoryInspector",
    "StatusEntry",
    "WorkingCopy",
    "parse_remote_url",
]


@dataclass(frozen=True, slots=True)
class RepositoryError:
    """A git invocation failed.

    Attributes:
        command: The git subcommand that failed
        message: Error message (git's stderr when available)
        returncode: Process return code (-1 when git never finished)
    """

    command: str
    message: str
    returncode: int = 1

    def pretty(self) -> str:
        return f"git {self.command}: {self.message}"


@dataclass(frozen=True, slots=True)
class RepositoryIdentity:
    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """One ``git status --porcelain`` line.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    @property
    def is_staged(self) -> bool:
        return self.xy != "??" and self.xy[0] != " "

    @property
    def is_unstaged(self) -> bool:
        return self.xy != "??" and self.xy[1] != " "

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed porcelain status: branch line plus file entries."""

    branch: str
    upstream: str | None = None
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0

    @property
    def staged(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.is_staged]

    @property
    def unstaged(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.is_unstaged]

    @property
    def untracked(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.is_untracked]


class RepositoryInspector(Protocol):
    """Read-only queries against a working copy."""

    @property
    def root(self) -> Path: ...

    def is_clean(self, *, deadline: Deadline | None = None) -> Result[bool, RepositoryError]: ...

    def repository_identity(
        self, *, deadline: Deadline | None = None
    ) -> Result[RepositoryIdentity, RepositoryError]: ...

    def current_branch(self, *, deadline: Deadline | None = None) -> Result[str, RepositoryError]: ...

    def current_commit(
        self, *, short: bool = False, deadline: Deadline | None = None
    ) -> Result[str, RepositoryError]: ...

    def previous_tag(
        self, *, deadline: Deadline | None = None
    ) -> Result[str | None, RepositoryError]: ...

    def log_subjects(
        self, *, since: str | None, deadline: Deadline | None = None
    ) -> Result[list[str], RepositoryError]: ...


class WorkingCopy(RepositoryInspector, Protocol):
    """Inspector plus the mutations a release performs."""

    def create_tag(
        self, tag: str, *, message: str, deadline: Deadline | None = None
    ) -> Result[None, RepositoryError]: ...

    def delete_tag(self, tag: str, *, deadline: Deadline | None = None) -> Result[None, RepositoryError]: ...

    def push_tag(
        self, remote: str, tag: str, *, deadline: Deadline | None = None
    ) -> Result[None, RepositoryError]: ...

    def delete_remote_tag(
        self, remote: str, tag: str, *, deadline: Deadline | None = None
    ) -> Result[None, RepositoryError]: ...

    def commit_paths(
        self, paths: list[str], *, message: str, deadline: Deadline | None = None
    ) -> Result[str, RepositoryError]: ...

    def push_branch(
        self, remote: str, branch: str, *, deadline: Deadline | None = None
    ) -> Result[None, RepositoryError]: ...

    def reset_to(self, commit: str, *, deadline: Deadline | None = None) -> Result[None, RepositoryError]: ...


def parse_remote_url(url: str) -> RepositoryIdentity | None:
    """Extract owner/name from an https, scp-like or ssh remote URL."""
    m = _REMOTE_RE.search(url.strip())
    if m is None:
        return None
    return RepositoryIdentity(owner=m.group("owner"), name=m.group("name"))


class GitRepository:
    """WorkingCopy backed by the ``git`` executable.

    Attributes:
        path: Working copy root
        remote: Remote used to derive the repository identity
    """

    def __init__(self, path: Path, *, remote: str = "origin") -> None:
        self.path = path
        self.remote = remote

    @property
    def root(self) -> Path:
        return self.path

    def exists(self) -> bool:
        return (self.path / ".git").exists()

    def git_dir(self, *, deadline: Deadline | None = None) -> Result[Path, RepositoryError]:
        """Absolute path of the .git directory (handles worktrees)."""
        out = self._query(["rev-parse", "--absolute-git-dir"], deadline=deadline)
        if isinstance(out, Err):
            return out
        return Ok(Path(out.value))

    # -- inspection ---------------------------------------------------------

    def status(self, *, deadline: Deadline | None = None) -> Result[GitStatus, RepositoryError]:
        """Runs ``git status --porcelain=v1 -b`` and parses the output."""
        result = self._run(["status", "--porcelain=v1", "-b"], deadline=deadline)
        match result:
            case Err(e):
                return Err(_to_repo_error("status", e))
            case Ok(stdout):
                return Ok(_parse_status(stdout))

    def is_clean(self, *, deadline: Deadline | None = None) -> Result[bool, RepositoryError]:
        st = self.status(deadline=deadline)
        if isinstance(st, Err):
            return st
        return Ok(st.value.is_clean)

    def repository_identity(
        self, *, deadline: Deadline | None = None
    ) -> Result[RepositoryIdentity, RepositoryError]:
        url = self._query(["remote", "get-url", self.remote], deadline=deadline)
        if isinstance(url, Err):
            return url
        identity = parse_remote_url(url.value)
        if identity is None:
            return Err(
                RepositoryError(
                    command="remote get-url",
                    message=f"cannot derive owner/name from remote URL: {url.value}",
                )
            )
        return Ok(identity)

    def current_branch(self, *, deadline: Deadline | None = None) -> Result[str, RepositoryError]:
        out = self._query(["rev-parse", "--abbrev-ref", "HEAD"], deadline=deadline)
        if isinstance(out, Err):
            return out
        if out.value == "HEAD":
            return Err(
                RepositoryError(command="rev-parse --abbrev-ref HEAD", message="detached HEAD")
            )
        return out

    def current_commit(
        self, *, short: bool = False, deadline: Deadline | None = None
    ) -> Result[str, RepositoryError]:
        args = ["rev-parse", "--short", "HEAD"] if short else ["rev-parse", "HEAD"]
        return self._query(args, deadline=deadline)

    def previous_tag(
        self, *, deadline: Deadline | None = None
    ) -> Result[str | None, RepositoryError]:
        """Most recent tag reachable from HEAD, or None when there is none."""
        result = self._run(["describe", "--tags", "--abbrev=0"], deadline=deadline)
        match result:
            case Ok(stdout):
                return Ok(stdout.strip() or None)
            case Err(e):
                if e.returncode > 0 and "no names found" in e.stderr.lower():
                    return Ok(None)
                if e.returncode > 0 and "no tags can describe" in e.stderr.lower():
                    return Ok(None)
                return Err(_to_repo_error("describe", e))

    def log_subjects(
        self, *, since: str | None, deadline: Deadline | None = None
    ) -> Result[list[str], RepositoryError]:
        rev = f"{since}..HEAD" if since else "HEAD"
        out = self._query(["log", "--format=%s", rev], deadline=deadline)
        if isinstance(out, Err):
            return out
        return Ok([ln for ln in out.value.splitlines() if ln.strip()])

    # -- mutations ----------------------------------------------------------

    def create_tag(
        self, tag: str, *, message: str, deadline: Deadline | None = None
    ) -> Result[None, RepositoryError]:
        return self._mutate(["tag", "-a", tag, "-m", message], deadline=deadline)

    def delete_tag(self, tag: str, *, deadline: Deadline | None = None) -> Result[None, RepositoryError]:
        return self._mutate(["tag", "-d", tag], deadline=deadline)

    def push_tag(
        self, remote: str, tag: str, *, deadline: Deadline | None = None
    ) -> Result[None, RepositoryError]:
        return self._mutate(["push", remote, f"refs/tags/{tag}"], deadline=deadline)

    def delete_remote_tag(
        self, remote: str, tag: str, *, deadline: Deadline | None = None
    ) -> Result[None, RepositoryError]:
        return self._mutate(["push", remote, "--delete", f"refs/tags/{tag}"], deadline=deadline)

    def commit_paths(
        self, paths: list[str], *, message: str, deadline: Deadline | None = None
    ) -> Result[str, RepositoryError]:
        """Stage ``paths`` (deletions included), commit them and return the new commit id."""
        added = self._mutate(["add", "-A", "--", *paths], deadline=deadline)
        if isinstance(added, Err):
            return added
        committed = self._mutate(["commit", "-m", message, "--", *paths], deadline=deadline)
        if isinstance(committed, Err):
            return committed
        return self.current_commit(deadline=deadline)

    def push_branch(
        self, remote: str, branch: str, *, deadline: Deadline | None = None
    ) -> Result[None, RepositoryError]:
        return self._mutate(["push", remote, f"HEAD:refs/heads/{branch}"], deadline=deadline)

    def reset_to(self, commit: str, *, deadline: Deadline | None = None) -> Result[None, RepositoryError]:
        """Move HEAD, index and tree back to ``commit`` (used only on a tree known to be clean)."""
        return self._mutate(["reset", "--hard", "-q", commit], deadline=deadline)

    # -- helpers ------------------------------------------------------------

    def _query(self, args: list[str], *, deadline: Deadline | None) -> Result[str, RepositoryError]:
        result = self._run(args, deadline=deadline)
        if isinstance(result, Err):
            return Err(_to_repo_error(" ".join(args[:3]), result.error))
        return Ok(result.value.strip())

    def _mutate(self, args: list[str], *, deadline: Deadline | None) -> Result[None, RepositoryError]:
        result = self._run(args, deadline=deadline)
        if isinstance(result, Err):
            return Err(_to_repo_error(" ".join(args[:2]), result.error))
        return Ok(None)

    def _run(self, args: list[str], *, deadline: Deadline | None) -> Result[str, ProcessError]:
        command = args[0] if args else ""
        cap = GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else GIT_TIMEOUT_SECONDS
        timeout = cap if deadline is None else deadline.timeout(cap)
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)


def _to_repo_error(command: str, e: ProcessError) -> RepositoryError:
    return RepositoryError(
        command=command,
        message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
        returncode=e.returncode,
    )


def _parse_status(output: str) -> GitStatus:
    """Parse ``git status --porcelain=v1 -b`` output."""
    lines = [ln for ln in output.splitlines() if ln.strip()]
    if not lines:
        return GitStatus(branch="")

    branch = ""
    upstream: str | None = None
    body = lines
    if lines[0].startswith("##"):
        branch, upstream = _parse_branch_line(lines[0])
        body = lines[1:]

    entries: list[StatusEntry] = []
    for line in body:
        if len(line) < 4:
            continue
        if line.startswith("?? "):
            entries.append(StatusEntry(xy="??", path=line[3:]))
            continue
        entries.append(StatusEntry(xy=line[:2], path=line[3:]))

    return GitStatus(branch=branch, upstream=upstream, entries=tuple(entries))


def _parse_branch_line(line: str) -> tuple[str, str | None]:
    """``## branch...upstream [ahead N]`` -> (branch, upstream)."""
    s = line[2:].strip()
    s = s.split(" [", 1)[0].strip()
    if "..." in s:
        left, right = s.split("...", 1)
        return (left.strip(), right.strip())
    return (s, None)
