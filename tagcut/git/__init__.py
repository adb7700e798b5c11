"""Git working copy abstractions.

Usage:
    from tagcut.git import GitRepository

    repo = GitRepository(Path("."))
    branch = repo.current_branch()
"""

from tagcut.git.repository import (
    GitRepository,
    GitStatus,
    RepositoryError,
    RepositoryIdentity,
    RepositoryInspector,
    StatusEntry,
    WorkingCopy,
    parse_remote_url,
)

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
