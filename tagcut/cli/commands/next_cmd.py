"""Next command - print the version a release would produce."""

from __future__ import annotations

from pathlib import Path

import typer

from tagcut.cli.commands._helpers import select_segment
from tagcut.cli.context import CLIContext, build_context
from tagcut.core.deadline import Deadline
from tagcut.core.result import Err
from tagcut.output.console import Style
from tagcut.release.model import ReleaseRequest
from tagcut.release.orchestrator import ReleaseOrchestrator

HISTORY_LIMIT = 5


def next_version(
    patch: bool = typer.Option(False, "--patch", help="Bump the patch segment (default)"),
    minor: bool = typer.Option(False, "--minor", help="Bump the minor segment"),
    major: bool = typer.Option(False, "--major", help="Bump the major segment"),
    history: bool = typer.Option(False, "--history", help="Also list recent releases"),
    directory: Path | None = typer.Option(
        None, "--dir", help="Working copy (default: current directory)", show_default=False
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: <dir>/tagcut.toml)", show_default=False
    ),
    token: str | None = typer.Option(
        None, "--token", envvar="GITHUB_TOKEN", help="API credential", show_default=False
    ),
) -> None:
    """Print the next version and tag without side effects."""
    ctx = build_context(directory=directory, config_path=config, token=token)
    request = ReleaseRequest(
        working_directory=ctx.root,
        segment=select_segment(patch=patch, minor=minor, major=major),
    )
    orchestrator = ReleaseOrchestrator(
        repo=ctx.repo, host=ctx.host, config=ctx.config, console=ctx.console
    )
    deadline = Deadline.after(ctx.config.host.timeout * 2)

    versions = orchestrator.compute_versions(request, deadline=deadline)
    if isinstance(versions, Err):
        ctx.console.error(versions.error.message)
        raise typer.Exit(code=int(versions.error.code))

    current, upcoming = versions.value
    ctx.console.print(f"current: {current}", Style.DIM)
    ctx.console.print(f"next: {upcoming} ({upcoming.tag(ctx.config.release.tag_prefix)})")

    if history:
        _print_history(ctx, deadline)


def _print_history(ctx: CLIContext, deadline: Deadline) -> None:
    console = ctx.console
    identity = ctx.repo.repository_identity(deadline=deadline)
    if isinstance(identity, Err):
        console.warning(identity.error.pretty())
        return
    releases = ctx.host.get_releases(identity.value.slug, deadline=deadline)
    if isinstance(releases, Err):
        console.warning(releases.error.message)
        return

    console.header("Recent releases")
    if not releases.value:
        console.print("(none)", Style.DIM)
    for r in releases.value[:HISTORY_LIMIT]:
        flags = " draft" if r.draft else ""
        flags += " prerelease" if r.prerelease else ""
        console.print(f"{r.tag_name}{flags}")
