"""Release command - Dry, Run and Revert one release."""

from __future__ import annotations

from pathlib import Path

import typer

from tagcut.build.builder import CommandArtifactBuilder
from tagcut.cli.commands._helpers import Model, release_model, select_segment
from tagcut.cli.context import build_context, exit_with
from tagcut.core.deadline import DEFAULT_RELEASE_TIMEOUT_SECONDS, Deadline
from tagcut.core.errors import ErrorCode
from tagcut.core.result import Err, Ok
from tagcut.output.console import ConsoleProtocol, Style
from tagcut.release.lock import LOCK_FILE_NAME, ReleaseLock
from tagcut.release.model import ReleasePlan, ReleaseRequest
from tagcut.release.orchestrator import ReleaseOrchestrator


def release(
    patch: bool = typer.Option(False, "--patch", help="Bump the patch segment (default)"),
    minor: bool = typer.Option(False, "--minor", help="Bump the minor segment"),
    major: bool = typer.Option(False, "--major", help="Bump the major segment"),
    comment: str = typer.Option("", "--comment", "-m", help="Release notes header"),
    build: bool | None = typer.Option(
        None,
        "--build/--no-build",
        help="Build and upload artifacts (default: release.build)",
        show_default=False,
    ),
    model: Model | None = typer.Option(
        None, "--model", help="Release branch model (default: release.model)", show_default=False
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate and print the plan only"),
    timeout: float = typer.Option(
        DEFAULT_RELEASE_TIMEOUT_SECONDS, "--timeout", min=1, help="Overall deadline in seconds"
    ),
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
    """Cut the next semantic-versioned release of a working copy."""
    ctx = build_context(directory=directory, config_path=config, token=token)

    use_build = ctx.config.release.build if build is None else build
    request = ReleaseRequest(
        working_directory=ctx.root,
        segment=select_segment(patch=patch, minor=minor, major=major),
        comment=comment,
        build=use_build,
        model=release_model(model),
    )
    orchestrator = ReleaseOrchestrator(
        repo=ctx.repo,
        host=ctx.host,
        config=ctx.config,
        console=ctx.console,
        builder=CommandArtifactBuilder(ctx.root, ctx.config.build) if use_build else None,
    )
    deadline = Deadline.after(timeout)

    if dry_run:
        match orchestrator.dry(request, deadline=deadline):
            case Ok(plan):
                _print_plan(plan, ctx.console)
                return
            case Err(error):
                raise typer.Exit(code=int(error.code))

    if not ctx.host.has_credential:
        exit_with("no credential: set GITHUB_TOKEN or pass --token", code=ErrorCode.USER_ERROR)

    git_dir = ctx.repo.git_dir(deadline=deadline)
    if isinstance(git_dir, Err):
        exit_with(git_dir.error.pretty(), code=ErrorCode.USER_ERROR)

    outcome = orchestrator.release(
        request, deadline=deadline, lock=ReleaseLock(git_dir.value / LOCK_FILE_NAME)
    )
    if not outcome.succeeded:
        raise typer.Exit(code=int(outcome.code))


def _print_plan(plan: ReleasePlan, console: ConsoleProtocol) -> None:
    console.header("Plan")
    console.print(f"repository: {plan.repo}", Style.DIM)
    console.print(f"branch: {plan.base_branch} @ {plan.head_commit[:12]}", Style.DIM)
    console.print(f"version: {plan.current_version} -> {plan.next_version} ({plan.segment})")
    console.print(f"tag: {plan.tag}")
    console.print(f"build: {'yes' if plan.build else 'no'}", Style.DIM)
    body = plan.body()
    if body:
        console.newline()
        console.print(body)
