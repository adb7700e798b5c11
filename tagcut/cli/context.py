from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer

from tagcut.core.config import CONFIG_FILE_NAME, Config, load_config_or_default
from tagcut.core.errors import ErrorCode
from tagcut.core.result import Err
from tagcut.git.repository import GitRepository
from tagcut.host.github import GitHubHost
from tagcut.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: Config
    console: ConsoleProtocol
    repo: GitRepository
    host: GitHubHost


def exit_with(message: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(code=int(code))


def build_context(
    *,
    directory: Path | None = None,
    config_path: Path | None = None,
    token: str | None = None,
) -> CLIContext:
    try:
        root = (directory or Path.cwd()).expanduser().resolve()
    except OSError as e:
        exit_with(f"invalid --dir: {e}", code=ErrorCode.USER_ERROR)

    if not root.is_dir():
        exit_with(f"--dir '{root}' is not a directory", code=ErrorCode.USER_ERROR)
    if not (root / ".git").exists():
        exit_with(f"'{root}' is not a git working copy", code=ErrorCode.USER_ERROR)

    config_result = load_config_or_default(config_path or root / CONFIG_FILE_NAME)
    if isinstance(config_result, Err):
        err = config_result.error
        hint = f" ({err.hint})" if err.hint else ""
        exit_with(f"{err.message}{hint}", code=ErrorCode.USER_ERROR)
    config = config_result.value

    return CLIContext(
        root=root,
        config=config,
        console=RichConsole(),
        repo=GitRepository(root, remote=config.release.remote),
        host=GitHubHost(token, api_url=config.host.api_url, timeout=config.host.timeout),
    )
