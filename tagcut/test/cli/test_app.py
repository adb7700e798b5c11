"""CLI tests: typer commands driven through CliRunner with in-memory fakes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from tagcut import __version__
from tagcut.cli.app import app
from tagcut.cli.context import CLIContext, build_context
from tagcut.core.config import Config
from tagcut.core.errors import ErrorCode
from tagcut.output.console import MockConsole
from tagcut.test.release.fakes import FakeHost, FakeWorkingCopy, mutating_calls

runner = CliRunner()


@dataclass
class Harness:
    root: Path
    repo: FakeWorkingCopy
    host: FakeHost
    console: MockConsole
    log: list[str]
    tokens: list[str | None]


@pytest.fixture
def harness(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Harness:
    import tagcut.cli.commands.next_cmd as next_cmd
    import tagcut.cli.commands.release_cmd as release_cmd

    root = tmp_path / "widget"
    (root / ".git").mkdir(parents=True)
    (root / "VERSION").write_text("1.4.2\n", encoding="utf-8")

    log: list[str] = []
    h = Harness(
        root=root,
        repo=FakeWorkingCopy(root, log=log),
        host=FakeHost(log=log),
        console=MockConsole(),
        log=log,
        tokens=[],
    )

    def fake_context(
        *, directory: Path | None = None, config_path: Path | None = None, token: str | None = None
    ) -> CLIContext:
        h.tokens.append(token)
        h.host.has_credential = bool(token)
        return CLIContext(
            root=root,
            config=Config(),
            console=h.console,
            repo=h.repo,  # type: ignore[arg-type]
            host=h.host,  # type: ignore[arg-type]
        )

    monkeypatch.setattr(release_cmd, "build_context", fake_context)
    monkeypatch.setattr(next_cmd, "build_context", fake_context)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return h


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip() == __version__


@pytest.mark.parametrize(
    "args",
    [
        ["release", "--bogus"],
        ["release", "--timeout", "0"],
        ["release", "--model", "trunk"],
        ["next", "--history", "extra"],
        ["publish"],
    ],
)
def test_bad_flags_are_user_error(harness: Harness, args: list[str]) -> None:
    result = runner.invoke(app, args)

    assert result.exit_code == ErrorCode.USER_ERROR, result.output
    assert mutating_calls(harness.log) == []


def test_release_publishes(harness: Harness) -> None:
    result = runner.invoke(app, ["release", "--minor", "--token", "t0ken"])

    assert result.exit_code == 0, result.output
    assert harness.tokens == ["t0ken"]
    assert "push_tag v1.5.0" in harness.log
    assert not (harness.root / ".git" / "tagcut.lock").exists()


def test_token_from_environment(harness: Harness) -> None:
    result = runner.invoke(app, ["release"], env={"GITHUB_TOKEN": "from-env"})

    assert result.exit_code == 0, result.output
    assert harness.tokens == ["from-env"]


def test_release_without_credential_is_user_error(harness: Harness) -> None:
    result = runner.invoke(app, ["release"])

    assert result.exit_code == ErrorCode.USER_ERROR
    assert "no credential" in result.output
    assert mutating_calls(harness.log) == []


def test_dry_run_prints_plan_without_side_effects(harness: Harness) -> None:
    result = runner.invoke(app, ["release", "--dry-run", "--minor", "--major", "-m", "Big"])

    assert result.exit_code == 0, result.output
    assert "tag: v2.0.0" in harness.console.text
    assert "Big" in harness.console.text
    assert mutating_calls(harness.log) == []


def test_validation_failure_exit_code(harness: Harness) -> None:
    harness.repo.clean = False

    result = runner.invoke(app, ["release", "--token", "t"])

    assert result.exit_code == ErrorCode.VALIDATION_FAILED
    assert harness.console.has_error()
    assert "dirty working copy" in harness.console.text


def test_run_failure_exit_code(harness: Harness) -> None:
    harness.host.failures["create_release"] = "boom"

    result = runner.invoke(app, ["release", "--token", "t"])

    assert result.exit_code == ErrorCode.RUN_FAILED
    assert "delete_remote_tag v1.4.3" in harness.log


def test_revert_failure_exit_code(harness: Harness) -> None:
    harness.host.failures["create_release"] = "boom"
    harness.repo.failures["delete_remote_tag"] = "permission denied"

    result = runner.invoke(app, ["release", "--token", "t"])

    assert result.exit_code == ErrorCode.REVERT_FAILED
    assert "manual cleanup" in harness.console.text


def test_branch_model_flag(harness: Harness) -> None:
    result = runner.invoke(app, ["release", "--dry-run", "--model", "branch"])

    assert result.exit_code == ErrorCode.VALIDATION_FAILED
    assert "wrong release branch" in harness.console.text


def test_next_prints_version(harness: Harness) -> None:
    result = runner.invoke(app, ["next", "--minor"])

    assert result.exit_code == 0, result.output
    assert "current: 1.4.2" in harness.console.text
    assert "next: 1.5.0 (v1.5.0)" in harness.console.text
    assert mutating_calls(harness.log) == []


def test_next_history(harness: Harness) -> None:
    harness.host.add_release("v1.3.0", draft=True)

    result = runner.invoke(app, ["next", "--history"])

    assert result.exit_code == 0, result.output
    assert "v1.3.0 draft" in harness.console.text
    assert "v1.4.2" in harness.console.text


# =============================================================================
# build_context
# =============================================================================


def test_context_rejects_non_repository(tmp_path: Path) -> None:
    with pytest.raises(typer.Exit) as exc:
        build_context(directory=tmp_path)
    assert exc.value.exit_code == ErrorCode.USER_ERROR


def test_context_rejects_invalid_config(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    (tmp_path / "tagcut.toml").write_text('[release]\nmodel = "trunk"\n', encoding="utf-8")

    with pytest.raises(typer.Exit) as exc:
        build_context(directory=tmp_path)
    assert exc.value.exit_code == ErrorCode.USER_ERROR


def test_context_loads_config(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    (tmp_path / "tagcut.toml").write_text('[release]\nremote = "upstream"\n', encoding="utf-8")

    ctx = build_context(directory=tmp_path, token="t")

    assert ctx.root == tmp_path.resolve()
    assert ctx.config.release.remote == "upstream"
    assert ctx.repo.remote == "upstream"
    assert ctx.host.has_credential
