"""Tests for tagcut.platform.process module."""

import sys
from pathlib import Path

from tagcut.core.result import Err, Ok
from tagcut.platform.process import run


def test_run_returns_stdout(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
    assert isinstance(result, Ok)
    assert result.value.strip() == "hello"


def test_nonzero_exit_is_err(tmp_path: Path) -> None:
    result = run(
        [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
        cwd=tmp_path,
    )
    assert isinstance(result, Err)
    assert result.error.returncode == 3
    assert result.error.stderr == "bad"


def test_missing_executable(tmp_path: Path) -> None:
    result = run(["definitely-not-a-real-binary-tagcut"], cwd=tmp_path)
    assert isinstance(result, Err)
    assert result.error.returncode == -1


def test_spent_budget_never_starts(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "print('x')"], cwd=tmp_path, timeout=0)
    assert isinstance(result, Err)
    assert result.error.timed_out


def test_timeout_kills_process(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)
    assert isinstance(result, Err)
    assert result.error.timed_out
