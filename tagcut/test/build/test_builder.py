"""Tests for tagcut.build.builder."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from tagcut.build.builder import CommandArtifactBuilder
from tagcut.build.errors import (
    CommandMissing,
    CompileFailed,
    InvalidPlatform,
    InvalidTemplate,
    NoPlatforms,
    OutputMissing,
    ToolMissing,
    describe_build_error,
)
from tagcut.core.config import BuildConfig
from tagcut.core.result import Err, Ok

WRITE_OUTPUT = (
    "import os, sys, pathlib; "
    "pathlib.Path(sys.argv[1]).write_text(sys.argv[2] + ':' + os.environ['GOOS'])"
)


def _builder(tmp_path: Path, **overrides: object) -> CommandArtifactBuilder:
    fields: dict[str, object] = {
        "command": (sys.executable, "-c", WRITE_OUTPUT, "{output}", "{version}-{os}-{arch}"),
        "name": "widget",
        "platforms": ("linux-amd64", "windows-386"),
    }
    fields.update(overrides)
    return CommandArtifactBuilder(tmp_path, BuildConfig(**fields))  # type: ignore[arg-type]


class TestResolve:
    def test_targets(self, tmp_path: Path) -> None:
        result = _builder(tmp_path).resolve("1.5.0")

        assert isinstance(result, Ok)
        assert [(t.os, t.arch) for t in result.value] == [("linux", "amd64"), ("windows", "386")]
        assert result.value[0].output == tmp_path / "bin" / "widget-linux-amd64"
        assert result.value[1].output == tmp_path / "bin" / "widget-windows-386.exe"

    @pytest.mark.parametrize(
        ("overrides", "error_type"),
        [
            ({"command": ()}, CommandMissing),
            ({"command": ("definitely-not-a-real-compiler",)}, ToolMissing),
            ({"platforms": ()}, NoPlatforms),
            ({"platforms": ("linux",)}, InvalidPlatform),
            ({"command": (sys.executable, "{nope}")}, InvalidTemplate),
            ({"command": (sys.executable, "{0}")}, InvalidTemplate),
        ],
    )
    def test_unresolvable(self, tmp_path: Path, overrides: dict[str, object], error_type: type) -> None:
        result = _builder(tmp_path, **overrides).resolve("1.5.0")

        assert isinstance(result, Err)
        assert isinstance(result.error, error_type)
        assert describe_build_error(result.error)


class TestBuild:
    def test_builds_every_platform(self, tmp_path: Path) -> None:
        result = _builder(tmp_path).build("1.5.0")

        assert isinstance(result, Ok)
        assert [p.name for p in result.value] == ["widget-linux-amd64", "widget-windows-386.exe"]
        assert result.value[0].read_text() == "1.5.0-linux-amd64:linux"
        assert result.value[1].read_text() == "1.5.0-windows-386:windows"

    def test_compile_failure(self, tmp_path: Path) -> None:
        command = (sys.executable, "-c", "import sys; sys.exit('broken build')")
        result = _builder(tmp_path, command=command).build("1.5.0")

        assert isinstance(result, Err)
        assert isinstance(result.error, CompileFailed)
        assert result.error.platform == "linux-amd64"
        assert "broken build" in describe_build_error(result.error)

    def test_missing_output(self, tmp_path: Path) -> None:
        result = _builder(tmp_path, command=(sys.executable, "-c", "pass")).build("1.5.0")

        assert isinstance(result, Err)
        assert isinstance(result.error, OutputMissing)
