"""Artifact builder: runs a command template once per target platform.

The builder only produces local files. It is not a side effect the release
has to undo, so nothing here touches the ledger.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from tagcut.build.errors import (
    BuildError,
    CommandMissing,
    CompileFailed,
    InvalidPlatform,
    InvalidTemplate,
    NoPlatforms,
    OutputMissing,
    ToolMissing,
)
from tagcut.core.config import BuildConfig
from tagcut.core.deadline import Deadline
from tagcut.core.result import Err, Ok, Result
from tagcut.platform.process import run as run_process

BUILD_TIMEOUT_SECONDS = 5 * 60.0

_PLACEHOLDERS = frozenset({"version", "platform", "os", "arch", "output"})


@dataclass(frozen=True, slots=True)
class BuildTarget:
    platform: str
    os: str
    arch: str
    output: Path


class ArtifactBuilder(Protocol):
    def resolve(self, version: str) -> Result[tuple[BuildTarget, ...], BuildError]:
        """Check the configuration and list what ``build`` would produce."""
        ...

    def build(self, version: str, *, deadline: Deadline | None = None) -> Result[list[Path], BuildError]: ...


class CommandArtifactBuilder:
    """ArtifactBuilder driven by ``[build]`` in tagcut.toml.

    Each platform ``os-arch`` gets ``{output_dir}/{name}-{os}-{arch}`` (with
    ``.exe`` on windows). The command sees ``TAGCUT_OS`` / ``TAGCUT_ARCH`` and,
    for Go projects, ``GOOS`` / ``GOARCH``.
    """

    def __init__(self, root: Path, config: BuildConfig) -> None:
        self.root = root
        self.config = config

    def resolve(self, version: str) -> Result[tuple[BuildTarget, ...], BuildError]:
        if not self.config.command:
            return Err(CommandMissing())
        if shutil.which(self.config.command[0]) is None:
            return Err(ToolMissing(tool=self.config.command[0]))
        if not self.config.platforms:
            return Err(NoPlatforms())

        targets: list[BuildTarget] = []
        for platform in self.config.platforms:
            os_name, sep, arch = platform.partition("-")
            if not sep or not os_name or not arch:
                return Err(InvalidPlatform(platform=platform))
            suffix = ".exe" if os_name == "windows" else ""
            output = self.root / self.config.output_dir / f"{self.config.name}-{platform}{suffix}"
            targets.append(BuildTarget(platform=platform, os=os_name, arch=arch, output=output))

        # Render once up front so a broken template fails in Dry, not Run.
        for item in self.config.command:
            rendered = _render(item, version=version, target=targets[0])
            if isinstance(rendered, Err):
                return rendered

        return Ok(tuple(targets))

    def build(self, version: str, *, deadline: Deadline | None = None) -> Result[list[Path], BuildError]:
        targets = self.resolve(version)
        if isinstance(targets, Err):
            return targets

        outputs: list[Path] = []
        for target in targets.value:
            target.output.parent.mkdir(parents=True, exist_ok=True)

            cmd: list[str] = []
            for item in self.config.command:
                rendered = _render(item, version=version, target=target)
                if isinstance(rendered, Err):
                    return rendered
                cmd.append(rendered.value)

            env = {
                **os.environ,
                "TAGCUT_VERSION": version,
                "TAGCUT_OS": target.os,
                "TAGCUT_ARCH": target.arch,
                "GOOS": target.os,
                "GOARCH": target.arch,
            }
            timeout = (
                BUILD_TIMEOUT_SECONDS if deadline is None else deadline.timeout(BUILD_TIMEOUT_SECONDS)
            )
            result = run_process(cmd, cwd=self.root, env=env, timeout=timeout)
            if isinstance(result, Err):
                e = result.error
                return Err(CompileFailed(platform=target.platform, returncode=e.returncode, stderr=e.stderr))

            if not target.output.is_file():
                return Err(OutputMissing(path=target.output))
            outputs.append(target.output)

        return Ok(outputs)


def _render(item: str, *, version: str, target: BuildTarget) -> Result[str, BuildError]:
    try:
        return Ok(
            item.format(
                version=version,
                platform=target.platform,
                os=target.os,
                arch=target.arch,
                output=str(target.output),
            )
        )
    except KeyError as e:
        return Err(
            InvalidTemplate(
                item=item,
                reason=f"unknown placeholder {e}; allowed: {', '.join(sorted(_PLACEHOLDERS))}",
            )
        )
    except (IndexError, ValueError) as e:
        return Err(InvalidTemplate(item=item, reason=str(e)))
