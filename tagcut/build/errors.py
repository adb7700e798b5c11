from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class CommandMissing:
    hint: str = "Set [build].command in tagcut.toml"


@dataclass(frozen=True, slots=True)
class ToolMissing:
    tool: str
    hint: str = "Install it or fix [build].command"


@dataclass(frozen=True, slots=True)
class NoPlatforms:
    pass


@dataclass(frozen=True, slots=True)
class InvalidPlatform:
    platform: str


@dataclass(frozen=True, slots=True)
class InvalidTemplate:
    item: str
    reason: str


@dataclass(frozen=True, slots=True)
class CompileFailed:
    platform: str
    returncode: int
    stderr: str


@dataclass(frozen=True, slots=True)
class OutputMissing:
    path: Path


BuildError = (
    CommandMissing
    | ToolMissing
    | NoPlatforms
    | InvalidPlatform
    | InvalidTemplate
    | CompileFailed
    | OutputMissing
)


def describe_build_error(error: BuildError) -> str:
    match error:
        case CommandMissing():
            return "no build command configured"
        case ToolMissing(tool=tool):
            return f"build tool not found on PATH: {tool}"
        case NoPlatforms():
            return "no build platforms configured"
        case InvalidPlatform(platform=platform):
            return f"invalid platform {platform!r} (expected os-arch)"
        case InvalidTemplate(item=item, reason=reason):
            return f"invalid command template {item!r}: {reason}"
        case CompileFailed(platform=platform, returncode=rc, stderr=stderr):
            tail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
            msg = f"build for {platform} failed (exit {rc})"
            return f"{msg}: {tail}" if tail else msg
        case OutputMissing(path=path):
            return f"build output not found: {path}"
