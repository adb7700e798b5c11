"""Typed configuration loaded from ``tagcut.toml``.

The file is optional. Every table and key falls back to a default, and the
resulting ``Config`` is passed explicitly to the orchestrator so no phase
reads configuration from disk on its own.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_float,
    get_int,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "BuildConfig",
    "Config",
    "ConfigError",
    "HostConfig",
    "ReleaseConfig",
    "ReleaseModel",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "tagcut.toml"

ReleaseModel = Literal["master", "branch"]

_DEFAULT_PLATFORMS = (
    "linux-386",
    "linux-amd64",
    "linux-arm",
    "linux-arm64",
    "darwin-amd64",
    "darwin-arm64",
    "windows-386",
    "windows-amd64",
)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Config file could not be read or has the wrong shape."""

    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    model: ReleaseModel = "master"
    branch: str = "main"
    branch_prefix: str = "release/"
    remote: str = "origin"
    # Empty string disables the version-file step.
    version_file: str = "VERSION"
    tag_prefix: str = "v"
    draft: bool = False
    prerelease: bool = False
    protect_admins: bool = False
    build: bool = False


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Command template run once per platform to produce release assets.

    ``command`` items may reference ``{version}``, ``{platform}``, ``{os}``,
    ``{arch}`` and ``{output}``.
    """

    command: tuple[str, ...] = ()
    output_dir: str = "bin"
    name: str = "app"
    platforms: tuple[str, ...] = _DEFAULT_PLATFORMS
    upload_workers: int = 1


@dataclass(frozen=True, slots=True)
class HostConfig:
    api_url: str = "https://api.github.com"
    timeout: float = 60.0


@dataclass(frozen=True, slots=True)
class Config:
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    host: HostConfig = field(default_factory=HostConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from parsed TOML.

        Raises:
            ValueError: when a key has a value outside its allowed set.
        """
        release: StrDict = get_table(data, "release") or {}
        build: StrDict = get_table(data, "build") or {}
        host: StrDict = get_table(data, "host") or {}

        rd = ReleaseConfig()
        model = get_str(release, "model") or rd.model
        if model not in ("master", "branch"):
            raise ValueError(f"release.model must be 'master' or 'branch', got {model!r}")

        version_file = release.get("version_file")
        if version_file is not None and not isinstance(version_file, str):
            raise ValueError("release.version_file must be a string")

        bd = BuildConfig()
        workers = get_int(build, "upload_workers")
        if workers is not None and workers < 1:
            raise ValueError("build.upload_workers must be >= 1")

        hd = HostConfig()
        timeout = get_float(host, "timeout")
        if timeout is not None and timeout <= 0:
            raise ValueError("host.timeout must be positive")

        return cls(
            release=ReleaseConfig(
                model="branch" if model == "branch" else "master",
                branch=get_str(release, "branch") or rd.branch,
                branch_prefix=get_str(release, "branch_prefix") or rd.branch_prefix,
                remote=get_str(release, "remote") or rd.remote,
                version_file=(
                    version_file.strip() if isinstance(version_file, str) else rd.version_file
                ),
                tag_prefix=_get_prefix(release, rd.tag_prefix),
                draft=_bool_or(release, "draft", rd.draft),
                prerelease=_bool_or(release, "prerelease", rd.prerelease),
                protect_admins=_bool_or(release, "protect_admins", rd.protect_admins),
                build=_bool_or(release, "build", rd.build),
            ),
            build=BuildConfig(
                command=tuple(get_str_list(build, "command") or bd.command),
                output_dir=get_str(build, "output_dir") or bd.output_dir,
                name=get_str(build, "name") or bd.name,
                platforms=tuple(get_str_list(build, "platforms") or bd.platforms),
                upload_workers=workers or bd.upload_workers,
            ),
            host=HostConfig(
                api_url=(get_str(host, "api_url") or hd.api_url).rstrip("/"),
                timeout=timeout or hd.timeout,
            ),
        )


def _bool_or(table: Mapping[str, object], key: str, default: bool) -> bool:
    value = get_bool(table, key)
    return default if value is None else value


def _get_prefix(table: Mapping[str, object], default: str) -> str:
    # An explicit empty prefix is allowed (tags like "1.2.3").
    value = table.get("tag_prefix")
    return value if isinstance(value, str) else default


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate configuration from a TOML file."""
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(
            ConfigError(
                f"Invalid config structure: {e}",
                path=path,
                hint=f"Fix {path.name} or remove it to use defaults",
            )
        )


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file yields the default Config.

    A file that exists but cannot be parsed is still an error: silently
    releasing with defaults would ignore the user's intent.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
