from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tagcut.core.result import Err, Ok, Result
from tagcut.release.semver import SemanticVersion, parse


@dataclass(frozen=True, slots=True)
class VersionFileError:
    path: Path
    message: str


@dataclass(frozen=True, slots=True)
class VersionFile:
    """Plain-text file whose first non-blank line is the current version."""

    root: Path
    relpath: str

    @property
    def path(self) -> Path:
        return self.root / self.relpath

    def exists(self) -> bool:
        return self.path.is_file()

    def read_text(self) -> Result[str | None, VersionFileError]:
        """Raw content, or None when the file does not exist."""
        try:
            return Ok(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Ok(None)
        except (OSError, UnicodeDecodeError) as e:
            return Err(VersionFileError(self.path, f"cannot read: {e}"))

    def read_version(self) -> Result[SemanticVersion | None, VersionFileError]:
        content = self.read_text()
        if isinstance(content, Err):
            return content
        if content.value is None:
            return Ok(None)

        first = next((ln.strip() for ln in content.value.splitlines() if ln.strip()), "")
        parsed = parse(first)
        if isinstance(parsed, Err):
            return Err(VersionFileError(self.path, parsed.error.message))
        return Ok(parsed.value)

    def write_version(self, version: SemanticVersion) -> Result[None, VersionFileError]:
        return self.write_text(f"{version}\n")

    def write_text(self, content: str) -> Result[None, VersionFileError]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            return Err(VersionFileError(self.path, f"cannot write: {e}"))
        return Ok(None)

    def restore(self, previous: str | None) -> Result[None, VersionFileError]:
        """Put back ``previous`` content; None means the file did not exist."""
        if previous is not None:
            return self.write_text(previous)
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            return Err(VersionFileError(self.path, f"cannot remove: {e}"))
        return Ok(None)
