from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from tagcut.core.result import Err, Ok, Result
from tagcut.release.errors import ParseError

Segment = Literal["major", "minor", "patch"]

SEGMENTS: tuple[Segment, ...] = ("patch", "minor", "major")

DEFAULT_TAG_PREFIX = "v"

_NUM = r"0|[1-9]\d*"
_IDENT = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
_SEMVER_RE = re.compile(
    rf"^(?P<major>{_NUM})\.(?P<minor>{_NUM})\.(?P<patch>{_NUM})"
    rf"(?:-(?P<pre>{_IDENT}(?:\.{_IDENT})*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$",
    re.ASCII,
)


@dataclass(frozen=True, slots=True, eq=True)
class SemanticVersion:
    """A semver 2.0.0 version.

    Equality is structural (build metadata included) so that rendering then
    parsing is the identity. Ordering follows semver precedence, which
    ranks a prerelease below its release and ignores build metadata: for
    ``1.0.0+a`` and ``1.0.0+b`` both ``<=`` and ``>=`` hold while ``==`` does not.
    """

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    def __str__(self) -> str:
        s = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            s += f"-{self.prerelease}"
        if self.build:
            s += f"+{self.build}"
        return s

    def tag(self, prefix: str = DEFAULT_TAG_PREFIX) -> str:
        return f"{prefix}{self}"

    def bump(self, segment: Segment) -> SemanticVersion:
        """Next release version.

        On a release version only the bumped segment changes (lower segments
        reset). The result is always a release, so prerelease and build
        metadata are dropped.
        """
        match segment:
            case "major":
                return SemanticVersion(self.major + 1, 0, 0)
            case "minor":
                return SemanticVersion(self.major, self.minor + 1, 0)
            case "patch":
                return SemanticVersion(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected segment: {segment}")

    def bump_major(self) -> SemanticVersion:
        return self.bump("major")

    def bump_minor(self) -> SemanticVersion:
        return self.bump("minor")

    def bump_patch(self) -> SemanticVersion:
        return self.bump("patch")

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) >= 0


def parse(text: str, *, prefix: str = DEFAULT_TAG_PREFIX) -> Result[SemanticVersion, ParseError]:
    """Parse "1.2.3", "1.2.3-rc.1+build.5" or a prefixed tag such as "v1.2.3"."""
    s = text.strip()
    if prefix and s.startswith(prefix):
        s = s[len(prefix) :]

    m = _SEMVER_RE.match(s)
    if m is None:
        return Err(ParseError(text=text, message=f"invalid semantic version: {text!r}"))

    return Ok(
        SemanticVersion(
            major=int(m.group("major")),
            minor=int(m.group("minor")),
            patch=int(m.group("patch")),
            prerelease=m.group("pre"),
            build=m.group("build"),
        )
    )


def compare(a: SemanticVersion, b: SemanticVersion) -> int:
    """-1, 0 or 1 by semver precedence."""
    core_a = (a.major, a.minor, a.patch)
    core_b = (b.major, b.minor, b.patch)
    if core_a != core_b:
        return -1 if core_a < core_b else 1
    return _compare_prerelease(a.prerelease, b.prerelease)


def _compare_prerelease(a: str | None, b: str | None) -> int:
    if a == b:
        return 0
    # A version without prerelease outranks any prerelease of it.
    if a is None:
        return 1
    if b is None:
        return -1

    ids_a = a.split(".")
    ids_b = b.split(".")
    for x, y in zip(ids_a, ids_b):
        if x == y:
            continue
        x_num, y_num = x.isdigit(), y.isdigit()
        if x_num and y_num:
            return -1 if int(x) < int(y) else 1
        # Numeric identifiers rank below alphanumeric ones.
        if x_num:
            return -1
        if y_num:
            return 1
        return -1 if x < y else 1

    if len(ids_a) == len(ids_b):
        return 0
    return -1 if len(ids_a) < len(ids_b) else 1
