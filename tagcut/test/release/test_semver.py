"""Tests for tagcut.release.semver module."""

import pytest

from tagcut.core.result import Err, Ok
from tagcut.release.semver import SemanticVersion, compare, parse


class TestParse:
    def test_plain(self) -> None:
        assert parse("1.4.2") == Ok(SemanticVersion(1, 4, 2))

    def test_prefixed_tag(self) -> None:
        assert parse("v1.4.2") == Ok(SemanticVersion(1, 4, 2))

    def test_custom_prefix(self) -> None:
        assert parse("release-2.0.0", prefix="release-") == Ok(SemanticVersion(2, 0, 0))

    def test_prerelease_and_build(self) -> None:
        result = parse("1.0.0-rc.1+build.5")
        assert result == Ok(SemanticVersion(1, 0, 0, prerelease="rc.1", build="build.5"))

    @pytest.mark.parametrize(
        "text",
        ["", "1", "1.2", "1.2.3.4", "01.2.3", "1.2.3-", "1.2.3-01", "v", "x1.2.3", "1.2.٣"],
    )
    def test_invalid(self, text: str) -> None:
        result = parse(text)
        assert isinstance(result, Err)
        assert result.error.text == text

    @pytest.mark.parametrize("text", ["0.0.0", "1.2.3", "10.20.30-alpha.1", "1.0.0+sha.5114f85"])
    def test_render_then_parse_is_identity(self, text: str) -> None:
        version = parse(text).unwrap()
        assert str(version) == text
        assert parse(str(version)) == Ok(version)


class TestBump:
    def test_minor_release_scenario(self) -> None:
        nxt = SemanticVersion(1, 4, 2).bump("minor")
        assert nxt == SemanticVersion(1, 5, 0)
        assert nxt.tag() == "v1.5.0"

    def test_patch(self) -> None:
        assert SemanticVersion(1, 4, 2).bump_patch() == SemanticVersion(1, 4, 3)

    def test_major_resets_lower_segments(self) -> None:
        assert SemanticVersion(1, 4, 2).bump_major() == SemanticVersion(2, 0, 0)

    @pytest.mark.parametrize("version", [(0, 0, 0), (1, 4, 2), (9, 0, 41)])
    def test_bump_patch_changes_only_patch_on_release_versions(
        self, version: tuple[int, int, int]
    ) -> None:
        v = SemanticVersion(*version)
        nxt = v.bump_patch()
        assert (nxt.major, nxt.minor) == (v.major, v.minor)
        assert nxt.patch == v.patch + 1
        assert nxt.prerelease is None and nxt.build is None

    def test_bump_drops_prerelease_and_build(self) -> None:
        v = SemanticVersion(1, 4, 2, prerelease="rc.1", build="5")
        assert v.bump("minor") == SemanticVersion(1, 5, 0)

    @pytest.mark.parametrize("segment", ["patch", "minor", "major"])
    def test_bump_is_strictly_greater(self, segment: str) -> None:
        v = SemanticVersion(3, 7, 9)
        assert v < v.bump(segment)  # type: ignore[arg-type]

    def test_empty_prefix_tag(self) -> None:
        assert SemanticVersion(1, 2, 3).tag("") == "1.2.3"


class TestCompare:
    def test_core_ordering(self) -> None:
        assert compare(SemanticVersion(1, 2, 3), SemanticVersion(1, 10, 0)) == -1
        assert compare(SemanticVersion(2, 0, 0), SemanticVersion(1, 99, 99)) == 1

    def test_build_metadata_orders_equal_but_is_not_equal(self) -> None:
        a = SemanticVersion(1, 0, 0, build="a")
        b = SemanticVersion(1, 0, 0, build="b")
        assert a <= b and b <= a
        assert a >= b and b >= a
        assert not a < b and not a > b
        assert a != b
        assert compare(a, b) == 0

    def test_operators_follow_precedence(self) -> None:
        low = SemanticVersion(1, 0, 0, prerelease="rc.1")
        high = SemanticVersion(1, 0, 0)
        assert low < high and low <= high
        assert high > low and high >= low
        assert not high <= low

    def test_prerelease_ranks_below_release(self) -> None:
        assert SemanticVersion(1, 0, 0, prerelease="rc.1") < SemanticVersion(1, 0, 0)

    def test_prerelease_precedence(self) -> None:
        chain = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        versions = [parse(t).unwrap() for t in chain]
        for lower, higher in zip(versions, versions[1:]):
            assert compare(lower, higher) == -1
            assert compare(higher, lower) == 1

    def test_build_metadata_ignored_for_precedence(self) -> None:
        a = SemanticVersion(1, 0, 0, build="a")
        b = SemanticVersion(1, 0, 0, build="b")
        assert compare(a, b) == 0
        assert a != b
