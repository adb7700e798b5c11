"""Tests for tagcut.output.console module."""

from __future__ import annotations

import pytest

from tagcut.output.console import ConsoleProtocol, MockConsole, RichConsole, Style


class TestMockConsole:
    def test_captures_styles(self) -> None:
        console = MockConsole()
        console.header("Run v1.5.0")
        console.step("tag")
        console.success("done")
        console.warning("slow")
        console.error("boom")

        assert console.messages == ["Run v1.5.0", "-> tag", "OK done", "warning: slow", "error: boom"]
        assert console.count(Style.STEP) == 1
        assert console.has_error()
        assert console.has_warning()
        assert [o.message for o in console.find("tag")] == ["-> tag"]

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.info("x")


def test_rich_console_routes_errors_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    console = RichConsole(no_color=True)
    console.print("[not markup]")
    console.error("bad [thing]")

    captured = capsys.readouterr()
    assert "[not markup]" in captured.out
    assert "bad [thing]" in captured.err
