"""Tests for branchflow.output.console module."""

from __future__ import annotations

import pytest

from branchflow.output.console import (
    ConsoleProtocol,
    MockConsole,
    OutputRecord,
    RichConsole,
    Style,
)


class TestStyle:
    """Test Style enum."""

    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DIM) == "dim"
        assert str(Style.BRANCH) == "branch"


class TestMockConsole:
    """Test MockConsole for testing purposes."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs == [OutputRecord("hello", Style.DEFAULT)]

    def test_print_with_style(self) -> None:
        console = MockConsole()
        console.print("$ git fetch origin", Style.DIM)
        assert console.outputs[0].style == Style.DIM

    def test_level_prefixes(self) -> None:
        console = MockConsole()
        console.success("done")
        console.error("failed")
        console.warning("careful")
        console.info("fyi")
        assert console.messages == ["OK done", "error: failed", "warning: careful", "info: fyi"]
        assert console.has_error()
        assert console.has_success()

    def test_field(self) -> None:
        console = MockConsole()
        console.field("branch", "feature/CU-1-x", Style.BRANCH)
        assert console.outputs == [OutputRecord("branch: feature/CU-1-x", Style.BRANCH)]

    def test_find_and_clear(self) -> None:
        console = MockConsole()
        console.print("one")
        console.print("two")
        assert [o.message for o in console.find("tw")] == ["two"]
        console.clear()
        assert console.outputs == []
        assert console.text == ""

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.newline()
        console.header("Status")


class TestRichConsole:
    """Test RichConsole output (rich writes plain text when not a terminal)."""

    def test_print_does_not_interpret_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().print("[bold]literal[/bold]")
        assert "[bold]literal[/bold]" in capsys.readouterr().out

    def test_error_prefix(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().error("push rejected")
        assert "error: push rejected" in capsys.readouterr().out

    def test_field_escapes_value(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().field("title", "[minor] add login", Style.INFO)
        out = capsys.readouterr().out
        assert "title:" in out
        assert "[minor] add login" in out

    def test_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole(stderr=True).warning("careful")
        captured = capsys.readouterr()
        assert "warning: careful" in captured.err
        assert captured.out == ""
