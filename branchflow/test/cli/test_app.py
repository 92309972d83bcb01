"""Top-level app wiring and context building."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

import branchflow.cli.commands._helpers as helpers
import branchflow.cli.context as context
from branchflow import __version__
from branchflow.cli.app import app
from branchflow.cli.context import REPO_ENV, CLIContext, build_context
from branchflow.core.config import Config
from branchflow.core.errors import ErrorCode
from branchflow.core.result import Err, Ok
from branchflow.output.console import MockConsole
from branchflow.test.workflow._fakes import FakeGit
from branchflow.workflow.gateways import GatewayError

runner = CliRunner()


class TestApp:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("feature", "sync-feature", "to-staging", "ship", "lint-commit"):
            assert name in result.output

    def test_repo_must_be_a_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--repo", str(tmp_path / "missing"), "status"])
        assert result.exit_code == int(ErrorCode.ENV_ERROR)

    def test_missing_argument_exits_one(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        ctx = CLIContext(
            repo_root=tmp_path,
            config=Config(),
            console=MockConsole(),
            git=FakeGit(branch="release/CU-1-x"),
            prs=None,
        )
        monkeypatch.setattr(helpers, "build_context", lambda: ctx)

        result = runner.invoke(app, ["ship"])

        assert result.exit_code == int(ErrorCode.USER_ERROR)
        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.find("usage: ship <major|minor|patch>")

    def test_sync_feature_dry_run(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        git = FakeGit(branch="release/CU-1-x", branches={"main", "feature/CU-1-x"})
        ctx = CLIContext(
            repo_root=tmp_path, config=Config(), console=MockConsole(), git=git, prs=None
        )
        monkeypatch.setattr(helpers, "build_context", lambda: ctx)

        result = runner.invoke(app, ["sync-feature", "--dry-run"])

        assert result.exit_code == 0
        assert git.calls == []


class TestBuildContext:
    def test_not_a_repository(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            context,
            "find_repo_root",
            lambda start: Err(GatewayError(command="git rev-parse", message="not a git repo")),
        )

        with pytest.raises(typer.Exit) as exc:
            build_context()

        assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)

    def test_bad_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".branchflow.toml").write_text("[branches\n", encoding="utf-8")
        monkeypatch.setattr(context, "find_repo_root", lambda start: Ok(tmp_path))

        with pytest.raises(typer.Exit) as exc:
            build_context()

        assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)

    def test_repo_override_and_no_gh(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seen: list[Path] = []

        def fake_find(start: Path) -> Ok[Path]:
            seen.append(start)
            return Ok(tmp_path)

        monkeypatch.setenv(REPO_ENV, str(tmp_path))
        monkeypatch.setattr(context, "find_repo_root", fake_find)
        monkeypatch.setattr(context, "gh_available", lambda: False)

        ctx = build_context()

        assert seen == [tmp_path]
        assert ctx.repo_root == tmp_path
        assert ctx.config == Config()
        assert ctx.prs is None

    def test_with_gh(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(context, "find_repo_root", lambda start: Ok(tmp_path))
        monkeypatch.setattr(context, "gh_available", lambda: True)

        assert build_context().prs is not None
