"""status, lint-commit and install-hook commands."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

import branchflow.cli.commands.commits as commits_cmd
import branchflow.cli.commands.status as status_cmd
import branchflow.cli.context as context
from branchflow.cli.app import app
from branchflow.cli.context import REPO_ENV, CLIContext
from branchflow.core.config import Config
from branchflow.core.errors import ErrorCode
from branchflow.core.result import Err, Ok
from branchflow.git.hooks import HookError
from branchflow.output.console import MockConsole
from branchflow.test.workflow._fakes import FakeGit
from branchflow.workflow.gateways import GatewayError


def _ctx(tmp_path: Path, git: FakeGit) -> CLIContext:
    return CLIContext(
        repo_root=tmp_path,
        config=Config(),
        console=MockConsole(),
        git=git,
        prs=None,
    )


class TestStatus:
    def test_reports_without_failing(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        ctx = _ctx(tmp_path, FakeGit(branch="release/CU-1-x"))
        monkeypatch.setattr(status_cmd, "build_status_context", lambda: ctx)

        status_cmd.status(no_fetch=True)

        assert isinstance(ctx.console, MockConsole)
        assert "branch: release/CU-1-x" in ctx.console.messages
        assert "type: release" in ctx.console.messages

    def test_broken_git_still_reports(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git = FakeGit(
            failures={
                "current_branch": GatewayError(command="git symbolic-ref", message="boom"),
                "fetch": GatewayError(command="git fetch", message="offline"),
            }
        )
        ctx = _ctx(tmp_path, git)
        monkeypatch.setattr(status_cmd, "build_status_context", lambda: ctx)

        status_cmd.status(no_fetch=False)

        assert isinstance(ctx.console, MockConsole)
        assert "branch: (detached)" in ctx.console.messages


class TestStatusExitsZero:
    """status reports what it can outside a repository or with a broken config."""

    @pytest.fixture(autouse=True)
    def _restore_repo_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # --repo writes the variable; monkeypatch puts it back afterwards.
        monkeypatch.setenv(REPO_ENV, str(tmp_path))

    def _patch_io(self, monkeypatch: pytest.MonkeyPatch, git: FakeGit) -> MockConsole:
        console = MockConsole()
        monkeypatch.setattr(context, "RichConsole", lambda: console)
        monkeypatch.setattr(context, "Repository", lambda root: git)
        return console

    def test_outside_a_repository(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            context,
            "find_repo_root",
            lambda start: Err(
                GatewayError(command="git rev-parse", message="fatal: not a git repository")
            ),
        )
        git = FakeGit(
            failures={
                "current_branch": GatewayError(command="git symbolic-ref", message="fatal"),
            }
        )
        console = self._patch_io(monkeypatch, git)

        result = CliRunner().invoke(app, ["--repo", str(tmp_path), "status", "--no-fetch"])

        assert result.exit_code == 0
        assert "warning: fatal: not a git repository" in console.messages
        assert "branch: (detached)" in console.messages

    def test_broken_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".branchflow.toml").write_text("[branches\n", encoding="utf-8")
        monkeypatch.setattr(context, "find_repo_root", lambda start: Ok(tmp_path))
        console = self._patch_io(monkeypatch, FakeGit(branch="feature/CU-1-x"))

        result = CliRunner().invoke(app, ["--repo", str(tmp_path), "status", "--no-fetch"])

        assert result.exit_code == 0
        assert console.find("using default settings")
        assert "branch: feature/CU-1-x" in console.messages


class TestLintCommit:
    @pytest.fixture(autouse=True)
    def _outside_repo(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            commits_cmd,
            "find_repo_root",
            lambda start: Err(GatewayError(command="git rev-parse", message="not a repo")),
        )

    def test_valid_message(self, tmp_path: Path) -> None:
        msg = tmp_path / "COMMIT_EDITMSG"
        msg.write_text("feat(CU-abc123): add login form\n# comment\n", encoding="utf-8")

        commits_cmd.lint_commit(msg)

    def test_invalid_message(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        msg = tmp_path / "COMMIT_EDITMSG"
        msg.write_text("added stuff\n", encoding="utf-8")

        with pytest.raises(typer.Exit) as exc:
            commits_cmd.lint_commit(msg)

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
        err = capsys.readouterr().err
        assert "type-empty" in err
        assert "<type>(<scope>): <subject>" in err

    def test_warning_only_passes(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        msg = tmp_path / "COMMIT_EDITMSG"
        msg.write_text("fix: x\nno blank line\n", encoding="utf-8")

        commits_cmd.lint_commit(msg)

        assert "body-leading-blank" in capsys.readouterr().err

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(typer.Exit) as exc:
            commits_cmd.lint_commit(tmp_path / "nope")

        assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)

    def test_uses_repo_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".branchflow.toml").write_text(
            '[commits]\ntypes = ["feat", "fix"]\n', encoding="utf-8"
        )
        monkeypatch.setattr(commits_cmd, "find_repo_root", lambda start: Ok(tmp_path))
        msg = tmp_path / "COMMIT_EDITMSG"
        msg.write_text("chore: tidy\n", encoding="utf-8")

        with pytest.raises(typer.Exit) as exc:
            commits_cmd.lint_commit(msg)

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


class TestInstallHook:
    def test_success(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        ctx = _ctx(tmp_path, FakeGit())
        hook = tmp_path / ".git" / "hooks" / "commit-msg"
        monkeypatch.setattr(commits_cmd, "build_context", lambda: ctx)
        monkeypatch.setattr(
            commits_cmd, "install_commit_msg_hook", lambda root, force: Ok(hook)
        )

        commits_cmd.install_hook(force=False)

        assert isinstance(ctx.console, MockConsole)
        assert f"OK installed {hook}" in ctx.console.messages

    def test_foreign_hook(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        ctx = _ctx(tmp_path, FakeGit())
        hook = tmp_path / ".git" / "hooks" / "commit-msg"
        monkeypatch.setattr(commits_cmd, "build_context", lambda: ctx)
        monkeypatch.setattr(
            commits_cmd,
            "install_commit_msg_hook",
            lambda root, force: Err(HookError("already installed", hook, foreign=True)),
        )

        with pytest.raises(typer.Exit) as exc:
            commits_cmd.install_hook(force=False)

        assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.find("pass --force")
