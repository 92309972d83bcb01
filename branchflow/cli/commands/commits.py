"""Commit message linting and the commit-msg hook."""

from __future__ import annotations

from pathlib import Path

import typer

from branchflow.cli.context import build_context, load_repo_config, start_dir
from branchflow.core.config import Config
from branchflow.core.errors import ErrorCode
from branchflow.core.result import Err
from branchflow.git.hooks import install_commit_msg_hook
from branchflow.git.repository import find_repo_root
from branchflow.output.console import RichConsole, Style
from branchflow.workflow.commitlint import lint_message


def lint_commit(
    message_file: Path = typer.Argument(..., help="File holding the commit message"),
) -> None:
    """Check a commit message against the conventional commit rules."""
    console = RichConsole(stderr=True)
    try:
        text = message_file.read_text(encoding="utf-8")
    except OSError as e:
        console.error(f"cannot read {message_file}: {e}")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    # Outside a repository the default rules apply.
    root = find_repo_root(start_dir())
    config = load_repo_config(root.value) if not isinstance(root, Err) else Config()

    issues = lint_message(text, config.commits)
    errors = [i for i in issues if i.level == "error"]
    for issue in issues:
        line = f"{issue.message} [{issue.rule}]"
        if issue.level == "error":
            console.error(line)
        else:
            console.warning(line)

    if errors:
        types = ", ".join(config.commits.types)
        console.print(f"expected: <type>(<scope>): <subject>  (types: {types})", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))


def install_hook(
    force: bool = typer.Option(False, "--force", help="Replace an existing commit-msg hook"),
) -> None:
    """Install a commit-msg hook that runs bflow lint-commit."""
    ctx = build_context()
    result = install_commit_msg_hook(ctx.repo_root, force=force)
    if isinstance(result, Err):
        ctx.console.error(result.error.message)
        if result.error.foreign:
            ctx.console.print(f"hint: pass --force to replace {result.error.path}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    ctx.console.success(f"installed {result.value}")
