from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from branchflow.core.config import CONFIG_FILENAME, Config, load_config_or_default
from branchflow.core.errors import ErrorCode
from branchflow.core.result import Err
from branchflow.git.repository import Repository, find_repo_root
from branchflow.github.pulls import GhPullRequests, gh_available
from branchflow.output.console import ConsoleProtocol, RichConsole
from branchflow.workflow.gateways import GitGateway, PrGateway

# Set by the global --repo option.
REPO_ENV = "BFLOW_REPO"


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo_root: Path
    config: Config
    console: ConsoleProtocol
    git: GitGateway
    prs: PrGateway | None


def start_dir() -> Path:
    override = os.environ.get(REPO_ENV)
    return Path(override) if override else Path.cwd()


def load_repo_config(repo_root: Path) -> Config:
    result = load_config_or_default(repo_root / CONFIG_FILENAME)
    if isinstance(result, Err):
        typer.echo(f"error: {result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    return result.value


def build_context() -> CLIContext:
    root_result = find_repo_root(start_dir())
    if isinstance(root_result, Err):
        typer.echo(f"error: {root_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    repo_root = root_result.value
    return CLIContext(
        repo_root=repo_root,
        config=load_repo_config(repo_root),
        console=RichConsole(),
        git=Repository(repo_root),
        prs=GhPullRequests(repo_root) if gh_available() else None,
    )


def build_status_context() -> CLIContext:
    """Context for read-only reporting: problems become warnings, never exits."""
    console = RichConsole()
    start = start_dir()

    root_result = find_repo_root(start)
    if isinstance(root_result, Err):
        console.warning(root_result.error.message)
        repo_root = start
    else:
        repo_root = root_result.value

    config_result = load_config_or_default(repo_root / CONFIG_FILENAME)
    if isinstance(config_result, Err):
        console.warning(f"{config_result.error.message}; using default settings")
        config = Config()
    else:
        config = config_result.value

    return CLIContext(
        repo_root=repo_root,
        config=config,
        console=console,
        git=Repository(repo_root),
        prs=None,
    )
