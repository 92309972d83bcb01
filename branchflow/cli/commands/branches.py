"""Branch creation and synchronisation commands."""

from __future__ import annotations

import typer

from branchflow.cli.commands._helpers import run_workflow
from branchflow.workflow.model import Command

# Arguments default to "" so a missing one is reported by the policy
# engine (exit 1) rather than as a click usage error.
_TASK_ID = typer.Argument("", help="Task id without the ticket prefix (e.g. 86b1abc)")
_DESCRIPTION = typer.Argument("", help="Short kebab-case description (e.g. login-form)")
_DRY_RUN = typer.Option(False, "--dry-run", help="Print git commands without running them")


def feature(
    task_id: str = _TASK_ID,
    description: str = _DESCRIPTION,
    dry_run: bool = _DRY_RUN,
) -> None:
    """Create feature/<PREFIX>-<task>-<desc> from an up-to-date main."""
    run_workflow(
        Command.FEATURE,
        {"task_id": task_id, "description": description},
        dry_run=dry_run,
    )


def hotfix(
    task_id: str = _TASK_ID,
    description: str = _DESCRIPTION,
    dry_run: bool = _DRY_RUN,
) -> None:
    """Create hotfix/<PREFIX>-<task>-<desc> from an up-to-date main."""
    run_workflow(
        Command.HOTFIX,
        {"task_id": task_id, "description": description},
        dry_run=dry_run,
    )


def sync(dry_run: bool = _DRY_RUN) -> None:
    """Merge the remote main into the current feature branch."""
    run_workflow(Command.SYNC, dry_run=dry_run)


def release(dry_run: bool = _DRY_RUN) -> None:
    """Create the release branch for the current feature branch."""
    run_workflow(Command.RELEASE, dry_run=dry_run)


def sync_feature(dry_run: bool = _DRY_RUN) -> None:
    """Merge the feature branch into the current release branch."""
    run_workflow(Command.SYNC_FEATURE, dry_run=dry_run)
