"""Promotion commands: staging, production and version tags."""

from __future__ import annotations

import typer

from branchflow.cli.commands._helpers import run_workflow
from branchflow.workflow.model import Command

_BUMP = typer.Argument("", help="Version bump: major | minor | patch")
_DRY_RUN = typer.Option(False, "--dry-run", help="Print commands without running them")


def to_staging(dry_run: bool = _DRY_RUN) -> None:
    """Push the release/hotfix branch and open a PR to staging."""
    run_workflow(Command.TO_STAGING, dry_run=dry_run)


def ship(
    bump: str = _BUMP,
    skip_staging: bool = typer.Option(
        False,
        "--skip-staging",
        help="Ship a release branch without a merged staging PR",
    ),
    dry_run: bool = _DRY_RUN,
) -> None:
    """Push the release/hotfix branch and open a PR to main."""
    run_workflow(
        Command.SHIP,
        {"bump": bump, "skip_staging": skip_staging},
        dry_run=dry_run,
    )


def tag(bump: str = _BUMP, dry_run: bool = _DRY_RUN) -> None:
    """Tag main with the next version and push the tag."""
    run_workflow(Command.TAG, {"bump": bump}, dry_run=dry_run)
