from __future__ import annotations

import typer

from branchflow.cli.context import build_status_context
from branchflow.workflow.status import collect_status, render_status


def status(
    no_fetch: bool = typer.Option(False, "--no-fetch", help="Do not fetch the remote first"),
) -> None:
    """Show the current branch, its position against main and what to do next."""
    ctx = build_status_context()
    report = collect_status(ctx.git, ctx.config, fetch=not no_fetch)
    render_status(report, ctx.config, ctx.console)
