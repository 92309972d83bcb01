"""Shared helpers for workflow commands."""

from __future__ import annotations

from collections.abc import Mapping
from typing import NoReturn

import typer

from branchflow.cli.context import CLIContext, build_context
from branchflow.core.errors import ErrorCode
from branchflow.core.result import Err
from branchflow.output.console import ConsoleProtocol, Style
from branchflow.workflow.errors import WorkflowError
from branchflow.workflow.model import Command
from branchflow.workflow.orchestrator import WorkflowOrchestrator, WorkflowOutcome

_NEXT_STEP: dict[Command, str] = {
    Command.FEATURE: "commit your work, then: bflow release",
    Command.HOTFIX: "commit the fix, then: bflow ship patch",
    Command.SYNC: "when the feature is ready for UAT: bflow release",
    Command.RELEASE: "bflow to-staging",
    Command.SYNC_FEATURE: "bflow to-staging",
    Command.TO_STAGING: "after UAT, merge the PR, then: bflow ship <major|minor|patch>",
    Command.SHIP: "squash merge the PR; if CI does not tag releases: bflow tag <bump> on main",
}


def error_code(error: WorkflowError) -> ErrorCode:
    match error.kind:
        case "invalid_argument" | "precondition_failed":
            return ErrorCode.USER_ERROR
        case "environment":
            return ErrorCode.ENV_ERROR
        case "external_operation_failed" if error.cause == "network":
            return ErrorCode.NETWORK_ERROR
        case _:
            return ErrorCode.OPERATION_ERROR


def exit_workflow_error(error: WorkflowError, console: ConsoleProtocol) -> NoReturn:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(error_code(error)))


def run_workflow(
    command: Command,
    args: Mapping[str, str | bool] | None = None,
    *,
    dry_run: bool = False,
    ctx: CLIContext | None = None,
) -> WorkflowOutcome:
    """Run ``command`` in the current repository; exits on failure."""
    ctx = ctx or build_context()
    orchestrator = WorkflowOrchestrator(
        git=ctx.git,
        prs=ctx.prs,
        console=ctx.console,
        config=ctx.config,
        dry_run=dry_run,
    )
    result = orchestrator.run(command, args)
    if isinstance(result, Err):
        exit_workflow_error(result.error, ctx.console)

    outcome = result.value
    report_outcome(outcome, ctx)
    return outcome


def report_outcome(outcome: WorkflowOutcome, ctx: CLIContext) -> None:
    console = ctx.console
    result = outcome.result

    if outcome.dry_run:
        console.info("dry run: nothing was changed")
    elif result.target:
        console.success(_done_message(outcome.command, result.target))

    if result.next_version is not None:
        tag = result.next_version.to_tag(ctx.config.versions.tag_prefix)
        console.field("next version", tag, Style.INFO)

    if outcome.pr_url:
        label = "existing PR" if outcome.pr_reused else "PR created"
        console.field(label, outcome.pr_url, Style.INFO)

    spec = outcome.pr_pending
    if spec is not None:
        console.warning("gh is not available; open the pull request by hand")
        console.field("base", spec.base, Style.BRANCH)
        console.field("head", spec.head, Style.BRANCH)
        console.field("title", spec.title)

    step = _NEXT_STEP.get(outcome.command)
    if step and not outcome.dry_run:
        console.print(f"next: {step}", Style.DIM)


def _done_message(command: Command, target: str) -> str:
    match command:
        case Command.FEATURE | Command.HOTFIX | Command.RELEASE:
            return f"created {target}"
        case Command.SYNC | Command.SYNC_FEATURE:
            return f"{target} is up to date"
        case Command.TO_STAGING | Command.SHIP:
            return f"pushed {target}"
        case Command.TAG:
            return f"tagged {target}"
        case _:
            return target
