"""Read-only status report for the current branch.

Collection is best effort: a failing git call leaves the matching field
empty instead of failing the report.
"""

from __future__ import annotations

from dataclasses import dataclass

from branchflow.core.config import Config
from branchflow.core.result import Ok
from branchflow.output.console import ConsoleProtocol, Style
from branchflow.workflow.branch import BranchKind, BranchNaming, BranchRef, parse
from branchflow.workflow.gateways import CommitLine, GitGateway

_RECENT_COMMITS = 5

_KIND_LABELS = {
    BranchKind.FEATURE: "feature",
    BranchKind.RELEASE: "release",
    BranchKind.HOTFIX: "hotfix",
    BranchKind.MAIN: "protected (main)",
    BranchKind.STAGING: "protected (staging)",
    BranchKind.OTHER: "unknown",
}


@dataclass(frozen=True, slots=True)
class StatusReport:
    branch: BranchRef
    detached: bool
    fetched: bool
    ahead: int | None
    behind: int | None
    recent: tuple[CommitLine, ...]
    changes: tuple[str, ...]

    @property
    def kind_label(self) -> str:
        return _KIND_LABELS[self.branch.kind]


def next_steps(ref: BranchRef, config: Config) -> list[tuple[str, str]]:
    """Commands that make sense on ``ref``, as (command, explanation) pairs."""
    prefix = config.branches.ticket_prefix
    match ref.kind:
        case BranchKind.FEATURE:
            return [
                ("bflow sync", f"merge {config.branches.main} into this branch"),
                ("bflow release", "create the release branch for UAT"),
            ]
        case BranchKind.RELEASE:
            return [
                ("bflow sync-feature", "bring in the latest feature commits"),
                ("bflow to-staging", f"push and open a PR to {config.branches.staging}"),
                (
                    "bflow ship <major|minor|patch>",
                    f"push and open a PR to {config.branches.main}",
                ),
            ]
        case BranchKind.HOTFIX:
            return [
                (
                    "bflow to-staging",
                    f"push and open a PR to {config.branches.staging} (optional)",
                ),
                (
                    "bflow ship <major|minor|patch>",
                    f"push and open a PR to {config.branches.main}",
                ),
            ]
        case BranchKind.MAIN:
            return [
                ("bflow feature <task-id> <desc>", "start a feature"),
                ("bflow hotfix <task-id> <desc>", "start a hotfix"),
            ]
        case BranchKind.STAGING:
            return [(f"git checkout {config.branches.main}", "switch to main to start new work")]
        case _:
            return [
                (f"feature/{prefix}-<task>-<desc>", "expected branch pattern"),
                (f"release/{prefix}-<task>-<desc>", "expected branch pattern"),
                (f"hotfix/{prefix}-<task>-<desc>", "expected branch pattern"),
            ]


def collect_status(git: GitGateway, config: Config, *, fetch: bool = True) -> StatusReport:
    naming = BranchNaming.from_config(config)
    remote = config.branches.remote

    branch = git.current_branch()
    name = branch.value if isinstance(branch, Ok) else None
    ref = parse(name or "HEAD", naming)

    fetched = isinstance(git.fetch(remote), Ok) if fetch else False

    ahead: int | None = None
    behind: int | None = None
    if name is not None and ref.kind != BranchKind.MAIN:
        upstream_main = f"{remote}/{config.branches.main}"
        ahead_r = git.rev_list_count(upstream_main, name)
        behind_r = git.rev_list_count(name, upstream_main)
        if isinstance(ahead_r, Ok) and isinstance(behind_r, Ok):
            ahead, behind = ahead_r.value, behind_r.value

    recent = git.recent_commits(_RECENT_COMMITS)
    changes = git.changed_paths()

    return StatusReport(
        branch=ref,
        detached=name is None,
        fetched=fetched,
        ahead=ahead,
        behind=behind,
        recent=tuple(recent.value) if isinstance(recent, Ok) else (),
        changes=tuple(changes.value) if isinstance(changes, Ok) else (),
    )


def render_status(report: StatusReport, config: Config, console: ConsoleProtocol) -> None:
    console.header("Branch status")
    name = "(detached)" if report.detached else report.branch.raw_name
    console.field("branch", name, Style.BRANCH)
    console.field("type", report.kind_label)
    if report.branch.ticket:
        console.field("ticket", report.branch.ticket)

    if report.ahead is not None and report.behind is not None:
        console.field("ahead of main", str(report.ahead), Style.SUCCESS)
        behind_style = Style.WARNING if report.behind else Style.DEFAULT
        console.field("behind main", str(report.behind), behind_style)
        if report.behind and report.branch.kind == BranchKind.FEATURE:
            console.print("  consider running: bflow sync", Style.DIM)
    if not report.fetched:
        console.print("  (remote not fetched; counts may be stale)", Style.DIM)

    console.header("Recent commits")
    if not report.recent:
        console.print("  (no commits)", Style.DIM)
    for commit in report.recent:
        console.print(f"  {commit.short_sha} {commit.subject}")

    console.header("Working tree")
    if report.changes:
        console.print(f"  {len(report.changes)} uncommitted change(s)", Style.WARNING)
        for line in report.changes:
            console.print(f"  {line}", Style.DIM)
    else:
        console.print("  clean", Style.SUCCESS)

    console.header("Next steps")
    for command, explanation in next_steps(report.branch, config):
        console.field(command, explanation, Style.DIM)
