"""Run workflow commands against git and the PR host.

The orchestrator reads a :class:`RepoSnapshot` through the git gateway, asks
the :class:`PolicyEngine` for a decision, then executes the resulting
operations in order. The first failing operation aborts the command; nothing
is retried or rolled back; the repository is left as git left it.

Ship and tag fetch the remote once allowed and plan again, so the next version
counts tags created elsewhere.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace

from branchflow.core.config import Config
from branchflow.core.result import Err, Ok, Result
from branchflow.output.console import ConsoleProtocol, Style
from branchflow.workflow.branch import BranchKind, BranchRef, parse
from branchflow.workflow.errors import WorkflowError, classify_failure, is_policy_rejection
from branchflow.workflow.gateways import GatewayError, GitGateway, PrGateway
from branchflow.workflow.model import (
    Checkout,
    Command,
    CreateBranch,
    Fetch,
    GitOp,
    Merge,
    PrSpec,
    Pull,
    Push,
    Reason,
    RepoSnapshot,
    Tag,
    Transition,
    TransitionResult,
)
from branchflow.workflow.policy import PolicyEngine
from branchflow.workflow.semver import latest_version

__all__ = ["WorkflowOrchestrator", "WorkflowOutcome"]

_REFUSAL_HINTS: dict[Reason, str] = {
    Reason.DIRTY_WORKING_TREE: "git stash (or commit) and re-run",
    Reason.MERGE_IN_PROGRESS: "git status shows the unmerged paths",
    Reason.STAGING_NOT_MERGED: "bflow to-staging, then merge the PR after UAT",
    Reason.SIBLING_BRANCH_NOT_FOUND: "git fetch and check out the feature branch once",
    Reason.INVALID_BUMP_TYPE: "use major, minor or patch",
}

# Commands whose plan depends on the remote tags.
_REMOTE_VERSION_COMMANDS = frozenset({Command.SHIP, Command.TAG})

_FAILURE_HINTS = {
    "merge_conflict": "resolve the conflicts, git add <files>, git commit, then re-run",
    "network": "check the connection to the remote and re-run",
    "authorization": "check your credentials (ssh keys, gh auth login)",
}


@dataclass(frozen=True, slots=True)
class WorkflowOutcome:
    command: Command
    source: BranchRef
    result: TransitionResult
    pr_url: str | None = None
    pr_reused: bool = False
    # PR that still has to be opened by hand (no PR gateway available).
    pr_pending: PrSpec | None = None
    dry_run: bool = False


class WorkflowOrchestrator:
    def __init__(
        self,
        *,
        git: GitGateway,
        prs: PrGateway | None,
        console: ConsoleProtocol,
        config: Config | None = None,
        dry_run: bool = False,
    ) -> None:
        self._git = git
        self._prs = prs
        self._console = console
        self._config = config or Config()
        self._engine = PolicyEngine(self._config)
        self._dry_run = dry_run

    @property
    def engine(self) -> PolicyEngine:
        return self._engine

    def run(
        self, command: Command, args: Mapping[str, str | bool] | None = None
    ) -> Result[WorkflowOutcome, WorkflowError]:
        planned = self.plan(command, args)
        if isinstance(planned, Err):
            return planned
        transition, result = planned.value

        if not result.allowed:
            return Err(_refusal_error(result))

        if command in _REMOTE_VERSION_COMMANDS:
            refreshed = self._replan_with_remote_tags(command, args)
            if isinstance(refreshed, Err):
                return refreshed
            if refreshed.value is not None:
                transition, result = refreshed.value
                if not result.allowed:
                    return Err(_refusal_error(result))

        for op in result.git_ops:
            self._console.print(f"$ {op.describe()}", Style.DIM)
            if self._dry_run:
                continue
            applied = self._apply(op)
            if isinstance(applied, Err):
                error = _operation_error(op.describe(), applied.error, is_push=isinstance(op, Push))
                return Err(error)

        outcome = WorkflowOutcome(
            command=command,
            source=transition.source,
            result=result,
            dry_run=self._dry_run,
        )
        if result.pr_spec is None:
            return Ok(outcome)
        return self._open_pull_request(outcome, result.pr_spec)

    def plan(
        self, command: Command, args: Mapping[str, str | bool] | None = None
    ) -> Result[tuple[Transition, TransitionResult], WorkflowError]:
        """Read the repository state and evaluate ``command`` without running anything."""
        snapshot = self.snapshot(command, args or {})
        if isinstance(snapshot, Err):
            return snapshot

        transition = Transition(
            command=command, source=snapshot.value.current, args=dict(args or {})
        )
        return Ok((transition, self._engine.evaluate(transition, snapshot.value)))

    def _replan_with_remote_tags(
        self, command: Command, args: Mapping[str, str | bool] | None
    ) -> Result[tuple[Transition, TransitionResult] | None, WorkflowError]:
        """Fetch the remote, then plan again so the version accounts for tags made elsewhere."""
        fetch = Fetch(self._config.branches.remote)
        self._console.print(f"$ {fetch.describe()}", Style.DIM)
        if self._dry_run:
            return Ok(None)

        fetched = self._apply(fetch)
        if isinstance(fetched, Err):
            return Err(_operation_error(fetch.describe(), fetched.error, is_push=False))
        return self.plan(command, args)

    # -- snapshot ----------------------------------------------------------

    def snapshot(
        self, command: Command, args: Mapping[str, str | bool]
    ) -> Result[RepoSnapshot, WorkflowError]:
        branch = self._git.current_branch()
        if isinstance(branch, Err):
            return Err(_environment_error(branch.error))
        # Detached HEAD classifies as an "other" branch.
        current = parse(branch.value or "HEAD", self._engine.naming)

        dirty = self._git.is_dirty()
        if isinstance(dirty, Err):
            return Err(_environment_error(dirty.error))
        merging = self._git.merge_in_progress()
        if isinstance(merging, Err):
            return Err(_environment_error(merging.error))
        branches = self._git.local_branches()
        if isinstance(branches, Err):
            return Err(_environment_error(branches.error))

        snapshot = RepoSnapshot(
            current=current,
            dirty=dirty.value,
            merge_in_progress=merging.value,
            local_branches=branches.value,
        )

        if command not in (Command.SHIP, Command.TAG):
            return Ok(snapshot)

        # A repo without commits has no subject; the PR title falls back to the branch.
        subject = self._git.head_subject().unwrap_or(None)
        tags = self._git.tags()
        if isinstance(tags, Err):
            return Err(_environment_error(tags.error))
        latest = latest_version(tags.value, self._config.versions.tag_prefix)

        staging_merged: bool | None = None
        if (
            command == Command.SHIP
            and current.kind == BranchKind.RELEASE
            and args.get("skip_staging") is not True
            and self._prs is not None
        ):
            merged = self._staging_pr_merged(current.raw_name)
            if isinstance(merged, Err):
                return merged
            staging_merged = merged.value

        return Ok(
            replace(
                snapshot,
                head_subject=subject,
                latest_version=latest,
                staging_pr_merged=staging_merged,
            )
        )

    def _staging_pr_merged(self, head: str) -> Result[bool, WorkflowError]:
        assert self._prs is not None
        staging = self._config.branches.staging
        listed = self._prs.list_by_head_base(head=head, base=staging, state="all")
        if isinstance(listed, Err):
            return Err(_operation_error("gh pr list", listed.error, is_push=False))

        for pr in listed.value:
            if pr.is_open:
                continue
            merged = self._prs.is_merged(pr.number)
            if isinstance(merged, Err):
                return Err(_operation_error("gh pr view", merged.error, is_push=False))
            if merged.value:
                return Ok(True)
        return Ok(False)

    # -- execution ---------------------------------------------------------

    def _apply(self, op: GitOp) -> Result[str, GatewayError]:
        match op:
            case Fetch(remote=remote):
                return self._git.fetch(remote)
            case Checkout(ref=ref):
                return self._git.checkout(ref)
            case Pull(remote=remote, branch=branch):
                return self._git.pull(remote, branch)
            case CreateBranch(name=name):
                return self._git.create_branch(name)
            case Merge(ref=ref, mode=mode, message=message):
                return self._git.merge(ref, mode, message)
            case Push(ref=ref, remote=remote, set_upstream=set_upstream):
                return self._git.push(ref, remote, set_upstream=set_upstream)
            case Tag(name=name, message=message):
                return self._git.tag(name, message)
            case _:
                raise AssertionError(f"unexpected git op: {op}")

    def _open_pull_request(
        self, outcome: WorkflowOutcome, spec: PrSpec
    ) -> Result[WorkflowOutcome, WorkflowError]:
        self._console.print(f"$ gh pr create --base {spec.base} --head {spec.head}", Style.DIM)
        if self._dry_run:
            return Ok(outcome)

        if self._prs is None:
            return Ok(replace(outcome, pr_pending=spec))

        listed = self._prs.list_by_head_base(head=spec.head, base=spec.base)
        if isinstance(listed, Err):
            return Err(_operation_error("gh pr list", listed.error, is_push=False))

        existing = [pr for pr in listed.value if pr.is_open]
        if existing:
            return Ok(replace(outcome, pr_url=existing[0].url, pr_reused=True))

        created = self._prs.create(base=spec.base, head=spec.head, title=spec.title, body=spec.body)
        if isinstance(created, Err):
            return Err(_operation_error("gh pr create", created.error, is_push=False))
        return Ok(replace(outcome, pr_url=created.value))


def _refusal_error(result: TransitionResult) -> WorkflowError:
    reason = result.reason
    assert reason is not None
    return WorkflowError(
        kind="invalid_argument" if reason.is_argument_problem else "precondition_failed",
        message=result.detail or str(reason),
        hint=_REFUSAL_HINTS.get(reason),
        reason=reason.value,
    )


def _environment_error(error: GatewayError) -> WorkflowError:
    return WorkflowError(
        kind="environment",
        message=f"{error.command} failed",
        hint=error.message or "run bflow inside a git repository",
    )


def _operation_error(what: str, error: GatewayError, *, is_push: bool) -> WorkflowError:
    if is_push and is_policy_rejection(error.message):
        return WorkflowError(
            kind="policy_violation",
            message=f"{what} was rejected by the remote",
            hint=error.message,
            op=what,
        )

    cause = classify_failure(error.message)
    return WorkflowError(
        kind="external_operation_failed",
        message=f"{what} failed ({cause.replace('_', ' ')})",
        hint=_FAILURE_HINTS.get(cause, error.message or None),
        op=what,
        cause=cause,
    )
