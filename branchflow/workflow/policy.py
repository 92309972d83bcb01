"""Branch workflow policy.

:class:`PolicyEngine` decides whether a command is legal on the current
branch and, if it is, which git operations and pull request carry it out.
It is a pure function of its inputs: it reads nothing from disk, runs
nothing, and keeps no state between calls.

| command      | branch           | result                                              |
|--------------|------------------|-----------------------------------------------------|
| feature      | any              | fetch, checkout main, pull, checkout -b feature/... |
| hotfix       | any              | fetch, checkout main, pull, checkout -b hotfix/...  |
| sync         | feature          | fetch, merge origin/main --no-ff                    |
| release      | feature          | fetch, checkout main, pull, checkout -b release/..., merge feature --no-ff |
| sync-feature | release          | fetch, merge feature/... --no-ff                    |
| to-staging   | release, hotfix  | push -u, PR to staging                              |
| ship         | release, hotfix  | push -u, PR to main titled "[bump] ..."             |
| tag          | main             | fetch, pull, tag -a vX.Y.Z, push tag                |
| status       | any              | nothing                                             |
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from branchflow.core.config import Config
from branchflow.core.result import Err
from branchflow.workflow.branch import (
    BranchKind,
    BranchNaming,
    build,
    derive_sibling,
)
from branchflow.workflow.model import (
    Checkout,
    Command,
    CreateBranch,
    Fetch,
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
from branchflow.workflow.semver import VersionTag, next_version, parse_bump, parse_version

__all__ = ["PolicyEngine"]

_RELEASE_OR_HOTFIX = (BranchKind.RELEASE, BranchKind.HOTFIX)


def _expect_kind(
    snapshot: RepoSnapshot, command: Command, *kinds: BranchKind
) -> TransitionResult | None:
    if snapshot.current.kind in kinds:
        return None
    expected = " or ".join(f"{k.value}/*" if k.is_work_branch else k.value for k in kinds)
    return TransitionResult.refuse(
        Reason.NOT_ON_EXPECTED_BRANCH,
        f"'{command}' must be run from {expected} (current branch: {snapshot.current.raw_name})",
    )


def _expect_clean(snapshot: RepoSnapshot) -> TransitionResult | None:
    if not snapshot.dirty:
        return None
    return TransitionResult.refuse(
        Reason.DIRTY_WORKING_TREE,
        "you have uncommitted changes; commit or stash them first",
    )


@dataclass(frozen=True, slots=True)
class PolicyEngine:
    config: Config = field(default_factory=Config)

    @property
    def naming(self) -> BranchNaming:
        return BranchNaming.from_config(self.config)

    @property
    def _remote(self) -> str:
        return self.config.branches.remote

    @property
    def _main(self) -> str:
        return self.config.branches.main

    def evaluate(self, transition: Transition, snapshot: RepoSnapshot) -> TransitionResult:
        """Decide on ``transition`` given the repository ``snapshot``."""
        if transition.command.is_mutating and snapshot.merge_in_progress:
            return TransitionResult.refuse(
                Reason.MERGE_IN_PROGRESS,
                "a merge is in progress; resolve conflicts and commit (or git merge --abort) first",
            )

        handlers: dict[Command, Callable[[Transition, RepoSnapshot], TransitionResult]] = {
            Command.FEATURE: self._new_work_branch,
            Command.HOTFIX: self._new_work_branch,
            Command.SYNC: self._sync,
            Command.RELEASE: self._release,
            Command.SYNC_FEATURE: self._sync_feature,
            Command.TO_STAGING: self._to_staging,
            Command.SHIP: self._ship,
            Command.TAG: self._tag,
            Command.STATUS: self._status,
        }
        return handlers[transition.command](transition, snapshot)

    # -- branch creation -------------------------------------------------

    def _branch_from_main(self, name: str) -> tuple[Fetch, Checkout, Pull, CreateBranch]:
        return (
            Fetch(self._remote),
            Checkout(self._main),
            Pull(self._remote, self._main),
            CreateBranch(name),
        )

    def _new_work_branch(self, t: Transition, snapshot: RepoSnapshot) -> TransitionResult:
        kind = BranchKind.FEATURE if t.command == Command.FEATURE else BranchKind.HOTFIX
        task_id = t.text("task_id")
        description = t.text("description")
        if not task_id or not description:
            return TransitionResult.refuse(
                Reason.MISSING_ARGUMENT,
                f"usage: {t.command} <task-id> <description>",
            )

        built = build(kind, task_id, description, self.naming)
        if isinstance(built, Err):
            return TransitionResult.refuse(Reason.INVALID_NAME, built.error.message)

        name = built.value.raw_name
        if snapshot.has_branch(name):
            return TransitionResult.refuse(
                Reason.BRANCH_EXISTS, f"branch '{name}' already exists; check it out instead"
            )
        return TransitionResult.allow(self._branch_from_main(name), target=name)

    # -- feature / release synchronisation ------------------------------

    def _sync(self, t: Transition, snapshot: RepoSnapshot) -> TransitionResult:
        refused = _expect_kind(snapshot, t.command, BranchKind.FEATURE) or _expect_clean(snapshot)
        if refused is not None:
            return refused

        upstream_main = f"{self._remote}/{self._main}"
        return TransitionResult.allow(
            (
                Fetch(self._remote),
                Merge(upstream_main, "no-ff", f"chore: sync with {self._main}"),
            ),
            target=snapshot.current.raw_name,
        )

    def _release(self, t: Transition, snapshot: RepoSnapshot) -> TransitionResult:
        refused = _expect_kind(snapshot, t.command, BranchKind.FEATURE) or _expect_clean(snapshot)
        if refused is not None:
            return refused

        feature = snapshot.current
        release = derive_sibling(feature, BranchKind.RELEASE)
        if isinstance(release, Err):
            return TransitionResult.refuse(Reason.INVALID_NAME, release.error.message)

        name = release.value.raw_name
        if snapshot.has_branch(name):
            return TransitionResult.refuse(
                Reason.BRANCH_EXISTS,
                f"release branch '{name}' already exists; check it out and run sync-feature",
            )

        merge = Merge(
            feature.raw_name,
            "no-ff",
            f"feat({feature.ticket}): merge {feature.raw_name} into release",
        )
        return TransitionResult.allow((*self._branch_from_main(name), merge), target=name)

    def _sync_feature(self, t: Transition, snapshot: RepoSnapshot) -> TransitionResult:
        refused = _expect_kind(snapshot, t.command, BranchKind.RELEASE) or _expect_clean(snapshot)
        if refused is not None:
            return refused

        sibling = derive_sibling(snapshot.current, BranchKind.FEATURE)
        if isinstance(sibling, Err):
            return TransitionResult.refuse(Reason.SIBLING_BRANCH_NOT_FOUND, sibling.error.message)

        feature = sibling.value.raw_name
        if not snapshot.has_branch(feature):
            return TransitionResult.refuse(
                Reason.SIBLING_BRANCH_NOT_FOUND,
                f"feature branch '{feature}' not found locally",
            )
        return TransitionResult.allow(
            (
                Fetch(self._remote),
                Merge(feature, "no-ff", f"chore: sync release with {feature}"),
            ),
            target=snapshot.current.raw_name,
        )

    # -- promotion ---------------------------------------------------------

    def _to_staging(self, t: Transition, snapshot: RepoSnapshot) -> TransitionResult:
        refused = _expect_kind(snapshot, t.command, *_RELEASE_OR_HOTFIX) or _expect_clean(snapshot)
        if refused is not None:
            return refused

        branch = snapshot.current.raw_name
        staging = self.config.branches.staging
        return TransitionResult.allow(
            (Push(branch, self._remote, set_upstream=True),),
            pr_spec=PrSpec(
                base=staging,
                head=branch,
                title=f"chore: merge {branch} to {staging} for UAT",
                body=f"Merge {branch} to {staging} for UAT testing.",
            ),
            target=branch,
        )

    def _ship(self, t: Transition, snapshot: RepoSnapshot) -> TransitionResult:
        bump_text = t.text("bump")
        if not bump_text:
            return TransitionResult.refuse(
                Reason.MISSING_ARGUMENT, "usage: ship <major|minor|patch>"
            )
        bump = parse_bump(bump_text)
        if isinstance(bump, Err):
            return TransitionResult.refuse(Reason.INVALID_BUMP_TYPE, bump.error)

        refused = _expect_kind(snapshot, t.command, *_RELEASE_OR_HOTFIX) or _expect_clean(snapshot)
        if refused is not None:
            return refused

        current = snapshot.current
        # Hotfixes may go straight to main; releases need UAT first.
        if (
            current.kind == BranchKind.RELEASE
            and snapshot.staging_pr_merged is False
            and not t.flag("skip_staging")
        ):
            return TransitionResult.refuse(
                Reason.STAGING_NOT_MERGED,
                f"no merged PR from {current.raw_name} to {self.config.branches.staging}; "
                "run to-staging first or pass --skip-staging",
            )

        version = next_version(snapshot.latest_version, bump.value, initial=self._initial_version)
        tag = version.to_tag(self.config.versions.tag_prefix)
        subject = snapshot.head_subject or current.raw_name
        branch = current.raw_name
        return TransitionResult.allow(
            (Push(branch, self._remote, set_upstream=True),),
            pr_spec=PrSpec(
                base=self._main,
                head=branch,
                title=f"[{bump.value}] {subject}",
                body=(
                    f"Ship {branch} to production.\n\n"
                    f"Squash merge of {branch}.\n\n"
                    f"Next version: {tag}"
                ),
            ),
            next_version=version,
            target=branch,
        )

    def _tag(self, t: Transition, snapshot: RepoSnapshot) -> TransitionResult:
        bump_text = t.text("bump")
        if not bump_text:
            return TransitionResult.refuse(
                Reason.MISSING_ARGUMENT, "usage: tag <major|minor|patch>"
            )
        bump = parse_bump(bump_text)
        if isinstance(bump, Err):
            return TransitionResult.refuse(Reason.INVALID_BUMP_TYPE, bump.error)

        refused = _expect_kind(snapshot, t.command, BranchKind.MAIN) or _expect_clean(snapshot)
        if refused is not None:
            return refused

        version = next_version(snapshot.latest_version, bump.value, initial=self._initial_version)
        tag = version.to_tag(self.config.versions.tag_prefix)
        return TransitionResult.allow(
            (
                Pull(self._remote, self._main),
                Tag(tag, f"release: {tag}"),
                Push(f"refs/tags/{tag}", self._remote),
            ),
            next_version=version,
            target=tag,
        )

    def _status(self, t: Transition, snapshot: RepoSnapshot) -> TransitionResult:
        return TransitionResult.allow((), target=snapshot.current.raw_name)

    @property
    def _initial_version(self) -> VersionTag | None:
        initial = self.config.versions.initial
        return parse_version(initial) if initial else None

