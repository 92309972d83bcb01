from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Literal

from branchflow.workflow.branch import BranchRef
from branchflow.workflow.semver import VersionTag


class Command(Enum):
    FEATURE = "feature"
    SYNC = "sync"
    RELEASE = "release"
    SYNC_FEATURE = "sync-feature"
    TO_STAGING = "to-staging"
    SHIP = "ship"
    HOTFIX = "hotfix"
    TAG = "tag"
    STATUS = "status"

    def __str__(self) -> str:
        return self.value

    @property
    def is_mutating(self) -> bool:
        return self != Command.STATUS


class Reason(Enum):
    """Why the policy engine refused a transition."""

    NOT_ON_EXPECTED_BRANCH = "not_on_expected_branch"
    DIRTY_WORKING_TREE = "dirty_working_tree"
    MISSING_ARGUMENT = "missing_argument"
    INVALID_BUMP_TYPE = "invalid_bump_type"
    SIBLING_BRANCH_NOT_FOUND = "sibling_branch_not_found"
    INVALID_NAME = "invalid_name"
    BRANCH_EXISTS = "branch_exists"
    MERGE_IN_PROGRESS = "merge_in_progress"
    STAGING_NOT_MERGED = "staging_not_merged"

    def __str__(self) -> str:
        return self.value

    @property
    def is_argument_problem(self) -> bool:
        return self in (Reason.MISSING_ARGUMENT, Reason.INVALID_BUMP_TYPE, Reason.INVALID_NAME)


MergeMode = Literal["no-ff", "squash"]


# -----------------------------------------------------------------------------
# Git operations (declarative; executed by the orchestrator)
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Fetch:
    remote: str

    def describe(self) -> str:
        return f"git fetch {self.remote}"


@dataclass(frozen=True, slots=True)
class Checkout:
    ref: str

    def describe(self) -> str:
        return f"git checkout {self.ref}"


@dataclass(frozen=True, slots=True)
class Pull:
    remote: str
    branch: str

    def describe(self) -> str:
        return f"git pull {self.remote} {self.branch}"


@dataclass(frozen=True, slots=True)
class CreateBranch:
    name: str

    def describe(self) -> str:
        return f"git checkout -b {self.name}"


@dataclass(frozen=True, slots=True)
class Merge:
    ref: str
    mode: MergeMode
    message: str

    def describe(self) -> str:
        return f"git merge {self.ref} --{self.mode}"


@dataclass(frozen=True, slots=True)
class Push:
    ref: str
    remote: str
    set_upstream: bool = False

    def describe(self) -> str:
        flag = " -u" if self.set_upstream else ""
        return f"git push{flag} {self.remote} {self.ref}"


@dataclass(frozen=True, slots=True)
class Tag:
    name: str
    message: str

    def describe(self) -> str:
        return f"git tag -a {self.name}"


GitOp = Fetch | Checkout | Pull | CreateBranch | Merge | Push | Tag


# -----------------------------------------------------------------------------
# Requests and responses
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PrSpec:
    base: str
    head: str
    title: str
    body: str


@dataclass(frozen=True, slots=True)
class RepoSnapshot:
    """Repository state read once at the start of a command."""

    current: BranchRef
    dirty: bool = False
    merge_in_progress: bool = False
    local_branches: frozenset[str] = frozenset()
    head_subject: str | None = None
    latest_version: VersionTag | None = None
    # None when not looked up (no gh, or not needed for this command).
    staging_pr_merged: bool | None = None

    def has_branch(self, name: str) -> bool:
        return name in self.local_branches


def _empty_args() -> dict[str, str | bool]:
    return {}


@dataclass(frozen=True, slots=True)
class Transition:
    command: Command
    source: BranchRef
    args: Mapping[str, str | bool] = field(default_factory=_empty_args)

    def __post_init__(self) -> None:
        # Read-only copy; callers keep their own dict.
        object.__setattr__(self, "args", MappingProxyType(dict(self.args)))

    def text(self, name: str) -> str:
        """A string argument, stripped; empty when missing."""
        value = self.args.get(name)
        return value.strip() if isinstance(value, str) else ""

    def flag(self, name: str) -> bool:
        return self.args.get(name) is True


@dataclass(frozen=True, slots=True)
class TransitionResult:
    allowed: bool
    reason: Reason | None = None
    detail: str | None = None
    git_ops: tuple[GitOp, ...] = ()
    pr_spec: PrSpec | None = None
    next_version: VersionTag | None = None
    # Branch the command creates or works on, for display.
    target: str | None = None

    @classmethod
    def refuse(cls, reason: Reason, detail: str) -> TransitionResult:
        return cls(allowed=False, reason=reason, detail=detail)

    @classmethod
    def allow(
        cls,
        ops: tuple[GitOp, ...],
        *,
        pr_spec: PrSpec | None = None,
        next_version: VersionTag | None = None,
        target: str | None = None,
    ) -> TransitionResult:
        return cls(
            allowed=True,
            git_ops=ops,
            pr_spec=pr_spec,
            next_version=next_version,
            target=target,
        )
