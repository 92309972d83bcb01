"""Capabilities the orchestrator needs from git and the PR host.

The production implementations are :class:`branchflow.git.repository.Repository`
(the ``git`` executable) and :class:`branchflow.github.pulls.GhPullRequests`
(the ``gh`` executable). Tests use in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from branchflow.core.result import Result
from branchflow.workflow.model import MergeMode


@dataclass(frozen=True, slots=True)
class GatewayError:
    """A failed external call.

    Attributes:
        command: What was run (for display), e.g. ``git merge origin/main``
        message: Error output from the tool
        returncode: Process return code (-1 if it never ran)
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class PullRequest:
    number: int
    url: str
    state: str
    head: str
    base: str
    title: str = ""

    @property
    def is_open(self) -> bool:
        return self.state.upper() == "OPEN"


@dataclass(frozen=True, slots=True)
class CommitLine:
    sha: str
    subject: str

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


class GitGateway(Protocol):
    def fetch(self, remote: str) -> Result[str, GatewayError]: ...

    def checkout(self, ref: str) -> Result[str, GatewayError]: ...

    def pull(self, remote: str, branch: str) -> Result[str, GatewayError]: ...

    def create_branch(self, name: str) -> Result[str, GatewayError]:
        """Create ``name`` at HEAD and switch to it."""
        ...

    def merge(self, ref: str, mode: MergeMode, message: str) -> Result[str, GatewayError]: ...

    def push(self, ref: str, remote: str, *, set_upstream: bool) -> Result[str, GatewayError]: ...

    def tag(self, name: str, message: str) -> Result[str, GatewayError]: ...

    def current_branch(self) -> Result[str | None, GatewayError]:
        """Current branch name, or None on a detached HEAD."""
        ...

    def is_dirty(self) -> Result[bool, GatewayError]:
        """True when tracked files differ from HEAD."""
        ...

    def merge_in_progress(self) -> Result[bool, GatewayError]:
        """True while a merge is unfinished (MERGE_HEAD or unmerged paths)."""
        ...

    def local_branches(self) -> Result[frozenset[str], GatewayError]: ...

    def rev_list_count(self, base: str, head: str) -> Result[int, GatewayError]:
        """Number of commits reachable from ``head`` but not from ``base``."""
        ...

    def head_subject(self) -> Result[str | None, GatewayError]: ...

    def tags(self) -> Result[list[str], GatewayError]: ...

    def recent_commits(self, limit: int) -> Result[list[CommitLine], GatewayError]: ...

    def changed_paths(self) -> Result[list[str], GatewayError]:
        """Porcelain status lines (staged, unstaged and untracked)."""
        ...


class PrGateway(Protocol):
    def create(
        self, *, base: str, head: str, title: str, body: str
    ) -> Result[str, GatewayError]:
        """Open a pull request and return its URL."""
        ...

    def list_by_head_base(
        self, *, head: str, base: str, state: str = "open"
    ) -> Result[list[PullRequest], GatewayError]:
        """Pull requests from ``head`` into ``base``; ``state`` is open or all."""
        ...

    def is_merged(self, number: int) -> Result[bool, GatewayError]: ...
