"""Git repository adapter.

:class:`Repository` implements the workflow's ``GitGateway`` on top of the
``git`` executable. All operations return Result types.

Usage:
    repo = Repository(Path("."))

    match repo.status():
        case Ok(status):
            print(f"Branch: {status.branch}")
            if status.is_clean:
                print("Working tree clean")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from branchflow.core.result import Err, Ok, Result
from branchflow.platform.process import ProcessError
from branchflow.platform.process import run as run_process
from branchflow.workflow.gateways import CommitLine, GatewayError
from branchflow.workflow.model import MergeMode

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# Porcelain XY codes for paths with unresolved conflicts.
_UNMERGED_CODES = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})

__all__ = [
    "GitStatus",
    "Repository",
    "StatusEntry",
    "find_repo_root",
]


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??", "UU")
        path: File path
    """

    xy: str
    path: str

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"

    @property
    def is_unmerged(self) -> bool:
        return self.xy in _UNMERGED_CODES

    def pretty_xy(self) -> str:
        """Format XY with dots for spaces (". M" instead of " M")."""
        return self.xy.replace(" ", ".")


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed ``git status --porcelain=v1 -b``.

    Attributes:
        branch: Current branch name ("HEAD (no branch)" when detached)
        upstream: Upstream branch (e.g., "origin/main"), None if not set
        ahead: Number of commits ahead of upstream
        behind: Number of commits behind upstream
        entries: All status entries (staged, unstaged, untracked)
    """

    branch: str
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0

    @property
    def has_tracked_changes(self) -> bool:
        """True if tracked files differ from HEAD (untracked files don't count)."""
        return any(not e.is_untracked for e in self.entries)

    @property
    def unmerged(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.is_unmerged]


class Repository:
    """Git repository at ``path``; implements ``GitGateway``."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a git work tree (``.git`` directory or file)."""
        return (self.path / ".git").exists()

    # -- queries -----------------------------------------------------------

    def status(self) -> Result[GitStatus, GatewayError]:
        """Run ``git status --porcelain=v1 -b`` and parse the output."""
        result = self._call(["status", "--porcelain=v1", "-b"])
        match result:
            case Err(e):
                return Err(e)
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def current_branch(self) -> Result[str | None, GatewayError]:
        result = self._run(["symbolic-ref", "--short", "-q", "HEAD"])
        match result:
            case Ok(stdout):
                return Ok(stdout.strip() or None)
            case Err(e):
                # -q: exit 1 without output means HEAD is detached.
                if e.returncode == 1 and not e.stderr.strip():
                    return Ok(None)
                return Err(_gateway_error("git symbolic-ref HEAD", e))

    def is_dirty(self) -> Result[bool, GatewayError]:
        return self.status().map(lambda st: st.has_tracked_changes)

    def merge_in_progress(self) -> Result[bool, GatewayError]:
        status = self.status()
        if isinstance(status, Err):
            return status
        if status.value.unmerged:
            return Ok(True)
        merge_head = self._run(["rev-parse", "-q", "--verify", "MERGE_HEAD"])
        return Ok(isinstance(merge_head, Ok))

    def local_branches(self) -> Result[frozenset[str], GatewayError]:
        result = self._call(["for-each-ref", "--format=%(refname:short)", "refs/heads"])
        return result.map(
            lambda out: frozenset(ln.strip() for ln in out.splitlines() if ln.strip())
        )

    def rev_list_count(self, base: str, head: str) -> Result[int, GatewayError]:
        result = self._call(["rev-list", "--count", f"{base}..{head}"])
        if isinstance(result, Err):
            return result
        try:
            return Ok(int(result.value.strip()))
        except ValueError:
            return Err(
                GatewayError(
                    command="git rev-list --count",
                    message=f"unexpected output: {result.value.strip()!r}",
                )
            )

    def head_subject(self) -> Result[str | None, GatewayError]:
        return self._call(["log", "-1", "--pretty=%s"]).map(lambda out: out.strip() or None)

    def tags(self) -> Result[list[str], GatewayError]:
        return self._call(["tag", "--list"]).map(
            lambda out: [ln.strip() for ln in out.splitlines() if ln.strip()]
        )

    def recent_commits(self, limit: int) -> Result[list[CommitLine], GatewayError]:
        result = self._call(["log", f"-{limit}", "--pretty=format:%H%x09%s"])
        if isinstance(result, Err):
            return result
        commits: list[CommitLine] = []
        for line in result.value.splitlines():
            sha, _, subject = line.partition("\t")
            if sha:
                commits.append(CommitLine(sha=sha, subject=subject))
        return Ok(commits)

    def changed_paths(self) -> Result[list[str], GatewayError]:
        return self.status().map(lambda st: [f"{e.pretty_xy()} {e.path}" for e in st.entries])

    # -- mutations ---------------------------------------------------------

    def fetch(self, remote: str) -> Result[str, GatewayError]:
        # Also tags not reachable from a fetched branch; versions are computed from them.
        return self._call(["fetch", "--tags", remote])

    def checkout(self, ref: str) -> Result[str, GatewayError]:
        return self._call(["checkout", ref])

    def pull(self, remote: str, branch: str) -> Result[str, GatewayError]:
        return self._call(["pull", remote, branch])

    def create_branch(self, name: str) -> Result[str, GatewayError]:
        return self._call(["checkout", "-b", name])

    def merge(self, ref: str, mode: MergeMode, message: str) -> Result[str, GatewayError]:
        if mode == "squash":
            return self._call(["merge", "--squash", ref])
        return self._call(["merge", ref, "--no-ff", "-m", message])

    def push(self, ref: str, remote: str, *, set_upstream: bool) -> Result[str, GatewayError]:
        args = ["push", "-u", remote, ref] if set_upstream else ["push", remote, ref]
        return self._call(args)

    def tag(self, name: str, message: str) -> Result[str, GatewayError]:
        return self._call(["tag", "-a", name, "-m", message])

    # -- internals ---------------------------------------------------------

    def _call(self, args: list[str]) -> Result[str, GatewayError]:
        """Run git and convert failures to GatewayError."""
        result = self._run(args)
        match result:
            case Err(e):
                return Err(_gateway_error(f"git {' '.join(args[:2])}", e))
            case Ok(stdout):
                return Ok(stdout)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)

    def _parse_status(self, output: str) -> GitStatus:
        """Parse git status --porcelain=v1 -b output."""
        lines = [ln for ln in output.splitlines() if ln.strip()]

        if not lines:
            return GitStatus(branch="")

        # First line is branch info: ## branch...upstream [ahead N, behind M]
        branch_line = lines[0]
        branch, upstream = self._parse_branch_line(branch_line)
        ahead, behind = self._parse_ahead_behind(branch_line)

        entries: list[StatusEntry] = []
        for line in lines[1:]:
            entry = self._parse_entry(line)
            if entry:
                entries.append(entry)

        return GitStatus(
            branch=branch,
            upstream=upstream,
            ahead=ahead,
            behind=behind,
            entries=tuple(entries),
        )

    def _parse_branch_line(self, line: str) -> tuple[str, str | None]:
        s = line.strip()
        if s.startswith("##"):
            s = s[2:].lstrip()

        s = s.split(" [", 1)[0].strip()

        if "..." in s:
            left, right = s.split("...", 1)
            return (left.strip(), right.strip())

        return (s, None)

    def _parse_ahead_behind(self, line: str) -> tuple[int, int]:
        match = re.search(r"\[([^\]]+)\]", line)
        if not match:
            return (0, 0)

        inside = match.group(1)
        ahead_match = re.search(r"ahead\s+(\d+)", inside)
        behind_match = re.search(r"behind\s+(\d+)", inside)
        ahead = int(ahead_match.group(1)) if ahead_match else 0
        behind = int(behind_match.group(1)) if behind_match else 0
        return (ahead, behind)

    def _parse_entry(self, line: str) -> StatusEntry | None:
        if len(line) < 4:
            return None
        if line.startswith("?? "):
            return StatusEntry(xy="??", path=line[3:])
        return StatusEntry(xy=line[:2], path=line[3:])


def _gateway_error(command: str, e: ProcessError) -> GatewayError:
    return GatewayError(
        command=command,
        message=e.output or f"{command} failed",
        returncode=e.returncode,
    )


def find_repo_root(start: Path) -> Result[Path, GatewayError]:
    """Top of the work tree containing ``start``."""
    result = run_process(
        ["git", "rev-parse", "--show-toplevel"], cwd=start, timeout=_GIT_TIMEOUT_SECONDS
    )
    match result:
        case Err(e):
            return Err(
                GatewayError(
                    command="git rev-parse --show-toplevel",
                    message=e.stderr.strip() or f"not a git repository: {start}",
                    returncode=e.returncode,
                )
            )
        case Ok(stdout):
            return Ok(Path(stdout.strip()))
