"""Tests for git/repository.py."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from branchflow.core.result import Err, Ok
from branchflow.git.repository import GitStatus, Repository, StatusEntry, find_repo_root


def make_completed_process(
    returncode: int = 0, stdout: str = "", stderr: str = ""
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(
        args=["git"], returncode=returncode, stdout=stdout, stderr=stderr
    )


def _git_args(mock_run: MagicMock, call: int = -1) -> list[str]:
    """Arguments after ``git -C <path>`` for one recorded call."""
    cmd = mock_run.call_args_list[call][0][0]
    assert cmd[:2] == ["git", "-C"]
    return cmd[3:]


# =============================================================================
# StatusEntry / GitStatus Tests
# =============================================================================


class TestStatusEntry:
    """Tests for StatusEntry dataclass."""

    def test_untracked(self) -> None:
        entry = StatusEntry(xy="??", path="new.py")
        assert entry.is_untracked is True
        assert entry.is_unmerged is False

    def test_unmerged(self) -> None:
        for xy in ("UU", "AA", "DU"):
            assert StatusEntry(xy=xy, path="a.py").is_unmerged is True
        assert StatusEntry(xy="M ", path="a.py").is_unmerged is False

    def test_pretty_xy(self) -> None:
        assert StatusEntry(xy=" M", path="a.py").pretty_xy() == ".M"


class TestGitStatus:
    def test_clean(self) -> None:
        status = GitStatus(branch="main")
        assert status.is_clean is True
        assert status.has_tracked_changes is False

    def test_untracked_only_is_not_tracked_change(self) -> None:
        status = GitStatus(branch="main", entries=(StatusEntry("??", "x"),))
        assert status.is_clean is False
        assert status.has_tracked_changes is False

    def test_unmerged(self) -> None:
        entries = (StatusEntry("UU", "a.py"), StatusEntry(" M", "b.py"))
        assert GitStatus(branch="main", entries=entries).unmerged == [entries[0]]


# =============================================================================
# Repository Tests
# =============================================================================


class TestRepositoryQueries:
    """Query methods parse git output."""

    def test_exists(self, tmp_path: Path) -> None:
        assert Repository(tmp_path).exists() is False
        (tmp_path / ".git").mkdir()
        assert Repository(tmp_path).exists() is True

    @patch("subprocess.run")
    def test_status_parsing(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stdout="## feature/CU-1-x...origin/feature/CU-1-x [ahead 2, behind 1]\n"
            " M app.py\n"
            "?? notes.txt\n"
        )

        result = Repository(tmp_path).status()

        assert isinstance(result, Ok)
        status = result.value
        assert status.branch == "feature/CU-1-x"
        assert status.upstream == "origin/feature/CU-1-x"
        assert (status.ahead, status.behind) == (2, 1)
        assert [e.path for e in status.entries] == ["app.py", "notes.txt"]

    @patch("subprocess.run")
    def test_current_branch(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="release/CU-1-x\n")

        result = Repository(tmp_path).current_branch()

        assert result == Ok("release/CU-1-x")
        assert _git_args(mock_run) == ["symbolic-ref", "--short", "-q", "HEAD"]

    @patch("subprocess.run")
    def test_current_branch_detached(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(returncode=1)

        assert Repository(tmp_path).current_branch() == Ok(None)

    @patch("subprocess.run")
    def test_current_branch_not_a_repo(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            returncode=128, stderr="fatal: not a git repository"
        )

        result = Repository(tmp_path).current_branch()

        assert isinstance(result, Err)
        assert result.error.returncode == 128
        assert "not a git repository" in result.error.message

    @patch("subprocess.run")
    def test_is_dirty_ignores_untracked(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="## main\n?? scratch.txt\n")
        assert Repository(tmp_path).is_dirty() == Ok(False)

        mock_run.return_value = make_completed_process(stdout="## main\nM  app.py\n")
        assert Repository(tmp_path).is_dirty() == Ok(True)

    @patch("subprocess.run")
    def test_merge_in_progress_from_unmerged_paths(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        mock_run.return_value = make_completed_process(stdout="## main\nUU app.py\n")
        assert Repository(tmp_path).merge_in_progress() == Ok(True)
        assert mock_run.call_count == 1

    @patch("subprocess.run")
    def test_merge_in_progress_from_merge_head(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = [
            make_completed_process(stdout="## main\n"),
            make_completed_process(stdout="abc123\n"),
        ]
        assert Repository(tmp_path).merge_in_progress() == Ok(True)
        assert _git_args(mock_run) == ["rev-parse", "-q", "--verify", "MERGE_HEAD"]

    @patch("subprocess.run")
    def test_no_merge_in_progress(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = [
            make_completed_process(stdout="## main\n"),
            make_completed_process(returncode=1),
        ]
        assert Repository(tmp_path).merge_in_progress() == Ok(False)

    @patch("subprocess.run")
    def test_local_branches(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="main\nstaging\nfeature/CU-1-x\n")
        assert Repository(tmp_path).local_branches() == Ok(
            frozenset({"main", "staging", "feature/CU-1-x"})
        )

    @patch("subprocess.run")
    def test_rev_list_count(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="7\n")
        assert Repository(tmp_path).rev_list_count("origin/main", "HEAD") == Ok(7)
        assert _git_args(mock_run) == ["rev-list", "--count", "origin/main..HEAD"]

    @patch("subprocess.run")
    def test_rev_list_count_garbage(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="???\n")
        assert isinstance(Repository(tmp_path).rev_list_count("a", "b"), Err)

    @patch("subprocess.run")
    def test_head_subject(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="feat: add login\n")
        assert Repository(tmp_path).head_subject() == Ok("feat: add login")

    @patch("subprocess.run")
    def test_tags(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="v1.0.0\nv1.1.0\n\n")
        assert Repository(tmp_path).tags() == Ok(["v1.0.0", "v1.1.0"])

    @patch("subprocess.run")
    def test_recent_commits(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stdout=f"{'a' * 40}\tfeat: one\n{'b' * 40}\tfix: two"
        )

        result = Repository(tmp_path).recent_commits(5)

        assert isinstance(result, Ok)
        assert [(c.short_sha, c.subject) for c in result.value] == [
            ("aaaaaaa", "feat: one"),
            ("bbbbbbb", "fix: two"),
        ]
        assert _git_args(mock_run) == ["log", "-5", "--pretty=format:%H%x09%s"]


class TestRepositoryMutations:
    """Mutations build the expected git command lines."""

    @patch("subprocess.run")
    def test_merge_no_ff(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        Repository(tmp_path).merge("origin/main", "no-ff", "chore: sync with main")

        assert _git_args(mock_run) == [
            "merge",
            "origin/main",
            "--no-ff",
            "-m",
            "chore: sync with main",
        ]

    @patch("subprocess.run")
    def test_merge_squash(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        Repository(tmp_path).merge("release/CU-1-x", "squash", "ignored")
        assert _git_args(mock_run) == ["merge", "--squash", "release/CU-1-x"]

    @patch("subprocess.run")
    def test_push(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        repo = Repository(tmp_path)

        repo.push("release/CU-1-x", "origin", set_upstream=True)
        assert _git_args(mock_run) == ["push", "-u", "origin", "release/CU-1-x"]

        repo.push("refs/tags/v1.0.0", "origin", set_upstream=False)
        assert _git_args(mock_run) == ["push", "origin", "refs/tags/v1.0.0"]

    @patch("subprocess.run")
    def test_fetch_includes_tags(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        Repository(tmp_path).fetch("origin")
        assert _git_args(mock_run) == ["fetch", "--tags", "origin"]

    @patch("subprocess.run")
    def test_network_commands_get_longer_timeout(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        mock_run.return_value = make_completed_process()
        repo = Repository(tmp_path)

        repo.fetch("origin")
        fetch_timeout = mock_run.call_args.kwargs["timeout"]
        repo.checkout("main")
        checkout_timeout = mock_run.call_args.kwargs["timeout"]

        assert fetch_timeout > checkout_timeout

    @patch("subprocess.run")
    def test_create_branch_and_tag(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        repo = Repository(tmp_path)

        repo.create_branch("feature/CU-1-x")
        assert _git_args(mock_run) == ["checkout", "-b", "feature/CU-1-x"]

        repo.tag("v1.0.0", "release: v1.0.0")
        assert _git_args(mock_run) == ["tag", "-a", "v1.0.0", "-m", "release: v1.0.0"]

    @patch("subprocess.run")
    def test_failure_carries_output(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            returncode=1,
            stdout="CONFLICT (content): Merge conflict in app.py\n",
            stderr="Automatic merge failed\n",
        )

        result = Repository(tmp_path).merge("origin/main", "no-ff", "msg")

        assert isinstance(result, Err)
        assert result.error.command == "git merge origin/main"
        assert "CONFLICT" in result.error.message
        assert "Automatic merge failed" in result.error.message


class TestFindRepoRoot:
    @patch("subprocess.run")
    def test_found(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout=f"{tmp_path}\n")
        assert find_repo_root(tmp_path / "sub") == Ok(tmp_path)

    @patch("subprocess.run")
    def test_not_a_repo(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(returncode=128, stderr="")

        result = find_repo_root(tmp_path)

        assert isinstance(result, Err)
        assert "not a git repository" in result.error.message
