"""Git adapters."""

from .hooks import HookError, install_commit_msg_hook
from .repository import GitStatus, Repository, StatusEntry, find_repo_root

__all__ = [
    "GitStatus",
    "HookError",
    "Repository",
    "StatusEntry",
    "find_repo_root",
    "install_commit_msg_hook",
]
