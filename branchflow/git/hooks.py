"""Install the commit-msg hook that runs ``bflow lint-commit``."""

from __future__ import annotations

import stat
from dataclasses import dataclass
from pathlib import Path

from branchflow.core.result import Err, Ok, Result
from branchflow.platform.process import run as run_process

HOOK_MARKER = "# installed by bflow"

HOOK_SCRIPT = f"""#!/bin/sh
{HOOK_MARKER}
exec bflow lint-commit "$1"
"""


@dataclass(frozen=True, slots=True)
class HookError:
    message: str
    path: Path | None = None
    # True when a hook not written by bflow is in the way.
    foreign: bool = False


def hooks_dir(repo_root: Path) -> Result[Path, HookError]:
    """Resolve the hooks directory (respects core.hooksPath and worktrees)."""
    result = run_process(["git", "rev-parse", "--git-path", "hooks"], cwd=repo_root, timeout=30.0)
    if isinstance(result, Err):
        return Err(HookError(result.error.stderr.strip() or "not a git repository"))
    path = Path(result.value.strip())
    if not path.is_absolute():
        path = repo_root / path
    return Ok(path)


def install_commit_msg_hook(repo_root: Path, *, force: bool = False) -> Result[Path, HookError]:
    """Write the commit-msg hook; an existing foreign hook is kept unless ``force``."""
    directory = hooks_dir(repo_root)
    if isinstance(directory, Err):
        return directory

    hook = directory.value / "commit-msg"
    try:
        if hook.exists() and not force:
            current = hook.read_text(encoding="utf-8", errors="replace")
            if HOOK_MARKER not in current:
                message = "a different commit-msg hook is already installed"
                return Err(HookError(message, hook, foreign=True))

        hook.parent.mkdir(parents=True, exist_ok=True)
        hook.write_text(HOOK_SCRIPT, encoding="utf-8")
        mode = hook.stat().st_mode
        hook.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        return Err(HookError(f"cannot write hook: {e}", hook))
    return Ok(hook)
