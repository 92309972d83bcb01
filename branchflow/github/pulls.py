"""Pull requests through the GitHub CLI.

:class:`GhPullRequests` implements the workflow's ``PrGateway`` with ``gh``.
``gh`` resolves the repository from the git remote of ``repo_root`` and uses
its own authentication; nothing here reads tokens.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from branchflow.core.result import Err, Ok, Result
from branchflow.core.structured import as_obj_list, as_str_dict, get_str
from branchflow.platform.process import run as run_process
from branchflow.workflow.gateways import GatewayError, PullRequest

GH_TIMEOUT_SECONDS = 60.0

_LIST_FIELDS = "number,url,state,headRefName,baseRefName,title"


def gh_available() -> bool:
    return shutil.which("gh") is not None


def _parse_json(payload: str, command: str) -> Result[object, GatewayError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(GatewayError(command=command, message=f"invalid JSON from gh: {e}"))
    return Ok(obj)


def _parse_pull_request(item: object) -> PullRequest | None:
    data = as_str_dict(item)
    if data is None:
        return None
    number = data.get("number")
    url = get_str(data, "url")
    if not isinstance(number, int) or url is None:
        return None
    return PullRequest(
        number=number,
        url=url,
        state=get_str(data, "state") or "OPEN",
        head=get_str(data, "headRefName") or "",
        base=get_str(data, "baseRefName") or "",
        title=get_str(data, "title") or "",
    )


class GhPullRequests:
    """``PrGateway`` backed by the ``gh`` executable."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    def create(self, *, base: str, head: str, title: str, body: str) -> Result[str, GatewayError]:
        cmd = [
            "gh",
            "pr",
            "create",
            "--base",
            base,
            "--head",
            head,
            "--title",
            title,
            "--body",
            body,
        ]
        result = self._gh(cmd)
        if isinstance(result, Err):
            return result

        # gh prints progress lines first; the URL is the last line.
        lines = [ln.strip() for ln in result.value.splitlines() if ln.strip()]
        url = lines[-1] if lines else ""
        if not url.startswith("https://"):
            return Err(
                GatewayError(
                    command="gh pr create",
                    message=f"unexpected gh pr create output: {result.value.strip()!r}",
                )
            )
        return Ok(url)

    def list_by_head_base(
        self, *, head: str, base: str, state: str = "open"
    ) -> Result[list[PullRequest], GatewayError]:
        cmd = [
            "gh",
            "pr",
            "list",
            "--head",
            head,
            "--base",
            base,
            "--state",
            state,
            "--json",
            _LIST_FIELDS,
        ]
        result = self._gh(cmd)
        if isinstance(result, Err):
            return result

        parsed = _parse_json(result.value, "gh pr list")
        if isinstance(parsed, Err):
            return parsed
        items = as_obj_list(parsed.value)
        if items is None:
            return Err(GatewayError(command="gh pr list", message="expected a JSON list from gh"))

        prs: list[PullRequest] = []
        for item in items:
            pr = _parse_pull_request(item)
            # gh matches --head by branch name only; forks can share a name.
            if pr is not None and (not pr.head or pr.head == head):
                prs.append(pr)
        return Ok(prs)

    def is_merged(self, number: int) -> Result[bool, GatewayError]:
        result = self._gh(["gh", "pr", "view", str(number), "--json", "state,mergedAt"])
        if isinstance(result, Err):
            return result

        parsed = _parse_json(result.value, "gh pr view")
        if isinstance(parsed, Err):
            return parsed
        data = as_str_dict(parsed.value)
        if data is None:
            return Err(GatewayError(command="gh pr view", message="unexpected gh pr view payload"))

        state = get_str(data, "state")
        merged_at = get_str(data, "mergedAt")
        return Ok(state == "MERGED" or merged_at is not None)

    def _gh(self, cmd: list[str]) -> Result[str, GatewayError]:
        result = run_process(cmd, cwd=self.repo_root, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            e = result.error
            return Err(
                GatewayError(
                    command=" ".join(cmd[:3]),
                    message=e.output or f"{' '.join(cmd[:3])} failed",
                    returncode=e.returncode,
                )
            )
        return Ok(result.value)
