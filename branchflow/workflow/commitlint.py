"""Conventional commit message checks.

Rules (errors unless noted):

- type-enum: the type is one of the configured commit types;
- type-empty / header format: ``type(scope)!: subject``;
- subject-empty: the subject is not blank;
- subject-full-stop: the subject does not end with ``.``;
- header-max-length: the header fits the configured length;
- body-leading-blank (warning): a blank line separates header and body.

Scope and subject case are not checked, so ``feat(CU-abc123): Add login``
is fine. Headers git writes itself (merges, reverts, fixups) are skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from branchflow.core.config import CommitsConfig

__all__ = ["LintIssue", "lint_message", "strip_comments"]

_HEADER_RE = re.compile(
    r"^(?P<type>\w*)(?:\((?P<scope>[^)]*)\))?(?P<breaking>!)?:(?:\s+(?P<subject>.*))?$"
)

_IGNORED_PREFIXES = (
    "Merge ",
    "Revert ",
    "fixup! ",
    "squash! ",
    "amend! ",
    "Initial commit",
)


@dataclass(frozen=True, slots=True)
class LintIssue:
    rule: str
    message: str
    level: Literal["error", "warning"] = "error"


def strip_comments(text: str) -> str:
    """Drop git's ``#`` comment lines and the scissors section."""
    lines: list[str] = []
    for line in text.splitlines():
        if line.startswith("# ------------------------ >8 ------------------------"):
            break
        if line.startswith("#"):
            continue
        lines.append(line)
    return "\n".join(lines).strip()


def lint_message(message: str, rules: CommitsConfig | None = None) -> list[LintIssue]:
    """Return every rule the commit message breaks (empty when it passes)."""
    rules = rules or CommitsConfig()
    text = strip_comments(message)
    if not text:
        return [LintIssue("subject-empty", "commit message is empty")]

    header = text.splitlines()[0]
    if header.startswith(_IGNORED_PREFIXES):
        return []

    issues: list[LintIssue] = []
    if len(header) > rules.header_max_length:
        issues.append(
            LintIssue(
                "header-max-length",
                f"header is {len(header)} characters, limit is {rules.header_max_length}",
            )
        )

    m = _HEADER_RE.match(header)
    if m is None:
        issues.append(LintIssue("type-empty", "header must look like 'type(scope): subject'"))
        return issues

    kind = m.group("type")
    subject = (m.group("subject") or "").strip()

    if not kind:
        issues.append(LintIssue("type-empty", "type may not be empty"))
    elif kind not in rules.types:
        issues.append(
            LintIssue("type-enum", f"type '{kind}' must be one of: {', '.join(rules.types)}")
        )

    if not subject:
        issues.append(LintIssue("subject-empty", "subject may not be empty"))
    elif subject.endswith("."):
        issues.append(LintIssue("subject-full-stop", "subject may not end with '.'"))

    lines = text.splitlines()
    if len(lines) > 1 and lines[1].strip():
        issues.append(
            LintIssue(
                "body-leading-blank",
                "body must be separated from the header by a blank line",
                level="warning",
            )
        )

    return issues
