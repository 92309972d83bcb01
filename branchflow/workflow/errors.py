"""Error types for workflow commands.

``kind`` says how far a command got before failing:

- ``invalid_argument``: bad command-line input, nothing was run;
- ``precondition_failed``: wrong branch or repository state, nothing was run;
- ``external_operation_failed``: a git/gh operation failed part way, earlier
  operations may have taken effect;
- ``policy_violation``: the remote refused a change (branch protection);
- ``environment``: not a git repository, detached HEAD, broken config.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

WorkflowErrorKind = Literal[
    "invalid_argument",
    "precondition_failed",
    "external_operation_failed",
    "policy_violation",
    "environment",
]

FailureCause = Literal["merge_conflict", "network", "authorization", "other"]


@dataclass(frozen=True, slots=True)
class WorkflowError:
    kind: WorkflowErrorKind
    message: str
    hint: str | None = None
    # Set for external_operation_failed / policy_violation.
    op: str | None = None
    cause: FailureCause | None = None
    # Set for refusals from the policy engine.
    reason: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


_CONFLICT_MARKERS = (
    "conflict",
    "automatic merge failed",
    "fix conflicts",
    "not possible because you have unmerged files",
)
_NETWORK_MARKERS = (
    "could not resolve host",
    "could not read from remote repository",
    "unable to access",
    "connection refused",
    "connection reset",
    "connection timed out",
    "timed out",
    "network is unreachable",
    "remote end hung up unexpectedly",
)
_AUTH_MARKERS = (
    "permission denied",
    "authentication failed",
    "could not read username",
    "http 401",
    "http 403",
    "gh auth login",
)
_POLICY_MARKERS = (
    "protected branch",
    "gh006",
    "pre-receive hook declined",
)


def classify_failure(output: str) -> FailureCause:
    """Guess why a git/gh command failed from its output."""
    text = output.lower()
    if any(marker in text for marker in _CONFLICT_MARKERS):
        return "merge_conflict"
    if any(marker in text for marker in _AUTH_MARKERS):
        return "authorization"
    if any(marker in text for marker in _NETWORK_MARKERS):
        return "network"
    return "other"


def is_policy_rejection(output: str) -> bool:
    """True when the remote refused a push because of branch rules."""
    text = output.lower()
    return any(marker in text for marker in _POLICY_MARKERS)
