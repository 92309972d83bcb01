"""Release-branch workflow: naming rules, policy and orchestration.

Nothing in this package runs git or gh directly; it talks to them through
the gateway protocols in :mod:`branchflow.workflow.gateways`.
"""

from .branch import BranchKind, BranchRef, build, derive_sibling, parse, validate
from .errors import WorkflowError
from .model import Command, Reason, RepoSnapshot, Transition, TransitionResult
from .orchestrator import WorkflowOrchestrator, WorkflowOutcome
from .policy import PolicyEngine
from .semver import VersionTag, next_version

__all__ = [
    # branch
    "BranchKind",
    "BranchRef",
    "build",
    "derive_sibling",
    "parse",
    "validate",
    # errors
    "WorkflowError",
    # model
    "Command",
    "Reason",
    "RepoSnapshot",
    "Transition",
    "TransitionResult",
    # engine
    "PolicyEngine",
    "WorkflowOrchestrator",
    "WorkflowOutcome",
    # versions
    "VersionTag",
    "next_version",
]
