"""Branch naming grammar.

Work branches look like ``<type>/<PREFIX>-<task>-<description>``, e.g.
``feature/CU-abc123-user-auth``:

- ``type`` is one of feature, release, hotfix;
- ``PREFIX`` is the ticket prefix (``CU`` for ClickUp by default);
- ``task`` matches ``[a-z0-9]+``;
- ``description`` matches ``[a-z0-9-]+``.

Matching is case-sensitive. Anything else (uppercase, underscores, a missing
ticket) is an ``other`` branch, except the configured main and staging
branches which get their own kinds.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Literal

from branchflow.core.config import Config
from branchflow.core.result import Err, Ok, Result

__all__ = [
    "BranchKind",
    "BranchNameError",
    "BranchNaming",
    "BranchRef",
    "DEFAULT_NAMING",
    "build",
    "derive_sibling",
    "is_valid_description",
    "is_valid_task_id",
    "parse",
    "validate",
]

_TASK_ID_RE = re.compile(r"[a-z0-9]+")
_DESCRIPTION_RE = re.compile(r"[a-z0-9-]+")


class BranchKind(Enum):
    FEATURE = "feature"
    RELEASE = "release"
    HOTFIX = "hotfix"
    MAIN = "main"
    STAGING = "staging"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value

    @property
    def is_work_branch(self) -> bool:
        """True for kinds that follow the ``type/PREFIX-task-desc`` grammar."""
        return self in _WORK_KINDS


_WORK_KINDS = frozenset({BranchKind.FEATURE, BranchKind.RELEASE, BranchKind.HOTFIX})


@dataclass(frozen=True, slots=True)
class BranchNameError:
    kind: Literal["invalid_name", "mismatched_kind"]
    message: str


@dataclass(frozen=True, slots=True)
class BranchNaming:
    """The configurable part of the grammar."""

    main: str = "main"
    staging: str = "staging"
    ticket_prefix: str = "CU"

    @classmethod
    def from_config(cls, config: Config) -> BranchNaming:
        return cls(
            main=config.branches.main,
            staging=config.branches.staging,
            ticket_prefix=config.branches.ticket_prefix,
        )


DEFAULT_NAMING = BranchNaming()


@dataclass(frozen=True, slots=True)
class BranchRef:
    """A branch name together with what the grammar says about it.

    ``task_id``, ``description`` and ``ticket`` are set exactly when ``kind``
    is a work branch kind.
    """

    kind: BranchKind
    raw_name: str
    task_id: str | None = None
    description: str | None = None
    ticket: str | None = None

    def __str__(self) -> str:
        return self.raw_name

    @property
    def suffix(self) -> str | None:
        """Everything after the type segment (``CU-abc123-user-auth``)."""
        if not self.kind.is_work_branch:
            return None
        return self.raw_name.split("/", 1)[1]


@lru_cache(maxsize=8)
def _grammar(ticket_prefix: str) -> re.Pattern[str]:
    return re.compile(
        rf"^(feature|release|hotfix)/({re.escape(ticket_prefix)}-([a-z0-9]+))-([a-z0-9-]+)$"
    )


def parse(raw: str, naming: BranchNaming = DEFAULT_NAMING) -> BranchRef:
    """Classify a branch name. Never fails: unknown names are ``other``."""
    if raw == naming.main:
        return BranchRef(kind=BranchKind.MAIN, raw_name=raw)
    if raw == naming.staging:
        return BranchRef(kind=BranchKind.STAGING, raw_name=raw)

    m = _grammar(naming.ticket_prefix).match(raw)
    if m is None:
        return BranchRef(kind=BranchKind.OTHER, raw_name=raw)

    return BranchRef(
        kind=BranchKind(m.group(1)),
        raw_name=raw,
        task_id=m.group(3),
        description=m.group(4),
        ticket=m.group(2),
    )


def validate(ref: BranchRef, required: BranchKind) -> Result[BranchRef, BranchNameError]:
    """Check that ``ref`` is a well-formed branch of kind ``required``."""
    if ref.kind == required:
        return Ok(ref)

    if required.is_work_branch and ref.raw_name.startswith(f"{required.value}/"):
        return Err(
            BranchNameError(
                kind="invalid_name",
                message=f"'{ref.raw_name}' does not match {required.value}/<PREFIX>-<task>-<desc>",
            )
        )
    return Err(
        BranchNameError(
            kind="invalid_name",
            message=f"'{ref.raw_name}' is not a {required.value} branch",
        )
    )


def is_valid_task_id(task_id: str) -> bool:
    return _TASK_ID_RE.fullmatch(task_id) is not None


def is_valid_description(description: str) -> bool:
    return _DESCRIPTION_RE.fullmatch(description) is not None


def build(
    kind: BranchKind,
    task_id: str,
    description: str,
    naming: BranchNaming = DEFAULT_NAMING,
) -> Result[BranchRef, BranchNameError]:
    """Build a work branch name from its parts.

    A ref returned here always parses back to itself.
    """
    if not kind.is_work_branch:
        return Err(
            BranchNameError(
                kind="mismatched_kind",
                message=f"cannot build a {kind.value} branch from a task id",
            )
        )
    if not is_valid_task_id(task_id):
        return Err(
            BranchNameError(
                kind="invalid_name",
                message=f"task id must match [a-z0-9]+: {task_id!r}",
            )
        )
    if not is_valid_description(description):
        return Err(
            BranchNameError(
                kind="invalid_name",
                message=f"description must match [a-z0-9-]+: {description!r}",
            )
        )

    ref = parse(f"{kind.value}/{naming.ticket_prefix}-{task_id}-{description}", naming)
    assert ref.kind == kind, ref
    return Ok(ref)


def derive_sibling(ref: BranchRef, target: BranchKind) -> Result[BranchRef, BranchNameError]:
    """Swap the type segment of a work branch, keeping the suffix verbatim.

    ``release/CU-x-y`` -> ``feature/CU-x-y`` and back. A feature sibling can
    only be derived from a release or hotfix branch; a release or hotfix
    sibling only from a feature branch.
    """
    if target == BranchKind.FEATURE:
        allowed = ref.kind in (BranchKind.RELEASE, BranchKind.HOTFIX)
    elif target in (BranchKind.RELEASE, BranchKind.HOTFIX):
        allowed = ref.kind == BranchKind.FEATURE
    else:
        allowed = False

    suffix = ref.suffix
    if not allowed or suffix is None:
        return Err(
            BranchNameError(
                kind="mismatched_kind",
                message=f"cannot derive a {target.value} branch from '{ref.raw_name}'",
            )
        )

    return Ok(
        BranchRef(
            kind=target,
            raw_name=f"{target.value}/{suffix}",
            task_id=ref.task_id,
            description=ref.description,
            ticket=ref.ticket,
        )
    )
