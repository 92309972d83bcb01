from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from branchflow.core.result import Err, Ok, Result

BumpKind = Literal["major", "minor", "patch"]
BUMP_KINDS: tuple[BumpKind, ...] = ("major", "minor", "patch")

_VERSION_RE = re.compile(r"(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)")


@dataclass(frozen=True, slots=True, order=True)
class VersionTag:
    major: int
    minor: int
    patch: int

    def __post_init__(self) -> None:
        if self.major < 0 or self.minor < 0 or self.patch < 0:
            raise ValueError(f"version components must be non-negative: {self}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def to_tag(self, prefix: str = "v") -> str:
        return f"{prefix}{self}"

    def bump(self, kind: BumpKind) -> VersionTag:
        match kind:
            case "major":
                return VersionTag(self.major + 1, 0, 0)
            case "minor":
                return VersionTag(self.major, self.minor + 1, 0)
            case "patch":
                return VersionTag(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


ZERO = VersionTag(0, 0, 0)


def parse_bump(text: str) -> Result[BumpKind, str]:
    """Accept exactly ``major``, ``minor`` or ``patch``."""
    for kind in BUMP_KINDS:
        if text == kind:
            return Ok(kind)
    return Err(f"bump type must be one of {', '.join(BUMP_KINDS)}: {text!r}")


def parse_version(text: str) -> VersionTag | None:
    m = _VERSION_RE.fullmatch(text)
    if m is None:
        return None
    return VersionTag(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def parse_tag(tag: str, prefix: str = "v") -> VersionTag | None:
    """Parse a stable release tag (``v1.2.3``); pre-releases are rejected."""
    if not tag.startswith(prefix):
        return None
    return parse_version(tag[len(prefix) :])


def latest_version(tags: Iterable[str], prefix: str = "v") -> VersionTag | None:
    """Greatest stable version among ``tags``; unrelated tags are skipped."""
    versions = [v for v in (parse_tag(t.strip(), prefix) for t in tags) if v is not None]
    return max(versions, default=None)


def next_version(
    latest: VersionTag | None,
    bump: BumpKind,
    *,
    initial: VersionTag | None = None,
) -> VersionTag:
    """Version of the next release.

    With no previous tag the release is ``initial`` when configured, else the
    bump is applied to 0.0.0 (so minor gives 0.1.0).
    """
    if latest is None:
        if initial is not None:
            return initial
        latest = ZERO
    return latest.bump(bump)
