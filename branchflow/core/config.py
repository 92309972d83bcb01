"""Typed configuration loading and access.

The workflow rules that vary between teams (branch names, ticket prefix,
tag format, commit types) live in an optional ``.branchflow.toml`` at the
repository root. A missing file means the defaults below.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "BranchesConfig",
    "CommitsConfig",
    "Config",
    "ConfigError",
    "VersionsConfig",
    "CONFIG_FILENAME",
    "DEFAULT_COMMIT_TYPES",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = ".branchflow.toml"

DEFAULT_COMMIT_TYPES: tuple[str, ...] = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "test",
    "chore",
    "release",
)

_VERSION_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")
_PREFIX_RE = re.compile(r"^[A-Z][A-Z0-9]*$")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BranchesConfig:
    """Long-lived branch names, remote and ticket prefix."""

    main: str = "main"
    staging: str = "staging"
    remote: str = "origin"
    ticket_prefix: str = "CU"


@dataclass(frozen=True, slots=True)
class VersionsConfig:
    """Release tag format.

    ``initial`` is the exact version of the first release when the repo has
    no version tag yet. When unset, the first release bumps from 0.0.0.
    """

    tag_prefix: str = "v"
    initial: str | None = None


@dataclass(frozen=True, slots=True)
class CommitsConfig:
    """Commit message rules."""

    types: tuple[str, ...] = DEFAULT_COMMIT_TYPES
    header_max_length: int = 100


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    branches: BranchesConfig = field(default_factory=BranchesConfig)
    versions: VersionsConfig = field(default_factory=VersionsConfig)
    commits: CommitsConfig = field(default_factory=CommitsConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: if a value is present but malformed.
        """
        branches: StrDict = get_table(data, "branches") or {}
        versions: StrDict = get_table(data, "versions") or {}
        commits: StrDict = get_table(data, "commits") or {}

        prefix = get_str(branches, "ticket_prefix") or "CU"
        if not _PREFIX_RE.match(prefix):
            raise ValueError(f"branches.ticket_prefix must be uppercase alphanumeric: {prefix!r}")

        initial = get_str(versions, "initial")
        if initial is not None and not _VERSION_RE.match(initial):
            raise ValueError(f"versions.initial must look like 1.0.0: {initial!r}")

        # An empty tag prefix is allowed (tags like 1.2.3).
        raw_tag_prefix = versions.get("tag_prefix", "v")
        if not isinstance(raw_tag_prefix, str):
            raise ValueError("versions.tag_prefix must be a string")
        tag_prefix = raw_tag_prefix.strip()

        types = get_str_list(commits, "types")
        if "types" in commits and not types:
            raise ValueError("commits.types must be a non-empty list of strings")

        max_len = get_int(commits, "header_max_length")
        if max_len is not None and max_len <= 0:
            raise ValueError("commits.header_max_length must be positive")

        return cls(
            branches=BranchesConfig(
                main=get_str(branches, "main") or "main",
                staging=get_str(branches, "staging") or "staging",
                remote=get_str(branches, "remote") or "origin",
                ticket_prefix=prefix,
            ),
            versions=VersionsConfig(
                tag_prefix=tag_prefix,
                initial=initial,
            ),
            commits=CommitsConfig(
                types=tuple(types) if types else DEFAULT_COMMIT_TYPES,
                header_max_length=max_len or 100,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and syntax errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the ``.branchflow.toml`` file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config if the file exists, defaults otherwise.

    Unlike a missing file, a present but broken file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
