"""Error codes for CLI exit status.

Every command exits with one of these codes. The values are part of the
CLI contract (hooks and CI scripts check them) and should remain stable:
- 0: Success
- 1: User error (bad arguments, wrong branch, dirty working tree)
- 2: Environment error (not a git repository, missing tools, bad config)
- 3: Operation error (merge conflict, rejected push, gh failure)
- 4: Network error (fetch/push could not reach the remote)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    OPERATION_ERROR = 3
    NETWORK_ERROR = 4

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
