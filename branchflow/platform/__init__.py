"""Platform helpers (process execution)."""

from .process import ProcessError, run

__all__ = ["ProcessError", "run"]
