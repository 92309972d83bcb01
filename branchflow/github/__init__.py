"""GitHub adapters (via the gh CLI)."""

from .pulls import GhPullRequests, gh_available

__all__ = ["GhPullRequests", "gh_available"]
