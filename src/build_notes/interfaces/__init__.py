"""Protocol definitions for pluggable connectors."""

from .repo import RepoConnector

__all__ = ["RepoConnector"]
