"""Data models for issues and pull requests."""

from dataclasses import dataclass
from enum import Enum


class IssueState(Enum):
    """State of an issue on the host."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Issue:
    """An issue as returned by the host."""

    number: int
    title: str
    url: str
    state: IssueState
    labels: tuple[str, ...] = ()


@dataclass(frozen=True)
class PullRequest:
    """A pull request as returned by the host."""

    number: int
    title: str
    url: str
    merged: bool
    merge_commit_hash: str | None = None
    head_ref_hash: str | None = None
    labels: tuple[str, ...] = ()
