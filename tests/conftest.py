"""Shared test fixtures for build-notes."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from build_notes.adapters.mock import MockRepoConnector
from build_notes.models.issue import PullRequest
from build_notes.models.lookup import LookupData
from build_notes.models.release import Release, TagRef


def make_release(tag: str, day: int | None, pre_release: bool = False) -> Release:
    """Release published on the given day of January 2024 (None: unpublished)."""
    published = datetime(2024, 1, day, tzinfo=timezone.utc) if day is not None else None
    return Release(tag_name=tag, published_at=published, is_pre_release=pre_release)


def make_pr(number: int, merge_commit: str | None, merged: bool = True) -> PullRequest:
    """Merged pull request with a predictable URL."""
    return PullRequest(
        number=number,
        title=f"Pull request {number}",
        url=f"https://github.com/owner/repo/pull/{number}",
        merged=merged,
        merge_commit_hash=merge_commit,
    )


@pytest.fixture
def sequence_lookup() -> LookupData:
    """History v1.0.0 -> ver-1.1.0 -> v2.0.0-beta.1 -> v2.0.0, newest last.

    Commits (newest first): c7 (v2.0.0), c6 (PR 3), c5 (v2.0.0-beta.1),
    c4 (PR 2), c3 (ver-1.1.0), c2 (PR 1), c1 (v1.0.0), c0.
    """
    return LookupData.build(
        commits=["c7", "c6", "c5", "c4", "c3", "c2", "c1", "c0"],
        pull_requests=[make_pr(1, "c2"), make_pr(2, "c4"), make_pr(3, "c6")],
        releases=[
            make_release("v1.0.0", 1),
            make_release("ver-1.1.0", 2),
            make_release("v2.0.0-beta.1", 3, pre_release=True),
            make_release("v2.0.0", 4),
        ],
        tags=[
            TagRef("v1.0.0", "c1"),
            TagRef("ver-1.1.0", "c3"),
            TagRef("v2.0.0-beta.1", "c5"),
            TagRef("v2.0.0", "c7"),
        ],
    )


@pytest.fixture
def mock_connector() -> MockRepoConnector:
    """Mock connector checked out on its latest release."""
    return MockRepoConnector()


@pytest.fixture
def malicious_tags() -> list[str]:
    """Tag names that must never reach a command line."""
    return [
        "v1.0.0; rm -rf /",
        "v1.0.0$(whoami)",
        "v1.0.0`id`",
        "v1.0.0 && echo pwned",
        "v1.0.0|cat /etc/passwd",
        "--upload-pack=evil",
        "v1.0.0\nmalicious",
        "",
    ]


@pytest.fixture
def valid_repo_names() -> list[str]:
    """Return a list of valid repository names for testing."""
    return [
        "owner/repo",
        "my-org/my-project",
        "user123/repo_name",
        "Org.Name/Repo.Name",
        "a/b",
    ]
