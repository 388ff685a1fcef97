"""Tests for the git and gh command line connector."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from build_notes.adapters.github.cli import GitHubCliConnector
from build_notes.models.build_info import VersionRef
from build_notes.models.version import parse_version
from build_notes.utils.safe_subprocess import CommandResult, NotFoundError
from build_notes.utils.security import InvalidArgumentError, SecurityError


def _result(stdout: str = "", return_code: int = 0) -> CommandResult:
    return CommandResult(stdout=stdout, stderr="", return_code=return_code, command=[])


def _json(data: Any) -> CommandResult:
    return _result(json.dumps(data))


def _runner(*results: CommandResult) -> MagicMock:
    runner = MagicMock()
    runner.run = AsyncMock(side_effect=list(results))
    return runner


def _connector(git: MagicMock | None = None, gh: MagicMock | None = None) -> GitHubCliConnector:
    return GitHubCliConnector("owner/repo", git=git or _runner(), gh=gh or _runner())


ISSUE_7 = {
    "number": 7,
    "title": "Crash on start",
    "url": "https://github.com/owner/repo/issues/7",
    "state": "OPEN",
    "labels": [{"name": "bug"}],
}


class TestConstruction:
    """Test connector construction."""

    def test_invalid_repo(self) -> None:
        """Test that an unsafe repository name is rejected."""
        with pytest.raises(SecurityError):
            GitHubCliConnector("owner/repo; rm -rf /", git=_runner(), gh=_runner())

    def test_invalid_branch(self) -> None:
        """Test that an unsafe branch name is rejected."""
        with pytest.raises(InvalidArgumentError):
            GitHubCliConnector("owner/repo", git=_runner(), gh=_runner(), branch="--all")


class TestLookupData:
    """Test lookup data collection from git and gh."""

    async def test_build(self) -> None:
        """Test that history, pull requests, releases and tags are combined."""
        git = _runner(
            _result("c3\nc2\nc1\n"),
            _result("v1.0.0\tc1\t\nv1.1.0\ttagobj\tc3\n"),
        )
        gh = _runner(
            _json(
                [
                    {
                        "number": 4,
                        "title": "Fix",
                        "url": "https://github.com/owner/repo/pull/4",
                        "mergeCommit": {"oid": "c2"},
                        "headRefOid": "h4",
                        "labels": [],
                    }
                ]
            ),
            _json(
                [
                    {"tagName": "v1.1.0", "publishedAt": "2024-02-01T00:00:00Z", "isPrerelease": False},
                    {"tagName": "v1.0.0", "publishedAt": "2024-01-01T00:00:00Z", "isPrerelease": False},
                ]
            ),
        )
        connector = _connector(git, gh)
        lookup = await connector.get_lookup_data()

        assert lookup.commits == ("c3", "c2", "c1")
        assert lookup.hash_for_tag("v1.1.0") == "c3"
        assert lookup.hash_for_tag("v1.0.0") == "c1"
        assert [version.tag for version in lookup.versions] == ["v1.1.0", "v1.0.0"]
        assert lookup.pull_requests[0].merge_commit_hash == "c2"

        assert git.run.await_args_list[0].args[0] == ["rev-list", "HEAD"]
        pr_args = gh.run.await_args_list[0].args[0]
        assert pr_args[:4] == ["pr", "list", "--state", "merged"]
        assert pr_args[-2:] == ["--repo", "owner/repo"]

        # Cached for the rest of the run
        assert await connector.get_lookup_data() is lookup
        assert git.run.await_count == 2


class TestHashForTag:
    """Test tag and HEAD resolution."""

    async def test_head(self) -> None:
        """Test resolving the current commit."""
        git = _runner(_result("abc123\n"))
        assert await _connector(git).get_hash_for_tag(None) == "abc123"
        git.run.assert_awaited_once_with(["rev-parse", "HEAD"])

    async def test_tag(self) -> None:
        """Test resolving a tag to its commit."""
        git = _runner(_result("def456\n"))
        assert await _connector(git).get_hash_for_tag("v1.0.0") == "def456"
        git.run.assert_awaited_once_with(
            ["rev-parse", "--verify", "--quiet", "refs/tags/v1.0.0^{commit}"], check=False
        )

    async def test_unknown_tag(self) -> None:
        """Test that a missing tag gives None."""
        git = _runner(_result("", return_code=1))
        assert await _connector(git).get_hash_for_tag("v9.9.9") is None

    async def test_malicious_tags_rejected(self, malicious_tags: list[str]) -> None:
        """Test that unsafe tag names never reach git."""
        git = _runner()
        connector = _connector(git)
        for tag in malicious_tags:
            with pytest.raises(InvalidArgumentError):
                await connector.get_hash_for_tag(tag)
        git.run.assert_not_awaited()


class TestIssues:
    """Test issue lookups through gh."""

    async def test_linked_issues(self) -> None:
        """Test reading closing issue references."""
        gh = _runner(_json({"closingIssuesReferences": [{"number": 7}, {"number": 8}]}))
        assert await _connector(gh=gh).get_issues_for_pull_request("12") == ["7", "8"]
        gh.run.assert_awaited_once_with(
            ["pr", "view", "12", "--json", "closingIssuesReferences", "--repo", "owner/repo"]
        )

    @pytest.mark.parametrize("bad_id", ["12a", "-1", "", "1;2", "1 2"])
    async def test_bad_ids_rejected(self, bad_id: str) -> None:
        """Test that non-numeric ids never reach gh."""
        gh = _runner()
        connector = _connector(gh=gh)
        with pytest.raises(InvalidArgumentError):
            await connector.get_issues_for_pull_request(bad_id)
        with pytest.raises(InvalidArgumentError):
            await connector.get_issue_title(bad_id)
        gh.run.assert_not_awaited()

    async def test_issue_details_cached(self) -> None:
        """Test that one gh call serves title, type and URL."""
        gh = _runner(_json(ISSUE_7))
        connector = _connector(gh=gh)

        assert await connector.get_issue_title("7") == "Crash on start"
        assert await connector.get_issue_type("7") == "bug"
        assert await connector.get_issue_url("7") == "https://github.com/owner/repo/issues/7"
        gh.run.assert_awaited_once()

    async def test_open_issues_prime_cache(self) -> None:
        """Test that listing open issues fills the issue cache."""
        gh = _runner(_json([ISSUE_7]))
        connector = _connector(gh=gh)

        assert await connector.get_open_issues() == ["7"]
        assert await connector.get_issue_type("7") == "bug"
        gh.run.assert_awaited_once()

    async def test_missing_issue_propagates(self) -> None:
        """Test that gh failures are not absorbed."""
        gh = MagicMock()
        gh.run = AsyncMock(side_effect=NotFoundError("Resource not found: issue 99"))
        with pytest.raises(NotFoundError):
            await _connector(gh=gh).get_issue_title("99")


class TestRanges:
    """Test pull request ranges and compare links."""

    @pytest.fixture
    async def connector(self) -> GitHubCliConnector:
        git = _runner(
            _result("c3\nc2\nc1\n"),
            _result("v1.0.0\tc1\t\nv1.1.0\tc3\t\n"),
            _result("c3\n"),
        )
        gh = _runner(
            _json([{"number": 4, "title": "Fix", "url": "u4", "mergeCommit": {"oid": "c2"}}]),
            _json([{"tagName": "v1.1.0"}, {"tagName": "v1.0.0"}]),
        )
        connector = _connector(git, gh)
        await connector.get_lookup_data()
        return connector

    async def test_untagged_target_uses_head(self, connector: GitHubCliConnector) -> None:
        """Test that a target without a hash ranges from HEAD."""
        prs = await connector.get_pull_requests_between_tags(
            VersionRef(parse_version("v1.0.0"), "c1"),
            VersionRef(parse_version("v2.0.0"), None),
        )
        assert [pr.number for pr in prs] == [4]

    async def test_changelog_link(self, connector: GitHubCliConnector) -> None:
        """Test the compare link on github.com."""
        link = await connector.get_changelog_link(
            VersionRef(parse_version("v1.0.0"), "c1"),
            VersionRef(parse_version("v1.1.0"), "c3"),
        )
        assert link is not None
        assert link.url == "https://github.com/owner/repo/compare/v1.0.0...v1.1.0"
