"""Tests for the in-memory mock connector."""

from build_notes.adapters.mock import CURRENT_HASH, TAG_HASHES, MockRepoConnector
from build_notes.models.build_info import VersionRef
from build_notes.models.version import parse_version


class TestMockRepoConnector:
    """Test the canned repository."""

    async def test_tag_history_newest_first(self, mock_connector: MockRepoConnector) -> None:
        """Test that releases come back newest first."""
        history = await mock_connector.get_tag_history()
        assert [version.tag for version in history] == list(reversed(TAG_HASHES))

    async def test_pre_release_flags(self, mock_connector: MockRepoConnector) -> None:
        """Test that only the beta and rc tags are pre-releases."""
        lookup = await mock_connector.get_lookup_data()
        flags = {release.tag_name: release.is_pre_release for release in lookup.releases}
        assert flags == {
            "v1.0.0": False,
            "ver-1.1.0": False,
            "release_2.0.0-beta.1": True,
            "v2.0.0-rc.1": True,
            "2.0.0": False,
        }

    async def test_hashes(self, mock_connector: MockRepoConnector) -> None:
        """Test tag and HEAD hashes."""
        assert await mock_connector.get_hash_for_tag(None) == CURRENT_HASH
        assert await mock_connector.get_hash_for_tag("ver-1.1.0") == "def456ghi789"
        assert await mock_connector.get_hash_for_tag("v9.0.0") is None

    async def test_moved_checkout(self) -> None:
        """Test overriding the current commit."""
        connector = MockRepoConnector(current_hash="def456ghi789")
        assert await connector.get_hash_for_tag(None) == "def456ghi789"

    async def test_pull_requests_between_tags(self, mock_connector: MockRepoConnector) -> None:
        """Test the pull requests merged between two releases."""
        prs = await mock_connector.get_pull_requests_between_tags(
            VersionRef(parse_version("v1.0.0"), "abc123def456"),
            VersionRef(parse_version("ver-1.1.0"), "def456ghi789"),
        )
        assert [pr.number for pr in prs] == [13, 10]

    async def test_whole_history(self, mock_connector: MockRepoConnector) -> None:
        """Test that no bounds covers every pull request from HEAD."""
        prs = await mock_connector.get_pull_requests_between_tags(None, None)
        assert [pr.number for pr in prs] == [12, 11, 13, 10]

    async def test_issues(self, mock_connector: MockRepoConnector) -> None:
        """Test issue links, details and fallbacks."""
        assert await mock_connector.get_issues_for_pull_request("10") == ["1"]
        assert await mock_connector.get_issues_for_pull_request("13") == []
        assert await mock_connector.get_issue_title("2") == "Fix bug in Y"
        assert await mock_connector.get_issue_type("1") == "feature"
        assert await mock_connector.get_issue_type("3") == "other"
        assert await mock_connector.get_issue_url("4") == "https://github.com/example/repo/issues/4"
        assert await mock_connector.get_issue_title("99") == "Issue 99"

    async def test_open_issues(self, mock_connector: MockRepoConnector) -> None:
        """Test the open issues list."""
        assert await mock_connector.get_open_issues() == ["4", "5"]
