"""Abstract interface for repository hosts."""

from typing import Protocol

from ..models.build_info import ChangelogLink, VersionRef
from ..models.issue import PullRequest
from ..models.lookup import LookupData
from ..models.version import VersionTag


class RepoConnector(Protocol):
    """Capability interface the resolver and assembler depend on.

    Implemented by the GraphQL-backed connector, the git/gh CLI connector
    and the canned-data mock connector.
    """

    async def get_lookup_data(self) -> LookupData:
        """
        Collect commits, releases, tags and merged pull requests.

        Implementations build the result once and return the same object on
        later calls.

        Returns:
            Frozen LookupData for the current branch
        """
        ...

    async def get_tag_history(self) -> list[VersionTag]:
        """
        List release versions, newest first.

        Returns:
            Parsed versions; tags that do not parse are skipped
        """
        ...

    async def get_hash_for_tag(self, tag: str | None) -> str | None:
        """
        Resolve a tag to its commit hash.

        Args:
            tag: Tag name, or None for the commit currently checked out

        Returns:
            Commit hash, or None when the tag is unknown

        Raises:
            InvalidArgumentError: If the tag name is unsafe (CLI connector)
        """
        ...

    async def get_pull_requests_between_tags(
        self,
        from_ref: VersionRef | None,
        to_ref: VersionRef | None,
    ) -> list[PullRequest]:
        """
        List pull requests merged after ``from_ref`` up to and including ``to_ref``.

        Args:
            from_ref: Baseline, or None for the start of history
            to_ref: Target, or None for the current commit. A target without
                a commit hash also means the current commit.

        Returns:
            Merged pull requests in history order, newest first
        """
        ...

    async def get_issues_for_pull_request(self, pr_id: str) -> list[str]:
        """
        List ids of the issues a pull request closes.

        Args:
            pr_id: Pull request number as a string

        Returns:
            Issue ids, possibly empty

        Raises:
            InvalidArgumentError: If the id is not numeric (CLI connector)
        """
        ...

    async def get_issue_title(self, issue_id: str) -> str:
        """Return the title of an issue."""
        ...

    async def get_issue_type(self, issue_id: str) -> str:
        """Return ``"bug"``, ``"feature"`` or ``"other"`` for an issue."""
        ...

    async def get_issue_url(self, issue_id: str) -> str:
        """Return the web URL of an issue."""
        ...

    async def get_open_issues(self) -> list[str]:
        """Return ids of all currently open issues."""
        ...

    async def get_changelog_link(
        self,
        baseline: VersionRef | None,
        target: VersionRef,
    ) -> ChangelogLink | None:
        """
        Build a link to the host's comparison view.

        Returns:
            The link, or None when either tag is missing on the host
        """
        ...
