"""RepoConnector backed by the GitHub GraphQL API."""

from __future__ import annotations

import structlog

from ...core.assembler import classify_labels
from ...models.build_info import ChangelogLink, VersionRef
from ...models.issue import Issue, IssueState, PullRequest
from ...models.lookup import LookupData
from ...models.version import VersionTag
from ...utils.logging import LogEventNames
from ...utils.safe_subprocess import SafeProcessRunner
from ...utils.security import validate_numeric_id
from .common import compare_link, web_base_url
from .graphql_client import GitHubGraphQLClient

log = structlog.get_logger()


class GitHubGraphQLConnector:
    """Reads repository history through GitHubGraphQLClient.

    The current commit comes from ``current_hash`` when given, otherwise
    from ``git rev-parse HEAD`` when a git runner is available, otherwise
    from the head of the branch history.

    Example:
        async with GitHubGraphQLClient(token) as client:
            connector = GitHubGraphQLConnector(client, "owner", "repo", "main")
            info = await build_report(connector)
    """

    def __init__(
        self,
        client: GitHubGraphQLClient,
        owner: str,
        repo: str,
        branch: str,
        current_hash: str | None = None,
        git: SafeProcessRunner | None = None,
    ) -> None:
        self._client = client
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self._current_hash = current_hash
        self._git = git
        self._lookup: LookupData | None = None
        self._issues: dict[str, Issue] | None = None

    async def get_lookup_data(self) -> LookupData:
        if self._lookup is None:
            commits = await self._client.get_commits(self.owner, self.repo, self.branch)
            pull_requests = await self._client.get_pull_requests(self.owner, self.repo)
            releases = await self._client.get_releases(self.owner, self.repo)
            tags = await self._client.get_all_tags(self.owner, self.repo)

            self._lookup = LookupData.build(commits, pull_requests, releases, tags)
            log.info(
                LogEventNames.LOOKUP_DATA_BUILT,
                commits=len(self._lookup.commits),
                pull_requests=len(self._lookup.pull_requests),
                releases=len(self._lookup.releases),
                tags=len(self._lookup.tags_by_name),
            )
        return self._lookup

    async def _issue_index(self) -> dict[str, Issue]:
        if self._issues is None:
            issues = await self._client.get_all_issues(self.owner, self.repo)
            self._issues = {str(issue.number): issue for issue in issues}
        return self._issues

    async def _issue(self, issue_id: str) -> Issue | None:
        return (await self._issue_index()).get(issue_id)

    async def get_tag_history(self) -> list[VersionTag]:
        return list((await self.get_lookup_data()).versions)

    async def get_hash_for_tag(self, tag: str | None) -> str | None:
        if tag is not None:
            return (await self.get_lookup_data()).hash_for_tag(tag)

        if self._current_hash is None:
            if self._git is not None:
                result = await self._git.run(["rev-parse", "HEAD"])
                self._current_hash = result.stdout.strip()
            else:
                commits = (await self.get_lookup_data()).commits
                self._current_hash = commits[0] if commits else None
        return self._current_hash

    async def get_pull_requests_between_tags(
        self,
        from_ref: VersionRef | None,
        to_ref: VersionRef | None,
    ) -> list[PullRequest]:
        lookup = await self.get_lookup_data()
        to_hash = to_ref.commit_hash if to_ref is not None else None
        if to_hash is None:
            to_hash = await self.get_hash_for_tag(None)
        from_hash = from_ref.commit_hash if from_ref is not None else None
        return lookup.pull_requests_between(from_hash, to_hash)

    async def get_issues_for_pull_request(self, pr_id: str) -> list[str]:
        number = int(validate_numeric_id(pr_id, "pr_id"))
        issue_numbers = await self._client.find_issue_ids_linked_to_pull_request(
            self.owner, self.repo, number
        )
        return [str(issue_number) for issue_number in issue_numbers]

    async def get_issue_title(self, issue_id: str) -> str:
        issue = await self._issue(issue_id)
        return issue.title if issue else f"Issue {issue_id}"

    async def get_issue_type(self, issue_id: str) -> str:
        issue = await self._issue(issue_id)
        return classify_labels(issue.labels) if issue else "other"

    async def get_issue_url(self, issue_id: str) -> str:
        issue = await self._issue(issue_id)
        if issue and issue.url:
            return issue.url
        return f"{web_base_url(self._client.endpoint)}/{self.owner}/{self.repo}/issues/{issue_id}"

    async def get_open_issues(self) -> list[str]:
        return [
            issue_id
            for issue_id, issue in (await self._issue_index()).items()
            if issue.state is IssueState.OPEN
        ]

    async def get_changelog_link(
        self,
        baseline: VersionRef | None,
        target: VersionRef,
    ) -> ChangelogLink | None:
        return compare_link(
            web_base_url(self._client.endpoint),
            self.owner,
            self.repo,
            await self.get_lookup_data(),
            baseline,
            target,
        )
