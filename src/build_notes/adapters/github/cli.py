"""RepoConnector driving the local ``git`` and ``gh`` command line tools.

Every tag name and issue or pull request id is validated before it is placed
on a command line, and commands run through SafeProcessRunner (argument
lists, no shell, per-command timeout). Unlike the GraphQL connector, command
failures are not absorbed: a ProcessError propagates to the caller.
"""

from __future__ import annotations

from typing import Any

import structlog
from cachetools import TTLCache

from ...core.assembler import classify_labels
from ...models.build_info import ChangelogLink, VersionRef
from ...models.issue import Issue, IssueState, PullRequest
from ...models.lookup import LookupData
from ...models.release import Release, TagRef
from ...models.version import VersionTag
from ...utils.logging import LogEventNames
from ...utils.safe_subprocess import SafeProcessRunner
from ...utils.security import (
    SecurityError,
    validate_numeric_id,
    validate_repo_name,
    validate_tag_name,
)
from .common import GITHUB_WEB_URL, compare_link, parse_timestamp

log = structlog.get_logger()

# gh list commands need an explicit upper bound
LIST_LIMIT = 1000
ISSUE_FIELDS = "number,title,url,state,labels"
PULL_REQUEST_FIELDS = "number,title,url,mergeCommit,headRefOid,labels"
RELEASE_FIELDS = "tagName,publishedAt,isPrerelease"


def _labels(data: dict[str, Any]) -> tuple[str, ...]:
    labels = data.get("labels") or []
    return tuple(
        label.get("name", "") if isinstance(label, dict) else str(label) for label in labels
    )


def _parse_issue_json(data: dict[str, Any]) -> Issue:
    state = IssueState.OPEN if str(data.get("state", "")).lower() == "open" else IssueState.CLOSED
    return Issue(
        number=int(data["number"]),
        title=data.get("title", ""),
        url=data.get("url", ""),
        state=state,
        labels=_labels(data),
    )


def _parse_pull_request_json(data: dict[str, Any]) -> PullRequest:
    return PullRequest(
        number=int(data["number"]),
        title=data.get("title", ""),
        url=data.get("url", ""),
        merged=True,
        merge_commit_hash=(data.get("mergeCommit") or {}).get("oid"),
        head_ref_hash=data.get("headRefOid"),
        labels=_labels(data),
    )


def _parse_release_json(data: dict[str, Any]) -> Release:
    return Release(
        tag_name=data["tagName"],
        published_at=parse_timestamp(data.get("publishedAt")),
        is_pre_release=bool(data.get("isPrerelease")),
    )


class GitHubCliConnector:
    """Reads repository history from the local checkout and the gh CLI.

    Example:
        connector = GitHubCliConnector(
            "owner/repo",
            git=SafeProcessRunner("git"),
            gh=SafeProcessRunner("gh"),
        )
        info = await build_report(connector)
    """

    def __init__(
        self,
        repo: str,
        git: SafeProcessRunner,
        gh: SafeProcessRunner,
        branch: str | None = None,
        issue_cache_ttl: int = 300,
    ) -> None:
        """Initialize the connector.

        Args:
            repo: Repository in owner/repo format.
            git: Runner for the git binary.
            gh: Runner for the gh binary.
            branch: Branch whose history is walked; None means HEAD.
            issue_cache_ttl: Seconds an issue lookup stays cached.

        Raises:
            SecurityError: If the repository or branch name is invalid.
        """
        if not validate_repo_name(repo):
            raise SecurityError(f"Invalid repository name: {repo}")
        if branch is not None:
            validate_tag_name(branch)

        self.repo = repo
        self.owner, self.name = repo.split("/", 1)
        self.branch = branch
        self._git = git
        self._gh = gh
        self._lookup: LookupData | None = None
        self._issue_cache: TTLCache[str, Issue] = TTLCache(maxsize=1024, ttl=issue_cache_ttl)

    async def _gh_json(self, args: list[str]) -> Any:
        result = await self._gh.run([*args, "--repo", self.repo])
        return result.json()

    async def _get_tags(self) -> list[TagRef]:
        result = await self._git.run(
            [
                "for-each-ref",
                "refs/tags",
                "--format=%(refname:short)%09%(objectname)%09%(*objectname)",
            ]
        )
        tags: list[TagRef] = []
        for line in result.lines():
            name, _, rest = line.partition("\t")
            objectname, _, peeled = rest.partition("\t")
            # Annotated tags carry the commit in the peeled column
            commit = peeled.strip() or objectname.strip()
            if name and commit:
                tags.append(TagRef(name=name, commit_hash=commit))
        return tags

    async def get_lookup_data(self) -> LookupData:
        if self._lookup is None:
            history = await self._git.run(["rev-list", self.branch or "HEAD"])
            pull_requests = await self._gh_json(
                [
                    "pr",
                    "list",
                    "--state",
                    "merged",
                    "--limit",
                    str(LIST_LIMIT),
                    "--json",
                    PULL_REQUEST_FIELDS,
                ]
            )
            releases = await self._gh_json(
                ["release", "list", "--limit", str(LIST_LIMIT), "--json", RELEASE_FIELDS]
            )

            self._lookup = LookupData.build(
                commits=history.lines(),
                pull_requests=[_parse_pull_request_json(pr) for pr in pull_requests],
                releases=[_parse_release_json(release) for release in releases],
                tags=await self._get_tags(),
            )
            log.info(
                LogEventNames.LOOKUP_DATA_BUILT,
                commits=len(self._lookup.commits),
                pull_requests=len(self._lookup.pull_requests),
                releases=len(self._lookup.releases),
                tags=len(self._lookup.tags_by_name),
            )
        return self._lookup

    async def get_tag_history(self) -> list[VersionTag]:
        return list((await self.get_lookup_data()).versions)

    async def get_hash_for_tag(self, tag: str | None) -> str | None:
        if tag is None:
            result = await self._git.run(["rev-parse", "HEAD"])
            return result.stdout.strip()

        validate_tag_name(tag)
        result = await self._git.run(
            ["rev-parse", "--verify", "--quiet", f"refs/tags/{tag}^{{commit}}"], check=False
        )
        return result.stdout.strip() if result.success and result.stdout.strip() else None

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
        validate_numeric_id(pr_id, "pr_id")
        data = await self._gh_json(["pr", "view", pr_id, "--json", "closingIssuesReferences"])
        references = data.get("closingIssuesReferences") or []
        return [str(ref["number"]) for ref in references if isinstance(ref, dict) and "number" in ref]

    async def _get_issue(self, issue_id: str) -> Issue:
        validate_numeric_id(issue_id, "issue_id")
        if issue_id in self._issue_cache:
            log.debug(LogEventNames.CACHE_HIT, issue=issue_id)
            return self._issue_cache[issue_id]

        log.debug(LogEventNames.CACHE_MISS, issue=issue_id)
        issue = _parse_issue_json(
            await self._gh_json(["issue", "view", issue_id, "--json", ISSUE_FIELDS])
        )
        self._issue_cache[issue_id] = issue
        return issue

    async def get_issue_title(self, issue_id: str) -> str:
        return (await self._get_issue(issue_id)).title

    async def get_issue_type(self, issue_id: str) -> str:
        return classify_labels((await self._get_issue(issue_id)).labels)

    async def get_issue_url(self, issue_id: str) -> str:
        return (await self._get_issue(issue_id)).url

    async def get_open_issues(self) -> list[str]:
        data = await self._gh_json(
            [
                "issue",
                "list",
                "--state",
                "open",
                "--limit",
                str(LIST_LIMIT),
                "--json",
                ISSUE_FIELDS,
            ]
        )
        ids: list[str] = []
        for item in data:
            issue = _parse_issue_json(item)
            self._issue_cache[str(issue.number)] = issue
            ids.append(str(issue.number))
        return ids

    async def get_changelog_link(
        self,
        baseline: VersionRef | None,
        target: VersionRef,
    ) -> ChangelogLink | None:
        return compare_link(
            GITHUB_WEB_URL,
            self.owner,
            self.name,
            await self.get_lookup_data(),
            baseline,
            target,
        )
