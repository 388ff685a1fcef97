"""Deterministic in-memory connector for tests and demos.

The canned repository has five releases (``v1.0.0``, ``ver-1.1.0``,
``release_2.0.0-beta.1``, ``v2.0.0-rc.1``, ``2.0.0``), four merged pull
requests and five issues, two of them open bugs. The checkout sits on
``2.0.0``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ..core.assembler import classify_labels
from ..models.build_info import ChangelogLink, VersionRef
from ..models.issue import Issue, IssueState, PullRequest
from ..models.lookup import LookupData
from ..models.release import Release, TagRef
from ..models.version import VersionTag, parse_version
from .github.common import GITHUB_WEB_URL, compare_link

MOCK_OWNER = "example"
MOCK_REPO = "repo"
MOCK_URL = f"{GITHUB_WEB_URL}/{MOCK_OWNER}/{MOCK_REPO}"

TAG_HASHES = {
    "v1.0.0": "abc123def456",
    "ver-1.1.0": "def456ghi789",
    "release_2.0.0-beta.1": "ghi789jkl012",
    "v2.0.0-rc.1": "jkl012mno345",
    "2.0.0": "mno345pqr678",
}

# Newest first; PR merge commits sit between the tagged ones
COMMITS = (
    "mno345pqr678",
    "pr12merge000",
    "jkl012mno345",
    "ghi789jkl012",
    "pr11merge000",
    "def456ghi789",
    "pr13merge000",
    "pr10merge000",
    "abc123def456",
    "initial00000",
)

CURRENT_HASH = "mno345pqr678"


def _issue(number: int, title: str, labels: tuple[str, ...], state: IssueState) -> Issue:
    return Issue(number, title, f"{MOCK_URL}/issues/{number}", state, labels)


def _pull_request(number: int, title: str, merge_commit: str) -> PullRequest:
    return PullRequest(
        number=number,
        title=title,
        url=f"{MOCK_URL}/pull/{number}",
        merged=True,
        merge_commit_hash=merge_commit,
        head_ref_hash=f"head{number}",
    )


ISSUES = {
    "1": _issue(1, "Add feature X", ("enhancement",), IssueState.CLOSED),
    "2": _issue(2, "Fix bug in Y", ("bug",), IssueState.CLOSED),
    "3": _issue(3, "Update documentation", ("documentation",), IssueState.CLOSED),
    "4": _issue(4, "Known bug A", ("bug",), IssueState.OPEN),
    "5": _issue(5, "Known bug B", ("bug",), IssueState.OPEN),
}

PULL_REQUESTS = (
    _pull_request(10, "Implement feature X", "pr10merge000"),
    _pull_request(11, "Fix Y", "pr11merge000"),
    _pull_request(12, "Docs refresh", "pr12merge000"),
    _pull_request(13, "Internal cleanup", "pr13merge000"),
)

PULL_REQUEST_ISSUES: dict[str, list[str]] = {
    "10": ["1"],
    "11": ["2"],
    "12": ["3"],
    "13": [],
}


def _releases() -> list[Release]:
    # One release a month, in tag order
    return [
        Release(
            tag_name=tag,
            published_at=datetime(2024, month, 1, tzinfo=timezone.utc),
            is_pre_release=parse_version(tag).is_pre_release,
        )
        for month, tag in enumerate(TAG_HASHES, start=1)
    ]


class MockRepoConnector:
    """RepoConnector over fixed sample data.

    ``current_hash`` moves the simulated checkout, e.g. to a commit that is
    not on a release tag.
    """

    def __init__(self, current_hash: str = CURRENT_HASH) -> None:
        self.current_hash = current_hash
        self._lookup = LookupData.build(
            commits=COMMITS,
            pull_requests=PULL_REQUESTS,
            releases=_releases(),
            tags=[TagRef(name, commit) for name, commit in TAG_HASHES.items()],
        )

    async def get_lookup_data(self) -> LookupData:
        return self._lookup

    async def get_tag_history(self) -> list[VersionTag]:
        return list(self._lookup.versions)

    async def get_hash_for_tag(self, tag: str | None) -> str | None:
        if tag is None:
            return self.current_hash
        return self._lookup.hash_for_tag(tag)

    async def get_pull_requests_between_tags(
        self,
        from_ref: VersionRef | None,
        to_ref: VersionRef | None,
    ) -> list[PullRequest]:
        to_hash = to_ref.commit_hash if to_ref is not None else None
        from_hash = from_ref.commit_hash if from_ref is not None else None
        return self._lookup.pull_requests_between(from_hash, to_hash or self.current_hash)

    async def get_issues_for_pull_request(self, pr_id: str) -> list[str]:
        return list(PULL_REQUEST_ISSUES.get(pr_id, []))

    async def get_issue_title(self, issue_id: str) -> str:
        issue = ISSUES.get(issue_id)
        return issue.title if issue else f"Issue {issue_id}"

    async def get_issue_type(self, issue_id: str) -> str:
        issue = ISSUES.get(issue_id)
        return classify_labels(issue.labels) if issue else "other"

    async def get_issue_url(self, issue_id: str) -> str:
        issue = ISSUES.get(issue_id)
        return issue.url if issue else f"{MOCK_URL}/issues/{issue_id}"

    async def get_open_issues(self) -> list[str]:
        return [issue_id for issue_id, issue in ISSUES.items() if issue.state is IssueState.OPEN]

    async def get_changelog_link(
        self,
        baseline: VersionRef | None,
        target: VersionRef,
    ) -> ChangelogLink | None:
        return compare_link(GITHUB_WEB_URL, MOCK_OWNER, MOCK_REPO, self._lookup, baseline, target)
