"""Cursor-paginated GitHub GraphQL queries.

Each public method runs one logical query: pages are requested one after
another, each with the previous page's ``endCursor``, and their nodes are
concatenated in page order. A query that fails anywhere (HTTP status,
transport, unparseable body, missing path) returns an empty list and logs a
warning; pages fetched before the failure are discarded. Nodes missing a
mandatory field are dropped. Nothing is retried.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from types import TracebackType
from typing import Any, TypeVar

import httpx
import structlog

from ...models.issue import Issue, IssueState, PullRequest
from ...models.release import Release, TagRef
from ...utils.logging import LogEventNames
from .common import parse_timestamp

log = structlog.get_logger()

T = TypeVar("T")

DEFAULT_ENDPOINT = "https://api.github.com/graphql"
PAGE_SIZE = 100

COMMITS_QUERY = """
query($owner: String!, $repo: String!, $branch: String!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    ref(qualifiedName: $branch) {
      target {
        ... on Commit {
          history(first: $first, after: $after) {
            nodes { oid }
            pageInfo { hasNextPage endCursor }
          }
        }
      }
    }
  }
}
"""

RELEASES_QUERY = """
query($owner: String!, $repo: String!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    releases(first: $first, after: $after, orderBy: {field: CREATED_AT, direction: DESC}) {
      nodes { tagName publishedAt isPrerelease }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

TAGS_QUERY = """
query($owner: String!, $repo: String!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    refs(refPrefix: "refs/tags/", first: $first, after: $after) {
      nodes {
        name
        target {
          oid
          ... on Tag { target { oid } }
        }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

PULL_REQUESTS_QUERY = """
query($owner: String!, $repo: String!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    pullRequests(states: MERGED, first: $first, after: $after) {
      nodes {
        number
        title
        url
        merged
        mergeCommit { oid }
        headRefOid
        labels(first: 100) { nodes { name } }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

ISSUES_QUERY = """
query($owner: String!, $repo: String!, $states: [IssueState!], $first: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    issues(states: $states, first: $first, after: $after) {
      nodes {
        number
        title
        url
        state
        labels(first: 100) { nodes { name } }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

LINKED_ISSUES_QUERY = """
query($owner: String!, $repo: String!, $prNumber: Int!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $prNumber) {
      closingIssuesReferences(first: $first, after: $after) {
        nodes { number }
        pageInfo { hasNextPage endCursor }
      }
    }
  }
}
"""


class GraphQLQueryError(Exception):
    """Raised internally when a page cannot be used; never leaves the client."""


def _dig(data: Any, path: Sequence[str]) -> dict[str, Any]:
    """Follow ``path`` through nested dicts, failing on any absent, null or non-object level."""
    current = data
    for key in path:
        if not isinstance(current, dict) or current.get(key) is None:
            raise GraphQLQueryError(f"missing {key!r} in response")
        current = current[key]
    if not isinstance(current, dict):
        raise GraphQLQueryError(f"{path[-1]!r} is not an object")
    return current


def _object(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _label_names(node: dict[str, Any]) -> tuple[str, ...]:
    labels = _object(node.get("labels")).get("nodes")
    if not isinstance(labels, list):
        return ()
    return tuple(name for label in labels if (name := _text(_object(label).get("name"))))


def _to_commit(node: dict[str, Any]) -> str | None:
    return _text(node.get("oid"))


def _to_release(node: dict[str, Any]) -> Release | None:
    tag_name = _text(node.get("tagName"))
    if tag_name is None:
        return None
    return Release(
        tag_name=tag_name,
        published_at=parse_timestamp(node.get("publishedAt")),
        is_pre_release=node.get("isPrerelease") is True,
    )


def _to_tag(node: dict[str, Any]) -> TagRef | None:
    name = _text(node.get("name"))
    target = _object(node.get("target"))
    # Annotated tags point at a tag object; prefer the commit behind it
    oid = _text(_object(target.get("target")).get("oid")) or _text(target.get("oid"))
    if name is None or oid is None:
        return None
    return TagRef(name=name, commit_hash=oid)


def _number(node: dict[str, Any]) -> int | None:
    number = node.get("number")
    # bool is an int subclass
    return number if isinstance(number, int) and not isinstance(number, bool) else None


def _to_pull_request(node: dict[str, Any]) -> PullRequest | None:
    number = _number(node)
    if number is None:
        return None
    return PullRequest(
        number=number,
        title=_text(node.get("title")) or "",
        url=_text(node.get("url")) or "",
        merged=node.get("merged") is True,
        merge_commit_hash=_text(_object(node.get("mergeCommit")).get("oid")),
        head_ref_hash=_text(node.get("headRefOid")),
        labels=_label_names(node),
    )


def _to_issue(node: dict[str, Any]) -> Issue | None:
    number = _number(node)
    if number is None:
        return None
    state = IssueState.OPEN if str(node.get("state", "")).upper() == "OPEN" else IssueState.CLOSED
    return Issue(
        number=number,
        title=_text(node.get("title")) or "",
        url=_text(node.get("url")) or "",
        state=state,
        labels=_label_names(node),
    )


def _to_issue_number(node: dict[str, Any]) -> int | None:
    return _number(node)


class GitHubGraphQLClient:
    """Async GitHub GraphQL client with cursor pagination.

    The underlying ``httpx.AsyncClient`` is reused for every query of a run.
    Pass ``client`` or ``transport`` to inject one (tests use
    ``httpx.MockTransport``).

    Example:
        async with GitHubGraphQLClient(token) as client:
            tags = await client.get_all_tags("owner", "repo")
    """

    def __init__(
        self,
        token: str,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        page_size: int = PAGE_SIZE,
    ) -> None:
        from ..._version import __version__

        self.endpoint = endpoint
        self.page_size = page_size
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "User-Agent": f"build-notes/{__version__}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> GitHubGraphQLClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Send one GraphQL request and return its ``data`` object."""
        try:
            response = await self._client.post(
                self.endpoint, json={"query": query, "variables": variables}
            )
        except httpx.HTTPError as e:
            raise GraphQLQueryError(f"transport error: {e}") from e

        if not response.is_success:
            raise GraphQLQueryError(f"HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise GraphQLQueryError("response body is not JSON") from e

        if not isinstance(body, dict):
            raise GraphQLQueryError("response body is not an object")
        if body.get("errors") and not body.get("data"):
            raise GraphQLQueryError(f"GraphQL errors: {body['errors']}")
        return _dig(body, ("data",))

    async def _paginate(
        self,
        name: str,
        query: str,
        variables: dict[str, Any],
        path: Sequence[str],
        convert: Callable[[dict[str, Any]], T | None],
    ) -> list[T]:
        """Run a paginated query and convert every node, dropping malformed ones."""
        nodes: list[Any] = []
        cursor: str | None = None
        page = 0

        try:
            while True:
                data = await self._post(
                    query, {**variables, "first": self.page_size, "after": cursor}
                )
                connection = _dig(data, path)
                page_nodes = connection.get("nodes")
                if not isinstance(page_nodes, list):
                    raise GraphQLQueryError("missing 'nodes' in response")
                nodes.extend(page_nodes)
                page += 1

                page_info = connection.get("pageInfo") or {}
                if not isinstance(page_info, dict):
                    raise GraphQLQueryError("'pageInfo' is not an object")
                log.debug(LogEventNames.QUERY_PAGE_FETCHED, query=name, page=page, nodes=len(page_nodes))
                cursor = _text(page_info.get("endCursor"))
                if not page_info.get("hasNextPage") or not cursor:
                    break
        except GraphQLQueryError as e:
            log.warning(LogEventNames.QUERY_FAILED, query=name, page=page + 1, error=str(e))
            return []

        results: list[T] = []
        for node in nodes:
            value = convert(node) if isinstance(node, dict) else None
            if value is None:
                log.debug(LogEventNames.NODE_DROPPED, query=name, node=node)
                continue
            results.append(value)
        return results

    async def get_commits(self, owner: str, repo: str, branch: str) -> list[str]:
        """Commit hashes of a branch's history, newest first."""
        return await self._paginate(
            "commits",
            COMMITS_QUERY,
            {"owner": owner, "repo": repo, "branch": branch},
            ("repository", "ref", "target", "history"),
            _to_commit,
        )

    async def get_releases(self, owner: str, repo: str) -> list[Release]:
        """All releases, most recently created first."""
        return await self._paginate(
            "releases",
            RELEASES_QUERY,
            {"owner": owner, "repo": repo},
            ("repository", "releases"),
            _to_release,
        )

    async def get_all_tags(self, owner: str, repo: str) -> list[TagRef]:
        """All tags with the commit each one points at."""
        return await self._paginate(
            "tags",
            TAGS_QUERY,
            {"owner": owner, "repo": repo},
            ("repository", "refs"),
            _to_tag,
        )

    async def get_pull_requests(self, owner: str, repo: str) -> list[PullRequest]:
        """All merged pull requests."""
        return await self._paginate(
            "pull_requests",
            PULL_REQUESTS_QUERY,
            {"owner": owner, "repo": repo},
            ("repository", "pullRequests"),
            _to_pull_request,
        )

    async def get_all_issues(
        self,
        owner: str,
        repo: str,
        states: Sequence[IssueState] | None = None,
    ) -> list[Issue]:
        """Issues, optionally restricted to the given states."""
        return await self._paginate(
            "issues",
            ISSUES_QUERY,
            {
                "owner": owner,
                "repo": repo,
                "states": [state.value.upper() for state in states] if states else None,
            },
            ("repository", "issues"),
            _to_issue,
        )

    async def find_issue_ids_linked_to_pull_request(
        self, owner: str, repo: str, number: int
    ) -> list[int]:
        """Numbers of the issues a pull request closes."""
        return await self._paginate(
            "linked_issues",
            LINKED_ISSUES_QUERY,
            {"owner": owner, "repo": repo, "prNumber": number},
            ("repository", "pullRequest", "closingIssuesReferences"),
            _to_issue_number,
        )
