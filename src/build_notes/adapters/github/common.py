"""Helpers shared by the GitHub connectors."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from ...models.build_info import ChangelogLink, VersionRef
from ...models.lookup import LookupData

GITHUB_WEB_URL = "https://github.com"

_HTTPS_REMOTE = re.compile(r"^https?://(?:[^@/]+@)?[^/]+/([^/]+)/([^/]+?)(?:\.git)?/?$")
_SSH_REMOTE = re.compile(r"^(?:ssh://)?git@[^:/]+[:/]([^/]+)/([^/]+?)(?:\.git)?/?$")


def parse_remote_url(url: str) -> tuple[str, str] | None:
    """Extract (owner, repo) from an HTTPS or SSH git remote URL."""
    url = url.strip()
    match = _HTTPS_REMOTE.match(url) or _SSH_REMOTE.match(url)
    if match is None:
        return None
    return match.group(1), match.group(2)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by GitHub; None when absent or invalid."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def web_base_url(graphql_endpoint: str) -> str:
    """Web root for a GraphQL endpoint (github.com or a GitHub Enterprise host)."""
    parsed = urlparse(graphql_endpoint)
    if parsed.hostname in (None, "api.github.com"):
        return GITHUB_WEB_URL
    return f"{parsed.scheme}://{parsed.netloc}"


def compare_link(
    web_url: str,
    owner: str,
    repo: str,
    lookup: LookupData,
    baseline: VersionRef | None,
    target: VersionRef,
) -> ChangelogLink | None:
    """Compare-view link between two tags, when both exist on the host."""
    if baseline is None:
        return None
    old, new = baseline.version.tag, target.version.tag
    if old not in lookup.tags_by_name or new not in lookup.tags_by_name:
        return None
    return ChangelogLink(
        text=f"{old}...{new}",
        url=f"{web_url}/{owner}/{repo}/compare/{old}...{new}",
    )
