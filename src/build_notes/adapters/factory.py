"""Builds the configured RepoConnector."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from ..config.schema import BuildNotesConfig, GitHubConfig
from ..interfaces.repo import RepoConnector
from ..utils.safe_subprocess import SafeProcessRunner
from ..utils.security import SecurityError, validate_repo_name
from .github.cli import GitHubCliConnector
from .github.common import parse_remote_url
from .github.graphql import GitHubGraphQLConnector
from .github.graphql_client import GitHubGraphQLClient
from .mock import MockRepoConnector

log = structlog.get_logger()


class ConnectorConfigError(ValueError):
    """Raised when the connector cannot be set up from configuration."""


async def resolve_repo(config: GitHubConfig, git: SafeProcessRunner) -> tuple[str, str]:
    """
    Work out (owner, repo).

    Order: ``github.repo`` from configuration, ``GITHUB_REPOSITORY`` (set by
    GitHub Actions), then the ``origin`` remote of the local checkout.

    Raises:
        ConnectorConfigError: If none of these yields a valid repository
    """
    repo = config.repo or os.environ.get("GITHUB_REPOSITORY")
    if not repo:
        result = await git.run(["remote", "get-url", "origin"], check=False)
        parsed = parse_remote_url(result.stdout) if result.success else None
        if parsed is None:
            raise ConnectorConfigError(
                "Could not determine repository; set github.repo in the configuration"
            )
        repo = "/".join(parsed)

    if not validate_repo_name(repo):
        raise ConnectorConfigError(f"Invalid repository name: {repo}")
    owner, name = repo.split("/", 1)
    return owner, name


async def resolve_branch(config: GitHubConfig, git: SafeProcessRunner) -> str:
    """Configured branch, or the branch currently checked out."""
    if config.branch:
        return config.branch
    result = await git.run(["rev-parse", "--abbrev-ref", "HEAD"])
    branch = result.stdout.strip()
    # A detached checkout reports "HEAD"
    if not branch or branch == "HEAD":
        raise ConnectorConfigError("Detached checkout; set github.branch in the configuration")
    return branch


@asynccontextmanager
async def open_connector(config: BuildNotesConfig) -> AsyncIterator[RepoConnector]:
    """
    Create the connector named by ``connector.provider`` and close it afterwards.

    Example:
        async with open_connector(config) as connector:
            info = await build_report(connector)

    Raises:
        ConnectorConfigError: If repository or token settings are missing
        ProcessError: If git or gh cannot be found or fail
    """
    provider = config.connector.provider
    github = config.github
    log.debug("connector_opening", provider=provider)

    if provider == "mock":
        yield MockRepoConnector()
        return

    git = SafeProcessRunner("git", path=github.git_path, default_timeout=github.command_timeout)
    owner, repo = await resolve_repo(github, git)

    if provider == "github-cli":
        gh = SafeProcessRunner("gh", path=github.gh_path, default_timeout=github.command_timeout)
        try:
            connector = GitHubCliConnector(f"{owner}/{repo}", git=git, gh=gh, branch=github.branch)
        except SecurityError as e:
            raise ConnectorConfigError(str(e)) from e
        yield connector
        return

    if not github.token:
        raise ConnectorConfigError("A GitHub token is required for the github connector")

    branch = await resolve_branch(github, git)
    async with GitHubGraphQLClient(
        github.token,
        github.graphql_endpoint,
        timeout=float(github.command_timeout),
    ) as client:
        yield GitHubGraphQLConnector(client, owner, repo, branch, git=git)
