"""Connector implementations of the RepoConnector protocol."""

from .factory import ConnectorConfigError, open_connector
from .github import GitHubCliConnector, GitHubGraphQLClient, GitHubGraphQLConnector
from .mock import MockRepoConnector

__all__ = [
    "ConnectorConfigError",
    "GitHubCliConnector",
    "GitHubGraphQLClient",
    "GitHubGraphQLConnector",
    "MockRepoConnector",
    "open_connector",
]
