"""GitHub connectors: GraphQL API and git/gh command line."""

from .cli import GitHubCliConnector
from .graphql import GitHubGraphQLConnector
from .graphql_client import DEFAULT_ENDPOINT, GitHubGraphQLClient

__all__ = [
    "DEFAULT_ENDPOINT",
    "GitHubCliConnector",
    "GitHubGraphQLClient",
    "GitHubGraphQLConnector",
]
