"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GRAPHQL_ENDPOINT = "https://api.github.com/graphql"


class GitHubConfig(BaseModel):
    """GitHub-specific configuration.

    ``repo`` and ``branch`` may be left unset; they are then read from the
    local checkout (``origin`` remote and the current branch).
    """

    repo: str | None = None
    token: str | None = None
    graphql_endpoint: str = DEFAULT_GRAPHQL_ENDPOINT
    branch: str | None = None
    gh_path: str | None = None
    git_path: str | None = None
    command_timeout: int = Field(30, ge=1, le=600)

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str | None) -> str | None:
        """Validate repository name format."""
        from ..utils.security import validate_repo_name

        if v is not None and not validate_repo_name(v):
            raise ValueError(f"Invalid repository format: {v}. Expected: owner/repo")
        return v

    @field_validator("graphql_endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Only http(s) endpoints are accepted."""
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"Invalid GraphQL endpoint: {v}")
        return v

    @field_validator("branch")
    @classmethod
    def validate_branch(cls, v: str | None) -> str | None:
        """Branch names follow the same rules as tag names."""
        from ..utils.security import TAG_NAME_PATTERN

        if v is not None and (v.startswith("-") or not TAG_NAME_PATTERN.fullmatch(v)):
            raise ValueError(f"Invalid branch name: {v}")
        return v


class ConnectorConfig(BaseModel):
    """Which repository connector to use."""

    provider: Literal["github", "github-cli", "mock"] = "github"


class ReportConfig(BaseModel):
    """Report rendering configuration."""

    heading_depth: int = Field(1, ge=1, le=6)
    include_known_issues: bool = False
    output: Path | None = None


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("build-notes.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"
    file: FileLoggingConfig = FileLoggingConfig()


class BuildNotesConfig(BaseSettings):
    """Root configuration for build-notes."""

    connector: ConnectorConfig = ConnectorConfig()
    github: GitHubConfig = GitHubConfig()
    report: ReportConfig = ReportConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="BUILD_NOTES_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )
