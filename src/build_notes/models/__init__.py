"""Data models and transfer objects."""

from .build_info import BuildInformation, ChangeItem, ChangelogLink, VersionRef
from .issue import Issue, IssueState, PullRequest
from .lookup import LookupData
from .release import Release, TagRef
from .version import FormatError, VersionTag, parse_version, try_parse_version

__all__ = [
    # Version models
    "FormatError",
    "VersionTag",
    "parse_version",
    "try_parse_version",
    # Repository models
    "Issue",
    "IssueState",
    "PullRequest",
    "Release",
    "TagRef",
    "LookupData",
    # Report models
    "BuildInformation",
    "ChangeItem",
    "ChangelogLink",
    "VersionRef",
]
