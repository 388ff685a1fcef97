"""Report data produced for one build."""

from dataclasses import dataclass

from .version import VersionTag


@dataclass(frozen=True)
class ChangeItem:
    """An issue, or a pull request standing in for one, listed in a report."""

    id: str
    title: str
    url: str
    type: str = "other"


@dataclass(frozen=True)
class VersionRef:
    """A version and the commit it was built from, when known."""

    version: VersionTag
    commit_hash: str | None = None


@dataclass(frozen=True)
class ChangelogLink:
    """Link to the host's comparison view between two tags."""

    text: str
    url: str


@dataclass(frozen=True)
class BuildInformation:
    """Everything known about a build, ready for rendering."""

    target: VersionRef
    baseline: VersionRef | None = None
    changes: tuple[ChangeItem, ...] = ()
    bugs: tuple[ChangeItem, ...] = ()
    known_issues: tuple[ChangeItem, ...] = ()
    changelog_link: ChangelogLink | None = None
