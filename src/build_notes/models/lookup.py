"""Read-only index over one run's repository history."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType

import structlog

from ..utils.logging import LogEventNames
from .issue import PullRequest
from .release import Release, TagRef
from .version import VersionTag, try_parse_version

log = structlog.get_logger()

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _published(release: Release) -> datetime:
    published = release.published_at
    if published is None:
        return _OLDEST
    if published.tzinfo is None:
        return published.replace(tzinfo=timezone.utc)
    return published


@dataclass(frozen=True)
class LookupData:
    """Everything the resolver and assembler read, built once per report.

    Attributes:
        commits: Commit hashes of the branch history, newest first.
        pull_requests: Pull requests in query order.
        releases: Releases ordered newest-published first.
        tags_by_name: Tag name to TagRef.
        releases_by_tag: Tag name to Release.
        versions: Parsed release versions, newest first.
    """

    commits: tuple[str, ...] = ()
    pull_requests: tuple[PullRequest, ...] = ()
    releases: tuple[Release, ...] = ()
    tags_by_name: Mapping[str, TagRef] = field(default_factory=lambda: MappingProxyType({}))
    releases_by_tag: Mapping[str, Release] = field(default_factory=lambda: MappingProxyType({}))
    versions: tuple[VersionTag, ...] = ()

    @classmethod
    def build(
        cls,
        commits: Iterable[str] = (),
        pull_requests: Iterable[PullRequest] = (),
        releases: Iterable[Release] = (),
        tags: Iterable[TagRef] = (),
    ) -> LookupData:
        """Assemble all indices in one pass and freeze them.

        Releases whose tag does not parse as a version are kept in
        ``releases`` but left out of ``versions``. When two releases share a
        version, the newer one wins.
        """
        ordered = tuple(sorted(releases, key=_published, reverse=True))

        versions: list[VersionTag] = []
        seen: set[VersionTag] = set()
        for release in ordered:
            version = try_parse_version(release.tag_name)
            if version is None:
                log.debug(LogEventNames.UNPARSEABLE_TAG_SKIPPED, tag=release.tag_name)
                continue
            if version in seen:
                continue
            seen.add(version)
            versions.append(version)

        tags_by_name: dict[str, TagRef] = {}
        for tag in tags:
            tags_by_name.setdefault(tag.name, tag)

        releases_by_tag: dict[str, Release] = {}
        for release in ordered:
            releases_by_tag.setdefault(release.tag_name, release)

        return cls(
            commits=tuple(commits),
            pull_requests=tuple(pull_requests),
            releases=ordered,
            tags_by_name=MappingProxyType(tags_by_name),
            releases_by_tag=MappingProxyType(releases_by_tag),
            versions=tuple(versions),
        )

    @property
    def latest_release(self) -> Release | None:
        """The most recently published release, if any."""
        return self.releases[0] if self.releases else None

    def hash_for_tag(self, tag: str) -> str | None:
        """Commit hash a tag points at, or None when the tag is unknown."""
        ref = self.tags_by_name.get(tag)
        return ref.commit_hash if ref else None

    def pull_requests_between(
        self,
        from_hash: str | None,
        to_hash: str | None,
    ) -> list[PullRequest]:
        """Merged pull requests whose merge commit lies in ``(from_hash, to_hash]``.

        The range walks ``commits`` from ``to_hash`` (or the head, when it is
        None or not in the history) down to, but excluding, ``from_hash`` (or
        the end of the history). Results follow history order, newest first.
        """
        start = 0
        if to_hash is not None and to_hash in self.commits:
            start = self.commits.index(to_hash)

        end = len(self.commits)
        if from_hash is not None and from_hash in self.commits[start:]:
            end = self.commits.index(from_hash, start)

        position = {commit: index for index, commit in enumerate(self.commits[start:end])}
        in_range = [
            pr
            for pr in self.pull_requests
            if pr.merged and pr.merge_commit_hash is not None and pr.merge_commit_hash in position
        ]
        in_range.sort(key=lambda pr: position[pr.merge_commit_hash or ""])
        return in_range

    def index_of(self, version: VersionTag) -> int:
        """Position of a version in ``versions``, or -1 when absent."""
        for index, candidate in enumerate(self.versions):
            if candidate == version:
                return index
        return -1
