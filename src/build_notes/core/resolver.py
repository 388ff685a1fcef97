"""Target and baseline version resolution.

Both functions are pure: they read a frozen LookupData and never perform
I/O, so repeated calls with the same inputs give the same answer.
"""

from __future__ import annotations

import structlog

from ..models.lookup import LookupData
from ..models.version import VersionTag, parse_version
from ..utils.logging import LogEventNames

log = structlog.get_logger()


class ResolutionError(Exception):
    """Base exception for version resolution failures."""


class NoReleasesError(ResolutionError):
    """Raised when no version is given and the repository has no releases."""


class CommitMismatchError(ResolutionError):
    """Raised when the current commit is not the latest release's commit."""

    def __init__(self, tag: str, expected: str | None, actual: str) -> None:
        super().__init__(
            f"Current commit {actual} does not match latest release {tag} "
            f"({expected or 'untagged'}); pass an explicit build version"
        )
        self.tag = tag
        self.expected = expected
        self.actual = actual


def determine_target_version(
    version: VersionTag | None,
    current_hash: str,
    lookup: LookupData,
) -> tuple[VersionTag, str]:
    """
    Decide which version the report describes.

    Args:
        version: Explicitly requested version, if any
        current_hash: Commit hash currently checked out
        lookup: Repository index for this run

    Returns:
        (target version, commit hash)

    Raises:
        NoReleasesError: If no version is given and there are no releases
        FormatError: If the latest release tag does not parse
        CommitMismatchError: If HEAD is not on the latest release
    """
    if version is not None:
        return version, current_hash

    latest = lookup.latest_release
    if latest is None:
        raise NoReleasesError(
            "No releases found in repository; pass an explicit build version"
        )

    target = parse_version(latest.tag_name)
    tag_hash = lookup.hash_for_tag(latest.tag_name)
    if tag_hash != current_hash:
        raise CommitMismatchError(latest.tag_name, tag_hash, current_hash)

    log.debug(LogEventNames.TARGET_RESOLVED, tag=target.tag, commit=tag_hash)
    return target, tag_hash


def determine_baseline_version(
    target: VersionTag,
    lookup: LookupData,
) -> tuple[VersionTag | None, str | None]:
    """
    Find the version the target should be compared against.

    A pre-release target is compared with whatever comes right before it.
    A release target skips pre-releases and is compared with the previous
    release. When the target is not in the history yet (a build about to be
    tagged), every known version counts as older.

    Args:
        target: Version being reported on
        lookup: Repository index for this run

    Returns:
        (baseline version, commit hash); the hash is None when the baseline
        tag is not in the tag index, and both are None without a predecessor
    """
    start = lookup.index_of(target) + 1

    for candidate in lookup.versions[start:]:
        if target.is_pre_release or not candidate.is_pre_release:
            commit = lookup.hash_for_tag(candidate.tag)
            log.debug(LogEventNames.BASELINE_RESOLVED, tag=candidate.tag, commit=commit)
            return candidate, commit

    log.debug(LogEventNames.NO_BASELINE, target=target.tag)
    return None, None
