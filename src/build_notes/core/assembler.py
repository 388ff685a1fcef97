"""Collects the changes, fixes and known issues for one build."""

from __future__ import annotations

from collections.abc import Collection, Iterable

import structlog

from ..interfaces.repo import RepoConnector
from ..models.build_info import BuildInformation, ChangeItem, VersionRef
from ..models.issue import PullRequest
from ..models.version import VersionTag
from ..utils.logging import LogEventNames
from .resolver import ResolutionError, determine_baseline_version, determine_target_version

log = structlog.get_logger()

BUG = "bug"
FEATURE = "feature"
OTHER = "other"

_FEATURE_LABELS = frozenset({"enhancement", "feature"})


def classify_labels(labels: Iterable[str]) -> str:
    """Map label names onto ``"bug"``, ``"feature"`` or ``"other"``.

    Labels match as whole names, case-insensitively. A ``bug`` label wins
    over any feature label on the same issue.
    """
    names = {label.strip().lower() for label in labels}
    if BUG in names:
        return BUG
    if names & _FEATURE_LABELS:
        return FEATURE
    return OTHER


def placeholder_for(pr: PullRequest) -> ChangeItem:
    """Entry standing in for a pull request that closes no issue."""
    return ChangeItem(id=f"#{pr.number}", title=f"PR #{pr.number}", url=pr.url, type=OTHER)


class BuildInformationAssembler:
    """Gathers report entries through a RepoConnector.

    Example:
        assembler = BuildInformationAssembler(connector)
        info = await assembler.assemble(baseline, target)
    """

    def __init__(self, connector: RepoConnector) -> None:
        self._connector = connector

    async def _item(self, issue_id: str) -> ChangeItem:
        return ChangeItem(
            id=issue_id,
            title=await self._connector.get_issue_title(issue_id),
            url=await self._connector.get_issue_url(issue_id),
            type=await self._connector.get_issue_type(issue_id),
        )

    async def collect_changes(
        self,
        baseline: VersionRef | None,
        target: VersionRef,
    ) -> tuple[list[ChangeItem], list[ChangeItem]]:
        """
        Split the work merged in range into changes and bug fixes.

        Returns:
            (changes, bugs), each in discovery order with duplicates removed
        """
        pull_requests = await self._connector.get_pull_requests_between_tags(baseline, target)
        log.info(
            LogEventNames.PULL_REQUESTS_IN_RANGE,
            baseline=baseline.version.tag if baseline else None,
            target=target.version.tag,
            count=len(pull_requests),
        )

        changes: list[ChangeItem] = []
        bugs: list[ChangeItem] = []
        seen: set[str] = set()

        for pr in pull_requests:
            issue_ids = await self._connector.get_issues_for_pull_request(str(pr.number))
            if not issue_ids:
                items = [placeholder_for(pr)]
            else:
                items = [await self._item(issue_id) for issue_id in issue_ids if issue_id not in seen]

            for item in items:
                if item.id in seen:
                    continue
                seen.add(item.id)
                (bugs if item.type == BUG else changes).append(item)

        return changes, bugs

    async def collect_known_issues(self, exclude: Collection[str] = ()) -> list[ChangeItem]:
        """Open issues classified as bugs, independent of any range.

        Ids in ``exclude`` (entries already listed for this build) are skipped.
        """
        known: list[ChangeItem] = []
        for issue_id in await self._connector.get_open_issues():
            if issue_id in exclude:
                continue
            if await self._connector.get_issue_type(issue_id) == BUG:
                known.append(await self._item(issue_id))
        return known

    async def assemble(
        self,
        baseline: VersionRef | None,
        target: VersionRef,
    ) -> BuildInformation:
        """Build the report value for a resolved (baseline, target) pair."""
        changes, bugs = await self.collect_changes(baseline, target)
        listed = {item.id for item in (*changes, *bugs)}
        known_issues = await self.collect_known_issues(exclude=listed)
        changelog_link = await self._connector.get_changelog_link(baseline, target)

        return BuildInformation(
            target=target,
            baseline=baseline,
            changes=tuple(changes),
            bugs=tuple(bugs),
            known_issues=tuple(known_issues),
            changelog_link=changelog_link,
        )


async def build_report(
    connector: RepoConnector,
    version: VersionTag | None = None,
) -> BuildInformation:
    """
    Resolve versions and assemble the report in one sequential pass.

    Args:
        connector: Repository connector to read from
        version: Explicit target version; None means the latest release,
            which must sit on the current commit

    Returns:
        BuildInformation for the target

    Raises:
        ResolutionError: If the target cannot be determined
        FormatError: If the latest release tag does not parse
    """
    lookup = await connector.get_lookup_data()
    current_hash = await connector.get_hash_for_tag(None)
    if current_hash is None:
        raise ResolutionError("Could not determine the current commit hash")

    target, target_hash = determine_target_version(version, current_hash, lookup)
    baseline, baseline_hash = determine_baseline_version(target, lookup)

    target_ref = VersionRef(target, target_hash)
    baseline_ref = VersionRef(baseline, baseline_hash) if baseline is not None else None

    log.info(
        LogEventNames.TARGET_RESOLVED,
        target=target.tag,
        baseline=baseline.tag if baseline else None,
    )

    return await BuildInformationAssembler(connector).assemble(baseline_ref, target_ref)
