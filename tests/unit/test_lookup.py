"""Tests for the LookupData index."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest
from structlog.testing import CapturingLogger

from build_notes.models import lookup as lookup_module
from build_notes.models.issue import PullRequest
from build_notes.models.lookup import LookupData
from build_notes.models.release import Release, TagRef


def _release(tag: str, day: int | None) -> Release:
    published = datetime(2024, 3, day, tzinfo=timezone.utc) if day is not None else None
    return Release(tag_name=tag, published_at=published)


def _pr(number: int, merge_commit: str | None, merged: bool = True) -> PullRequest:
    return PullRequest(
        number=number,
        title=f"PR {number}",
        url=f"https://github.com/owner/repo/pull/{number}",
        merged=merged,
        merge_commit_hash=merge_commit,
    )


class TestBuild:
    """Test LookupData.build."""

    def test_releases_newest_first(self) -> None:
        """Test that releases are ordered by published date, newest first."""
        lookup = LookupData.build(
            releases=[_release("v1.0.0", 1), _release("v3.0.0", 3), _release("v2.0.0", 2)]
        )
        assert [r.tag_name for r in lookup.releases] == ["v3.0.0", "v2.0.0", "v1.0.0"]
        assert [v.tag for v in lookup.versions] == ["v3.0.0", "v2.0.0", "v1.0.0"]

    def test_unpublished_releases_sort_last(self) -> None:
        """Test that releases without a timestamp come after dated ones."""
        lookup = LookupData.build(
            releases=[_release("draft-1.5.0", None), _release("v1.0.0", 1), _release("v2.0.0", 2)]
        )
        assert [r.tag_name for r in lookup.releases] == ["v2.0.0", "v1.0.0", "draft-1.5.0"]

    def test_ties_keep_query_order(self) -> None:
        """Test that the sort is stable for equal timestamps."""
        lookup = LookupData.build(
            releases=[_release("v1.0.0", 5), _release("v1.0.1", 5), _release("v1.0.2", 5)]
        )
        assert [r.tag_name for r in lookup.releases] == ["v1.0.0", "v1.0.1", "v1.0.2"]

    def test_naive_timestamps_are_comparable(self) -> None:
        """Test that naive timestamps are treated as UTC."""
        naive = Release(tag_name="v1.0.0", published_at=datetime(2024, 1, 1))
        lookup = LookupData.build(releases=[naive, _release("v2.0.0", 1)])
        assert lookup.releases[0].tag_name == "v2.0.0"

    def test_unparseable_tags_skipped(self) -> None:
        """Test that unparseable release tags stay out of the version sequence."""
        lookup = LookupData.build(releases=[_release("nightly", 2), _release("v1.0.0", 1)])
        assert [r.tag_name for r in lookup.releases] == ["nightly", "v1.0.0"]
        assert [v.tag for v in lookup.versions] == ["v1.0.0"]

    def test_unparseable_tag_logged(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a skipped release tag is reported at debug level."""
        logger = CapturingLogger()
        monkeypatch.setattr(lookup_module, "log", logger)

        LookupData.build(releases=[_release("nightly", 2), _release("v1.0.0", 1)])

        assert [(call.method_name, call.args, call.kwargs) for call in logger.calls] == [
            ("debug", ("unparseable_tag_skipped",), {"tag": "nightly"}),
        ]

    def test_non_string_tag_skipped(self) -> None:
        """Test that a release whose tag is not a string is left out of the versions."""
        mistyped = Release(tag_name=123)  # type: ignore[arg-type]
        lookup = LookupData.build(releases=[mistyped, _release("v1.0.0", 1)])
        assert [v.tag for v in lookup.versions] == ["v1.0.0"]

    def test_duplicate_versions_collapse(self) -> None:
        """Test that two tags for the same version appear once, newest kept."""
        lookup = LookupData.build(releases=[_release("1.0.0", 1), _release("v1.0.0", 2)])
        assert [v.tag for v in lookup.versions] == ["v1.0.0"]

    def test_indices(self) -> None:
        """Test the tag and release maps."""
        lookup = LookupData.build(
            releases=[_release("v1.0.0", 1)],
            tags=[TagRef("v1.0.0", "abc"), TagRef("v0.9.0", "def")],
        )
        assert lookup.tags_by_name["v0.9.0"].commit_hash == "def"
        assert lookup.releases_by_tag["v1.0.0"].published_at is not None
        assert lookup.hash_for_tag("v1.0.0") == "abc"
        assert lookup.hash_for_tag("missing") is None

    def test_latest_release(self) -> None:
        """Test latest_release on empty and populated data."""
        assert LookupData.build().latest_release is None
        lookup = LookupData.build(releases=[_release("v1.0.0", 1), _release("v2.0.0", 2)])
        assert lookup.latest_release is not None
        assert lookup.latest_release.tag_name == "v2.0.0"


class TestImmutability:
    """Test that LookupData cannot be changed after build."""

    def test_frozen(self) -> None:
        """Test that attributes cannot be reassigned."""
        lookup = LookupData.build(commits=["a"])
        with pytest.raises(FrozenInstanceError):
            lookup.commits = ("b",)  # type: ignore[misc]

    def test_maps_read_only(self) -> None:
        """Test that the index maps reject writes."""
        lookup = LookupData.build(tags=[TagRef("v1.0.0", "abc")])
        with pytest.raises(TypeError):
            lookup.tags_by_name["v2.0.0"] = TagRef("v2.0.0", "def")  # type: ignore[index]

    def test_sequences_are_tuples(self) -> None:
        """Test that list inputs are copied into tuples."""
        commits = ["a", "b"]
        lookup = LookupData.build(commits=commits)
        commits.append("c")
        assert lookup.commits == ("a", "b")


class TestPullRequestsBetween:
    """Test commit-range membership of merged pull requests."""

    def test_range_between_tags(self, sequence_lookup: LookupData) -> None:
        """Test that the range excludes the baseline and includes the target."""
        prs = sequence_lookup.pull_requests_between("c3", "c7")
        assert [pr.number for pr in prs] == [3, 2]

    def test_range_single_pr(self, sequence_lookup: LookupData) -> None:
        """Test a range with one merge commit."""
        prs = sequence_lookup.pull_requests_between("c1", "c3")
        assert [pr.number for pr in prs] == [1]

    def test_no_baseline_means_whole_history(self, sequence_lookup: LookupData) -> None:
        """Test that a missing baseline walks to the start of history."""
        prs = sequence_lookup.pull_requests_between(None, "c5")
        assert [pr.number for pr in prs] == [2, 1]

    def test_unknown_target_starts_at_head(self, sequence_lookup: LookupData) -> None:
        """Test that a target outside the history starts at the head."""
        prs = sequence_lookup.pull_requests_between("c5", "unknown")
        assert [pr.number for pr in prs] == [3]

    def test_empty_range(self, sequence_lookup: LookupData) -> None:
        """Test that the oldest tag has nothing before it."""
        assert sequence_lookup.pull_requests_between(None, "c1") == []

    def test_unmerged_and_missing_merge_commit_excluded(self) -> None:
        """Test that only merged PRs with a merge commit count."""
        lookup = LookupData.build(
            commits=["c2", "c1", "c0"],
            pull_requests=[_pr(1, "c1", merged=False), _pr(2, None), _pr(3, "c2")],
        )
        assert [pr.number for pr in lookup.pull_requests_between("c0", "c2")] == [3]
