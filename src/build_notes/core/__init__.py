"""Core logic: version resolution, report assembly and rendering."""

from .assembler import BuildInformationAssembler, build_report, classify_labels
from .markdown import render_markdown
from .resolver import (
    CommitMismatchError,
    NoReleasesError,
    ResolutionError,
    determine_baseline_version,
    determine_target_version,
)

__all__ = [
    "BuildInformationAssembler",
    "CommitMismatchError",
    "NoReleasesError",
    "ResolutionError",
    "build_report",
    "classify_labels",
    "determine_baseline_version",
    "determine_target_version",
    "render_markdown",
]
