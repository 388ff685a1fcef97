"""Markdown rendering of a BuildInformation value."""

from __future__ import annotations

from collections.abc import Sequence

from ..models.build_info import BuildInformation, ChangeItem
from ..utils.security import sanitize_for_logging

NOT_AVAILABLE = "N/A"


def _cell(text: str) -> str:
    # Pipes would split the table cell
    return sanitize_for_logging(text).replace("|", "\\|").replace("\n", " ").strip()


def _issue_table(items: Sequence[ChangeItem]) -> list[str]:
    lines = ["| Issue | Title |", "|-------|-------|"]
    if not items:
        lines.append(f"| {NOT_AVAILABLE} | {NOT_AVAILABLE} |")
    for item in items:
        lines.append(f"| [{_cell(item.id)}]({item.url}) | {_cell(item.title)} |")
    lines.append("")
    return lines


def render_markdown(
    info: BuildInformation,
    heading_depth: int = 1,
    include_known_issues: bool = False,
) -> str:
    """
    Render a build report.

    Args:
        info: Report data
        heading_depth: Markdown level of the title heading (1-6); sections
            sit one level below it
        include_known_issues: Whether to add the Known Issues section

    Returns:
        Markdown text ending in a newline

    Raises:
        ValueError: If heading_depth is outside 1-6
    """
    if not 1 <= heading_depth <= 6:
        raise ValueError(f"heading_depth must be between 1 and 6, got {heading_depth}")

    heading = "#" * heading_depth
    section = "#" * min(heading_depth + 1, 6)

    baseline = info.baseline
    lines = [
        f"{heading} Build Report",
        "",
        f"{section} Version Information",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| **Version** | {info.target.version.tag} |",
        f"| **Commit Hash** | {info.target.commit_hash or NOT_AVAILABLE} |",
        f"| **Previous Version** | {baseline.version.tag if baseline else NOT_AVAILABLE} |",
        f"| **Previous Commit Hash** | "
        f"{(baseline.commit_hash if baseline else None) or NOT_AVAILABLE} |",
        "",
        f"{section} Changes",
        "",
        *_issue_table(info.changes),
        f"{section} Bugs Fixed",
        "",
        *_issue_table(info.bugs),
    ]

    if include_known_issues:
        lines += [f"{section} Known Issues", "", *_issue_table(info.known_issues)]

    if info.changelog_link is not None:
        link = info.changelog_link
        lines += [f"{section} Full Changelog", "", f"See [{link.text}]({link.url})", ""]

    return "\n".join(lines)
