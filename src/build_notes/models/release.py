"""Data models for tags and releases."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TagRef:
    """A tag name and the commit it points at."""

    name: str
    commit_hash: str


@dataclass(frozen=True)
class Release:
    """A host-tracked release wrapping a tag."""

    tag_name: str
    published_at: datetime | None = None
    is_pre_release: bool = False
