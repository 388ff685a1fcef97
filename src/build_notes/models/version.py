"""Version tag parsing.

Tags in the wild are loosely structured: ``v1.2.3``, ``ver-1.1.0``,
``release_2.0.0-beta.1``, ``Rel_1.2.3.rc.4+build.5``. The parser reads a tag
in four stages:

1. prefix        - letters, ``-`` and ``_`` before the first digit
2. numeric core  - ``major.minor.patch``
3. suffix        - optional, introduced by ``-`` or ``.``, up to ``+``
4. metadata      - optional, after ``+``

A hyphen suffix always marks a pre-release. A dotted suffix marks one only
when its first identifier is a known marker (``alpha``, ``beta``, ``rc``,
``pre``, optionally followed by digits), so ``v1.0.0.arch`` stays a release.
Markers are compared as whole identifiers, never as substrings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

PRE_RELEASE_MARKERS = ("alpha", "beta", "rc", "pre")

_MARKER_PATTERN = re.compile(rf"^(?:{'|'.join(PRE_RELEASE_MARKERS)})\d*$", re.IGNORECASE)
_SEGMENT_CHARS = re.compile(r"^[A-Za-z0-9.-]+$")
_IDENTIFIER_SPLIT = re.compile(r"[.-]")

_PREFIX_CHARS = frozenset("-_")
_SUFFIX_SEPARATORS = frozenset("-.")


class FormatError(ValueError):
    """Raised when a tag does not contain a ``major.minor.patch`` version."""

    def __init__(self, tag: str, reason: str) -> None:
        super().__init__(f"Invalid version tag {tag!r}: {reason}")
        self.tag = tag
        self.reason = reason


@dataclass(frozen=True, eq=False)
class VersionTag:
    """A tag parsed into a normalized, comparable version.

    Two values are equal when their ``full_version`` strings match
    (case-insensitively), whatever prefix the tags were spelled with.
    """

    tag: str
    full_version: str
    is_pre_release: bool
    core: tuple[int, int, int] = field(default=(0, 0, 0))
    suffix: str = ""
    metadata: str = ""

    @classmethod
    def parse(cls, tag: str) -> VersionTag:
        """Parse a tag, raising FormatError when it holds no version."""
        return parse_version(tag)

    @classmethod
    def try_parse(cls, tag: str) -> VersionTag | None:
        """Parse a tag, returning None when it holds no version."""
        return try_parse_version(tag)

    @property
    def semantic_version(self) -> str:
        """The numeric core as ``major.minor.patch``."""
        return ".".join(str(part) for part in self.core)

    @property
    def pre_release(self) -> str:
        """The pre-release identifier, or an empty string for releases."""
        return self.suffix if self.is_pre_release else ""

    @property
    def sort_key(self) -> tuple[object, ...]:
        """Key ordering versions by precedence.

        Numeric core first; for an equal core a pre-release sorts before the
        release. Pre-release identifiers compare one by one, numeric ones
        numerically and ahead of alphanumeric ones.

        Release history is sequenced by publish date, not by this key; it
        gives semantic precedence when two versions are compared directly.
        """
        identifiers = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
            for part in _IDENTIFIER_SPLIT.split(self.suffix)
            if part
        )
        return (*self.core, 0 if self.is_pre_release else 1, identifiers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionTag):
            return NotImplemented
        return self.full_version.lower() == other.full_version.lower()

    def __hash__(self) -> int:
        return hash(self.full_version.lower())

    def __str__(self) -> str:
        return self.tag


def _skip_prefix(tag: str) -> int:
    """Return the index of the first digit, validating the prefix before it."""
    for index, char in enumerate(tag):
        if char.isdigit():
            return index
        if not (char.isalpha() or char in _PREFIX_CHARS):
            raise FormatError(tag, f"unexpected character {char!r} before version")
    raise FormatError(tag, "no numeric version found")


def _read_number(tag: str, start: int) -> tuple[int, int]:
    """Read a run of digits starting at ``start``; return (value, end index)."""
    end = start
    while end < len(tag) and tag[end].isdigit():
        end += 1
    if end == start:
        raise FormatError(tag, "expected major.minor.patch")
    return int(tag[start:end]), end


def _read_core(tag: str, start: int) -> tuple[tuple[int, int, int], int]:
    """Read ``major.minor.patch`` starting at ``start``."""
    parts: list[int] = []
    position = start
    for index in range(3):
        if index:
            if position >= len(tag) or tag[position] != ".":
                raise FormatError(tag, "expected major.minor.patch")
            position += 1
        value, position = _read_number(tag, position)
        parts.append(value)
    return (parts[0], parts[1], parts[2]), position


def _is_pre_release(separator: str, suffix: str) -> bool:
    if not suffix:
        return False
    if separator == "-":
        return True
    first = _IDENTIFIER_SPLIT.split(suffix, maxsplit=1)[0]
    return bool(_MARKER_PATTERN.match(first))


def parse_version(tag: str) -> VersionTag:
    """Parse a raw tag string into a VersionTag.

    Args:
        tag: Tag name as stored on the host, e.g. ``"ver-1.1.0"``.

    Returns:
        Parsed version. ``tag`` is preserved verbatim.

    Raises:
        FormatError: If no ``major.minor.patch`` core can be located, or the
            text after it is not a valid suffix / metadata.
    """
    if not isinstance(tag, str):
        raise FormatError(repr(tag), "tag is not a string")
    if not tag:
        raise FormatError(tag, "empty tag")

    start = _skip_prefix(tag)
    core, position = _read_core(tag, start)

    separator = ""
    suffix = ""
    metadata = ""

    if position < len(tag) and tag[position] in _SUFFIX_SEPARATORS:
        separator = tag[position]
        end = tag.find("+", position + 1)
        if end == -1:
            end = len(tag)
        suffix = tag[position + 1 : end]
        if not _SEGMENT_CHARS.match(suffix):
            raise FormatError(tag, f"invalid segment after {separator!r}")
        position = end

    if position < len(tag):
        if tag[position] != "+":
            raise FormatError(tag, f"unexpected character {tag[position]!r} after version")
        metadata = tag[position + 1 :]
        if not _SEGMENT_CHARS.match(metadata):
            raise FormatError(tag, "invalid build metadata")

    return VersionTag(
        tag=tag,
        full_version=tag[start:],
        is_pre_release=_is_pre_release(separator, suffix),
        core=core,
        suffix=suffix,
        metadata=metadata,
    )


def try_parse_version(tag: str) -> VersionTag | None:
    """Parse a tag, returning None instead of raising FormatError."""
    try:
        return parse_version(tag)
    except FormatError:
        return None
