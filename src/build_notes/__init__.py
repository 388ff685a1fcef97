"""build-notes: release notes from tags, pull requests and issues."""

from build_notes._version import __version__

__all__ = ["__version__"]
