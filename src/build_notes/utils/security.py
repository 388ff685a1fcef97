"""Input validation and secret redaction.

Everything handed to ``git`` or ``gh`` as an argument passes through one of
the validators here first. Validation fails closed: an identifier that does
not match its pattern is rejected before any process is spawned.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()


class SecurityError(Exception):
    """Base exception for security-related errors."""


class RedactionError(SecurityError):
    """Raised when secret redaction fails."""


class ValidationError(SecurityError):
    """Raised when input validation fails."""


class InvalidArgumentError(ValidationError, ValueError):
    """Raised when an identifier is unsafe to pass to an external command."""

    def __init__(self, message: str, argument: str | None = None) -> None:
        super().__init__(message)
        self.argument = argument


# owner/repo
REPO_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+/[a-zA-Z0-9_.-]+$")

# Tag and branch names: alphanumerics, dots, hyphens, underscores, slashes
TAG_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9._/-]+$")

# Issue and pull request numbers
NUMERIC_ID_PATTERN = re.compile(r"^\d+$")

SHELL_METACHARACTERS = frozenset(
    [";", "|", "&", "`", "$", "(", ")", "{", "}", "<", ">", "\\", "\n", "\r", "\t", "\x00"]
)


class SecretRedactor:
    """Detects and redacts credentials from text.

    Used by the log sanitizer so that tokens passed through configuration
    never reach log output. Redaction is fail-closed: a pattern that fails to
    compile or execute raises instead of letting text through unredacted.
    """

    DEFAULT_PATTERNS: tuple[tuple[str, str], ...] = (
        (
            r"(?i)(api[_-]?key|secret|token|password|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
            "Generic secret",
        ),
        (r"(?i)bearer\s+[a-zA-Z0-9_.\-]{16,}", "Bearer authorization header"),
        (r"ghp_[a-zA-Z0-9]{36}", "GitHub PAT"),
        (r"github_pat_[a-zA-Z0-9_]{22,}", "GitHub fine-grained PAT"),
        (r"gho_[a-zA-Z0-9]{36}", "GitHub OAuth token"),
        (r"ghu_[a-zA-Z0-9]{36}", "GitHub user-to-server token"),
        (r"ghs_[a-zA-Z0-9]{36}", "GitHub server-to-server token"),
        (r"ghr_[a-zA-Z0-9]{36}", "GitHub refresh token"),
        (
            r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----",
            "Private key header",
        ),
    )

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """Initialize the SecretRedactor.

        Args:
            placeholder: String to replace detected secrets with.
            custom_patterns: Additional (pattern, name) tuples to detect.

        Raises:
            RedactionError: If any pattern fails to compile.
        """
        self.placeholder = placeholder
        self._pattern_names: dict[re.Pattern[str], str] = {}

        all_patterns = list(self.DEFAULT_PATTERNS)
        if custom_patterns:
            all_patterns.extend(custom_patterns)

        try:
            for pattern_str, name in all_patterns:
                compiled = re.compile(pattern_str)
                self._pattern_names[compiled] = name
        except re.error as e:
            msg = f"Failed to compile secret pattern '{pattern_str}': {e}"
            log.error("pattern_compilation_failed", pattern=pattern_str, error=str(e))
            raise RedactionError(msg) from e

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        """Return the list of compiled patterns."""
        return list(self._pattern_names.keys())

    def redact(self, text: str) -> str:
        """Redact all secrets from the given text.

        Args:
            text: The text to scan and redact secrets from.

        Returns:
            The text with all detected secrets replaced with placeholder.

        Raises:
            RedactionError: If redaction fails for any reason.
        """
        if not text:
            return text

        try:
            result = text
            for pattern in self._pattern_names:
                result = pattern.sub(self.placeholder, result)
            return result
        except Exception as e:
            log.error("redaction_failed", error=str(e))
            raise RedactionError(f"Redaction failed: {e}") from e

    def has_secrets(self, text: str) -> bool:
        """Check if text contains any secrets."""
        if not text:
            return False
        return any(pattern.search(text) for pattern in self._pattern_names)


def validate_repo_name(repo: str) -> bool:
    """Validate that a repository name is safe.

    Args:
        repo: The repository name to validate (e.g., "owner/repo").

    Returns:
        True if the repository name is valid, False otherwise.
    """
    if not repo:
        return False

    if any(char in repo for char in SHELL_METACHARACTERS):
        return False

    return bool(REPO_NAME_PATTERN.match(repo))


def validate_tag_name(tag: str) -> str:
    """Ensure a tag (or branch) name is safe to pass to git or gh.

    Args:
        tag: Tag name to validate.

    Returns:
        The tag name unchanged.

    Raises:
        InvalidArgumentError: If the tag contains characters outside the
            allowed set, or starts with "-" and could be read as an option.
    """
    if not tag or tag.startswith("-") or not TAG_NAME_PATTERN.fullmatch(tag):
        from .logging import LogEventNames

        log.warning(LogEventNames.INPUT_REJECTED, kind="tag", value=tag)
        raise InvalidArgumentError(f"Invalid tag name: {tag!r}", argument="tag")
    return tag


def validate_numeric_id(value: str, argument: str = "id") -> str:
    """Ensure an issue or pull request id is a plain decimal number.

    Args:
        value: Identifier to validate.
        argument: Name of the argument, used in the error.

    Returns:
        The identifier unchanged.

    Raises:
        InvalidArgumentError: If the identifier is not purely numeric.
    """
    if not value or not NUMERIC_ID_PATTERN.fullmatch(value):
        from .logging import LogEventNames

        log.warning(LogEventNames.INPUT_REJECTED, kind=argument, value=value)
        raise InvalidArgumentError(f"Invalid ID: {value!r}", argument=argument)
    return value


def sanitize_for_logging(text: str) -> str:
    """Remove ANSI escape codes and control characters from text.

    Titles come straight from the host and end up in logs and reports.
    """
    if not text:
        return text

    text = re.sub(r"\x1b\[[0-9;]*m", "", text)
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", text)

    return text


def mask_config_value(key: str, value: str) -> str:
    """Mask sensitive config values for logging.

    Args:
        key: The configuration key name.
        value: The configuration value.

    Returns:
        The masked value if the key indicates sensitivity, otherwise the original.
    """
    sensitive_keys = {"token", "key", "secret", "password", "credential"}

    key_lower = key.lower()
    if any(s in key_lower for s in sensitive_keys):
        if len(value) > 8:
            return f"{value[:4]}...{value[-4:]}"
        return "***"

    return value
