"""Utility functions and helpers.

- security: Secret redaction, input validation
- safe_subprocess: Safe subprocess execution
- logging: Structured logging with secret sanitization
"""

from build_notes.utils.logging import (
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
)
from build_notes.utils.security import (
    InvalidArgumentError,
    RedactionError,
    SecretRedactor,
    SecurityError,
    ValidationError,
)

__all__ = [
    # Logging
    "LogFormat",
    "LogLevel",
    "bind_context",
    "clear_context",
    "configure_logging",
    # Security
    "InvalidArgumentError",
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
    "ValidationError",
]
