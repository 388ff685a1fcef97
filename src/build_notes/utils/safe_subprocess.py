"""Safe subprocess wrapper for git and gh invocations.

Commands are always run as argument lists (never through a shell), with a
per-command timeout, off the event loop via a worker thread. Failures are
mapped onto a small exception family based on the tool's output.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any

import structlog

log = structlog.get_logger()


class ProcessError(Exception):
    """Base exception for external command failures."""

    def __init__(self, message: str, command: list[str] | None = None) -> None:
        super().__init__(message)
        self.command = command or []


class AuthenticationError(ProcessError):
    """Raised when the tool reports missing or invalid credentials."""


class RateLimitError(ProcessError):
    """Raised when the host's rate limit is exceeded."""


class NotFoundError(ProcessError):
    """Raised when a ref, issue or repository does not exist."""


class CommandTimeoutError(ProcessError):
    """Raised when a command times out."""


@dataclass
class CommandResult:
    """Result of one command execution."""

    stdout: str
    stderr: str
    return_code: int
    command: list[str]

    @property
    def success(self) -> bool:
        """Return True if the command succeeded."""
        return self.return_code == 0

    def json(self) -> Any:
        """Parse stdout as JSON.

        Raises:
            ValueError: If stdout is not valid JSON.
        """
        return json.loads(self.stdout)

    def lines(self) -> list[str]:
        """Non-empty stripped lines of stdout."""
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]


class SafeProcessRunner:
    """Runs one external tool (``git`` or ``gh``) safely.

    Example:
        git = SafeProcessRunner("git")
        result = await git.run(["rev-parse", "HEAD"])
        head = result.stdout.strip()
    """

    # Default timeout for commands (seconds)
    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        program: str,
        path: str | None = None,
        default_timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the runner.

        Args:
            program: Name of the binary, used for PATH lookup and messages.
            path: Explicit path to the binary. If None, uses PATH.
            default_timeout: Default timeout for commands in seconds.

        Raises:
            ProcessError: If the binary cannot be found.
        """
        resolved_path = path or shutil.which(program)
        if not resolved_path:
            raise ProcessError(f"{program} not found on PATH")

        self.program = program
        self._path: str = resolved_path
        self._default_timeout = default_timeout

    def _parse_error(self, result: CommandResult) -> ProcessError:
        """Map a failed command result onto a specific error type."""
        output = result.stderr or result.stdout
        combined = (result.stderr + result.stdout).lower()

        if "authentication" in combined or "not logged in" in combined:
            return AuthenticationError(f"Authentication failed: {output}", result.command)

        if "rate limit" in combined:
            return RateLimitError(f"Rate limit exceeded: {output}", result.command)

        if (
            "not found" in combined
            or "could not resolve" in combined
            or "unknown revision" in combined
        ):
            return NotFoundError(f"Resource not found: {output}", result.command)

        return ProcessError(f"{self.program} failed: {output}", result.command)

    async def run(
        self,
        args: list[str],
        timeout: int | None = None,
        check: bool = True,
    ) -> CommandResult:
        """Run the tool with the given arguments.

        Args:
            args: Command arguments, without the program itself.
            timeout: Timeout in seconds (uses default if None).
            check: If True, raise an exception on failure.

        Returns:
            CommandResult with stdout, stderr, and return code.

        Raises:
            CommandTimeoutError: If the command times out.
            ProcessError: If check=True and the command fails.
        """
        cmd = [self._path, *args]
        effective_timeout = timeout or self._default_timeout

        log.debug("executing_command", command=cmd, timeout=effective_timeout)

        def run_sync() -> subprocess.CompletedProcess[str]:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=effective_timeout,
                shell=False,
            )

        try:
            proc = await asyncio.wait_for(
                asyncio.to_thread(run_sync),
                timeout=effective_timeout + 5,
            )
        except (subprocess.TimeoutExpired, TimeoutError) as e:
            log.error("command_timeout", command=cmd, timeout=effective_timeout)
            raise CommandTimeoutError(
                f"Command timed out after {effective_timeout}s: {cmd}", cmd
            ) from e

        result = CommandResult(
            stdout=proc.stdout,
            stderr=proc.stderr,
            return_code=proc.returncode,
            command=cmd,
        )

        if check and not result.success:
            raise self._parse_error(result)

        return result
