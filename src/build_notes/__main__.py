"""Command line entry point for build-notes.

Loads configuration, resolves the target and baseline versions through the
configured connector, and writes the markdown report to a file or stdout.
Logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from build_notes._version import __version__

if TYPE_CHECKING:
    from build_notes.config.schema import BuildNotesConfig

log = structlog.get_logger()


def setup_logging(
    debug: bool = False,
    log_format: str = "console",
    level: str = "INFO",
    file_path: Path | None = None,
    file_enabled: bool = False,
) -> None:
    """Configure structured logging with secret sanitization.

    Args:
        debug: Force debug logging if True
        log_format: Output format ("json" or "console")
        level: Log level used when debug is off
        file_path: Path to log file (if file logging enabled)
        file_enabled: Whether to enable file logging
    """
    from build_notes.utils.logging import LogFormat, LogLevel, configure_logging

    configure_logging(
        level=LogLevel.DEBUG if debug else LogLevel(level.upper()),
        log_format=LogFormat(log_format.lower()),
        file_path=file_path,
        file_enabled=file_enabled,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="build-notes",
        description="Generate markdown build notes from tags, pull requests and issues",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (optional)",
    )

    parser.add_argument(
        "--build-version",
        default=None,
        help="Version being built, e.g. v1.2.3 (default: latest release on HEAD)",
    )

    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write the markdown report to this file (default: stdout)",
    )

    parser.add_argument(
        "--report-depth",
        type=int,
        choices=range(1, 7),
        metavar="{1-6}",
        default=None,
        help="Heading level of the report title",
    )

    parser.add_argument(
        "--include-known-issues",
        action="store_true",
        default=None,
        help="Add a Known Issues section listing open bugs",
    )

    parser.add_argument(
        "--connector",
        choices=["github", "github-cli", "mock"],
        default=None,
        help="Repository connector (default: from config, else github)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default=None,
        help="Log output format (default: from config, else console)",
    )

    return parser.parse_args(argv)


def apply_overrides(config: BuildNotesConfig, args: argparse.Namespace) -> BuildNotesConfig:
    """Return a copy of ``config`` with command line flags applied."""
    report_updates = {
        key: value
        for key, value in (
            ("output", args.report),
            ("heading_depth", args.report_depth),
            ("include_known_issues", args.include_known_issues),
        )
        if value is not None
    }
    updates: dict[str, Any] = {}
    if report_updates:
        updates["report"] = config.report.model_copy(update=report_updates)
    if args.connector:
        updates["connector"] = config.connector.model_copy(update={"provider": args.connector})
    if args.format:
        updates["logging"] = config.logging.model_copy(update={"format": args.format})
    return config.model_copy(update=updates) if updates else config


async def run(args: argparse.Namespace) -> int:
    """Generate the report described by ``args``.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    from pydantic import ValidationError as ConfigValidationError

    from build_notes.adapters.factory import open_connector
    from build_notes.config.loader import load_config, validate_config
    from build_notes.core.assembler import build_report
    from build_notes.core.markdown import render_markdown
    from build_notes.core.resolver import ResolutionError
    from build_notes.models.version import parse_version
    from build_notes.utils.logging import LogEventNames, bind_context
    from build_notes.utils.safe_subprocess import ProcessError
    from build_notes.utils.security import SecurityError, mask_config_value

    try:
        config = apply_overrides(load_config(args.config), args)
        validate_config(config)
    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(args.config), error=str(e))
        return 1
    except (ConfigValidationError, ValueError) as e:
        log.error("configuration_invalid", error=str(e))
        return 1

    setup_logging(
        debug=args.debug,
        log_format=config.logging.format,
        level=config.logging.level,
        file_path=config.logging.file.path,
        file_enabled=config.logging.file.enabled,
    )
    bind_context(connector=config.connector.provider)
    log.debug(
        "configuration_loaded",
        repo=config.github.repo,
        branch=config.github.branch,
        token=mask_config_value("token", config.github.token) if config.github.token else None,
    )
    log.info(LogEventNames.REPORT_STARTING, version=__version__, build_version=args.build_version)

    try:
        version = parse_version(args.build_version) if args.build_version else None

        async with open_connector(config) as connector:
            info = await build_report(connector, version)

        markdown = render_markdown(
            info,
            heading_depth=config.report.heading_depth,
            include_known_issues=config.report.include_known_issues,
        )
    except (ResolutionError, ProcessError, SecurityError, ValueError) as e:
        log.error(LogEventNames.REPORT_FAILED, error=str(e), error_type=type(e).__name__)
        return 1

    log.info(
        LogEventNames.REPORT_COMPLETE,
        target=info.target.version.tag,
        baseline=info.baseline.version.tag if info.baseline else None,
        changes=len(info.changes),
        bugs=len(info.bugs),
        known_issues=len(info.known_issues),
    )

    output = config.report.output
    if output is None:
        sys.stdout.write(markdown)
        return 0

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(markdown, encoding="utf-8")
    except OSError as e:
        log.error(LogEventNames.REPORT_FAILED, path=str(output), error=str(e))
        return 1

    log.info(LogEventNames.REPORT_WRITTEN, path=str(output))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_format=args.format or "console")

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        log.info("interrupted")
        return 1


if __name__ == "__main__":
    sys.exit(main())
