"""
Command line entry point for trimerge.

This module handles:
- Command line argument parsing
- Logging configuration
- Reading the three versions and running the merge
- Writing the merged document or a region summary
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, List

from trimerge import __version__
from trimerge.core.merge.conflict_resolver import ResolutionSession
from trimerge.core.merge.three_way import MergeStrategy, ThreeWayMergeEngine
from trimerge.core.models import FileMergeResult
from trimerge.services.file_io import FileContent, FileIOService, LineEnding
from trimerge.services.settings import MergeSettings, SettingsManager


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "trimerge"

EXIT_CLEAN = 0
EXIT_CONFLICTS = 1
EXIT_INPUT_ERROR = 2

STRATEGIES = {
    'manual': MergeStrategy.MANUAL,
    'ours': MergeStrategy.FAVOR_OURS,
    'theirs': MergeStrategy.FAVOR_THEIRS,
    'shorter': MergeStrategy.FAVOR_SHORTER,
    'longer': MergeStrategy.FAVOR_LONGER,
}


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    base_path: str = ""
    ours_path: str = ""
    theirs_path: str = ""
    output_path: Optional[str] = None
    ignore_whitespace: bool = False
    strategy: MergeStrategy = MergeStrategy.MANUAL
    summary: bool = False
    diff3: bool = False
    config_file: Optional[str] = None
    log_level: str = "WARNING"
    log_file: Optional[str] = None


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Custom log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Console output goes to stderr; stdout carries the merged document.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_file,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    return root_logger


# =============================================================================
# Command Line Parsing
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Region-based three-way text merge",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s base.txt ours.txt theirs.txt              Print the merge
  %(prog)s base.txt ours.txt theirs.txt -o out.txt   Write the merge
  %(prog)s base.txt ours.txt theirs.txt --summary    List merge regions
  %(prog)s base.txt ours.txt theirs.txt --strategy theirs

Exit status is 0 for a clean merge, 1 if conflicts remain and 2 on
input errors.
        """
    )

    parser.add_argument('base', help='Common ancestor version')
    parser.add_argument('ours', help='Current (ours) version')
    parser.add_argument('theirs', help='Incoming (theirs) version')

    # Merge options
    parser.add_argument(
        '-o', '--output',
        help='Write the merged document to this file'
    )
    parser.add_argument(
        '-w', '--ignore-whitespace',
        action='store_true',
        help='Treat whitespace-only changes as unchanged'
    )
    parser.add_argument(
        '--strategy',
        choices=list(STRATEGIES),
        default='manual',
        help='Automatic conflict resolution strategy'
    )

    # Output options
    parser.add_argument(
        '--summary',
        action='store_true',
        help='Print the merge regions instead of the merged document'
    )
    parser.add_argument(
        '--diff3',
        action='store_true',
        help='Include the base section in conflict markers'
    )

    # Configuration
    parser.add_argument(
        '-c', '--config',
        help='Settings file path'
    )

    # Logging
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='WARNING',
        help='Log level'
    )
    parser.add_argument(
        '--log-file',
        help='Also write the log to this file'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'{APP_NAME} {__version__}'
    )

    parsed = parser.parse_args(args)

    if parsed.summary and parsed.output:
        parser.error("--summary cannot be combined with --output")

    return CommandLineArgs(
        base_path=parsed.base,
        ours_path=parsed.ours,
        theirs_path=parsed.theirs,
        output_path=parsed.output,
        ignore_whitespace=parsed.ignore_whitespace,
        strategy=STRATEGIES[parsed.strategy],
        summary=parsed.summary,
        diff3=parsed.diff3,
        config_file=parsed.config,
        log_level=parsed.log_level,
        log_file=parsed.log_file,
    )


# =============================================================================
# Merge
# =============================================================================

def load_merge_settings(args: CommandLineArgs) -> MergeSettings:
    """Merge settings from the settings file, overridden by command line flags."""
    manager = SettingsManager(args.config_file) if args.config_file else SettingsManager()
    merge_settings = manager.settings.merge

    if args.ignore_whitespace:
        merge_settings = replace(merge_settings, ignore_whitespace=True)
    if args.diff3:
        merge_settings = replace(merge_settings, show_base_in_conflicts=True)

    return merge_settings


def format_summary(result: FileMergeResult, session: ResolutionSession) -> str:
    """One line per region, then the totals."""
    lines = []
    for region in result.regions:
        marker = ""
        if region.is_conflict:
            marker = "  (resolved)" if not session.is_unresolved(region.index) else "  (unresolved)"
        lines.append(
            f"{region.index:>4}  {region.region_type.name:<12}"
            f"  base {region.base_start_line}+{region.base_count}"
            f"  ours {region.ours_start_line}+{region.ours_count}"
            f"  theirs {region.theirs_start_line}+{region.theirs_count}"
            f"{marker}"
        )
    lines.append(
        f"{len(result.regions)} regions, {result.conflict_count} conflicts, "
        f"{session.unresolved_count} unresolved"
    )
    return '\n'.join(lines) + '\n'


def _read_inputs(args: CommandLineArgs, service: FileIOService) -> Optional[list[FileContent]]:
    contents = []
    for path in (args.base_path, args.ours_path, args.theirs_path):
        read = service.read_file(path)
        if not read.success:
            logging.error(f"{APP_NAME} - {read.error}")
            return None
        contents.append(read.content)
    return contents


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line main entry point.

    Returns:
        Exit code (0 clean merge, 1 conflicts remain, 2 input error)
    """
    args = parse_arguments(argv)
    setup_logging(args.log_level, Path(args.log_file) if args.log_file else None)

    merge_settings = load_merge_settings(args)
    service = FileIOService(default_encoding=merge_settings.encoding)

    inputs = _read_inputs(args, service)
    if inputs is None:
        return EXIT_INPUT_ERROR
    base, ours, theirs = inputs

    engine = ThreeWayMergeEngine(merge_settings.to_compare_options())
    result = engine.merge(
        base.content,
        ours.content,
        theirs.content,
        ignore_whitespace=merge_settings.ignore_whitespace,
        file_path=args.ours_path
    )

    session = ResolutionSession(
        result,
        ours_label=merge_settings.ours_label,
        theirs_label=merge_settings.theirs_label
    )
    auto_resolved = session.resolve_all(args.strategy)
    if auto_resolved:
        logging.info(f"{APP_NAME} - Resolved {auto_resolved} conflicts with {args.strategy.name}")

    if args.summary:
        output = format_summary(result, session)
    elif session.is_fully_resolved():
        output = session.merged_content()
    else:
        output = session.display_content(merge_settings.show_base_in_conflicts)

    if args.output_path:
        line_ending = ours.line_ending
        if line_ending in (LineEnding.MIXED, LineEnding.NONE):
            line_ending = LineEnding.LF

        written = service.write_file(
            args.output_path,
            output,
            encoding=ours.encoding,
            line_ending=line_ending,
            bom=ours.bom,
            backup_suffix=merge_settings.backup_extension if merge_settings.create_backup else None
        )
        if not written.success:
            logging.error(f"{APP_NAME} - {written.error}")
            return EXIT_INPUT_ERROR
        logging.info(f"{APP_NAME} - Wrote {written.bytes_written} bytes to {args.output_path}")
    else:
        sys.stdout.write(output)

    if session.unresolved_count:
        logging.warning(f"{APP_NAME} - {session.unresolved_count} unresolved conflicts")
        return EXIT_CONFLICTS
    return EXIT_CLEAN


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == '__main__':
    sys.exit(main())
