"""
Main entry point for the BigDiff command line tool.

This module handles:
- Command line argument parsing
- Logging configuration
- Configuration file loading
- Root validation
- Running the comparison and printing the summary
- Exit codes
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Optional, List, TextIO

from bigdiff import __version__
from bigdiff.core.folder.materializer import ChangeMaterializer, MaterializeProgress
from bigdiff.core.models import BigDiffError, ConfigurationError, Counters, DryRunSummary, Options
from bigdiff.services.settings import SettingsManager, build_options


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "bigdiff"
APP_DISPLAY_NAME = "BigDiff"


class ExitCode(IntEnum):
    """Process exit codes."""
    OK = 0
    RUNTIME_ERROR = 1
    CONFIG_ERROR = 2


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    base_dir: str = ""
    target_dir: str = ""
    output_dir: str = ""
    ignore: list[str] = field(default_factory=list)
    normalize_eol: bool = False
    max_text_size: Optional[str] = None
    dry_run: bool = False
    config_file: Optional[str] = None
    log_level: str = "WARNING"
    log_file: Optional[str] = None


@dataclass(frozen=True)
class Roots:
    """Canonical roots for one run."""
    base: Path
    target: Path
    output: Path


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

    def __init__(self, use_colors: bool = True, stream: Optional[TextIO] = None):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    # Console handler; stdout is reserved for the summary
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True, stream=sys.stderr))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    return root_logger


class ProgressLogger:
    """Logs materialization progress: phase totals at INFO, each item at DEBUG."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def __call__(self, progress: MaterializeProgress) -> None:
        if progress.phase == 'scanning':
            self.logger.info("Progress - Scanning base and target")
            return

        self.logger.debug(
            f"Progress - {progress.phase} {progress.items_processed}/{progress.total_items}: "
            f"{progress.current_path}"
        )
        if progress.items_processed == progress.total_items:
            self.logger.info(f"Progress - {progress.phase}: {progress.total_items} done")


# =============================================================================
# Command Line Parsing
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Materialize the differences between two directory trees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s release-1.0 release-1.1 changes         Compare two releases
  %(prog)s a b out -i '*.log,build' -i node_modules Skip logs and build dirs
  %(prog)s a b out -E -S 1MiB                      Normalize EOL, diff up to 1 MiB
  %(prog)s a b out --dry-run                       Count changes without writing
        """
    )

    # Positional arguments
    parser.add_argument('base_dir', help='Base directory (A)')
    parser.add_argument('target_dir', help='Target directory (B)')
    parser.add_argument('output_dir', help='Output directory (differences)')

    # Comparison options
    parser.add_argument(
        '-i', '--ignore',
        action='append',
        default=[],
        metavar='PATTERN',
        help='Glob pattern to ignore (repeatable, comma separated)'
    )
    parser.add_argument(
        '-E', '--normalize-eol',
        action='store_true',
        help='Normalize EOL (CRLF/CR to LF) before text comparison'
    )
    parser.add_argument(
        '-S', '--max-text-size',
        default=None,
        metavar='SIZE',
        help='Max target size for a text diff, e.g. 5MB, 512KiB, 102400 (default: 5MB)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Do not write anything; only print what would be done'
    )

    # Configuration
    parser.add_argument(
        '-c', '--config',
        help='JSON file with default options'
    )

    # Logging
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=None,
        help='Log level (default: WARNING)'
    )
    parser.add_argument(
        '--log-file',
        help='Also write log records to this file'
    )

    # Version
    parser.add_argument(
        '--version',
        action='version',
        version=f'{APP_NAME} {__version__}'
    )

    return parser


def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parsed = build_parser().parse_args(args)

    result = CommandLineArgs(
        base_dir=parsed.base_dir,
        target_dir=parsed.target_dir,
        output_dir=parsed.output_dir,
        ignore=list(parsed.ignore),
        normalize_eol=parsed.normalize_eol,
        max_text_size=parsed.max_text_size,
        dry_run=parsed.dry_run,
        config_file=parsed.config,
        log_file=parsed.log_file,
    )

    if parsed.log_level:
        result.log_level = parsed.log_level
    elif parsed.verbose:
        result.log_level = 'INFO'

    return result


def load_options(args: CommandLineArgs) -> Options:
    """Combine the config file and command line into run options."""
    config_path = Path(args.config_file) if args.config_file else None
    settings = SettingsManager(config_path).load().merged_with(
        ignore=args.ignore,
        normalize_eol=args.normalize_eol,
        max_text_size=args.max_text_size,
        dry_run=args.dry_run,
    )
    return build_options(settings)


# =============================================================================
# Root Validation
# =============================================================================

def _canonical_dir(path: str, label: str) -> Path:
    try:
        resolved = Path(path).resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise ConfigurationError(f"Invalid {label}: {path} ({e})") from e
    if not resolved.is_dir():
        raise ConfigurationError(f"Invalid {label}: {path} is not a directory")
    return resolved


def _is_within(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


def validate_roots(
    base_dir: str,
    target_dir: str,
    output_dir: str,
    create_output: bool = True
) -> Roots:
    """
    Canonicalize and check the three roots.

    The output directory is created when missing unless ``create_output``
    is False.

    Raises:
        ConfigurationError: On invalid or colliding roots
    """
    base = _canonical_dir(base_dir, "base_dir")
    target = _canonical_dir(target_dir, "target_dir")

    if base == target:
        raise ConfigurationError("base_dir and target_dir cannot be the same directory.")

    output = Path(output_dir)
    if output.exists():
        output = output.resolve()
        if not output.is_dir():
            raise ConfigurationError(f"output_dir exists and is not a directory: {output}")
        if _is_within(output, base) or _is_within(output, target):
            raise ConfigurationError(
                "output_dir cannot be inside base_dir/target_dir nor be equal to them."
            )
    else:
        output = output.resolve()
        if _is_within(output, base) or _is_within(output, target):
            raise ConfigurationError(
                "output_dir cannot be inside base_dir/target_dir nor be equal to them."
            )
        if create_output:
            try:
                output.mkdir(parents=True)
            except OSError as e:
                raise ConfigurationError(f"Cannot create output_dir {output}: {e}") from e

    return Roots(base=base, target=target, output=output)


# =============================================================================
# Summary
# =============================================================================

def print_dry_run(summary: DryRunSummary, out: Optional[TextIO] = None) -> None:
    """Print the dry-run counts."""
    out = out or sys.stdout
    print("== DRY RUN ==", file=out)
    print(f"Files only in Base (would be deleted): {summary.only_base}", file=out)
    print(f"Files only in Target (would be new): {summary.only_target}", file=out)
    print(f"Common files (would be checked): {summary.common}", file=out)


def print_summary(counters: Counters, output_dir: Path, out: Optional[TextIO] = None) -> None:
    """Print the run summary."""
    out = out or sys.stdout
    print(f"== {APP_DISPLAY_NAME}: Summary ==", file=out)
    for label, value in counters.as_rows():
        print(f"{label:<22}{value}", file=out)
    print(f"{'Output at:':<22}{output_dir}", file=out)


# =============================================================================
# Main
# =============================================================================

def _fail(message: str, code: ExitCode) -> int:
    print(f"{APP_NAME}: error: {message}", file=sys.stderr)
    return int(code)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line tool.

    Returns:
        Process exit code
    """
    args = parse_arguments(argv)
    setup_logging(args.log_level, Path(args.log_file) if args.log_file else None)
    logger = logging.getLogger(APP_NAME)

    try:
        options = load_options(args)
        roots = validate_roots(
            args.base_dir,
            args.target_dir,
            args.output_dir,
            create_output=not options.dry_run
        )
    except ConfigurationError as e:
        logger.debug("Configuration error", exc_info=True)
        return _fail(str(e), ExitCode.CONFIG_ERROR)

    materializer = ChangeMaterializer(options)

    if options.dry_run:
        print_dry_run(materializer.dry_run(roots.base, roots.target))
        return int(ExitCode.OK)

    try:
        counters = materializer.run(
            roots.base,
            roots.target,
            roots.output,
            progress_callback=ProgressLogger(logger)
        )
    except (OSError, BigDiffError) as e:
        logger.error(f"Comparison aborted: {e}", exc_info=logger.isEnabledFor(logging.DEBUG))
        return _fail(str(e), ExitCode.RUNTIME_ERROR)

    print_summary(counters, roots.output)
    return int(ExitCode.OK)


if __name__ == "__main__":
    sys.exit(main())
