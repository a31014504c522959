"""
Core data models for the tree comparison engine.

This module defines the data structures shared across the package:
- Scan models
- Comment style models used by the diff annotator
- Run counters and dry-run summaries
- Error types

All models are UI-agnostic and hold no references to open files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Iterator


# =============================================================================
# Enumerations
# =============================================================================

class CommentKind(Enum):
    """Shape of the comment idiom used to annotate a line."""
    LINE_PREFIX = auto()  # Line-oriented languages: '# ', '// ', ...
    BLOCK = auto()        # Block-comment languages: '<!-- -->', '/* */'


class ChangeKind(Enum):
    """Classification of a relative path within one run."""
    SAME = auto()
    NEW = auto()
    DELETED = auto()
    MODIFIED_TEXT = auto()
    MODIFIED_BINARY = auto()


# =============================================================================
# Scan Models
# =============================================================================

@dataclass
class ScanResult:
    """
    Result of scanning one directory tree.

    Relative paths are POSIX-style strings so base and target keys
    compare identically on every platform.
    """
    root: Path
    files: dict[str, Path] = field(default_factory=dict)  # Relative path -> absolute path
    dirs: set[str] = field(default_factory=set)
    errors: list[tuple[str, str]] = field(default_factory=list)  # (path, error message)

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def directory_count(self) -> int:
        return len(self.dirs)

    def iter_files(self) -> Iterator[tuple[str, Path]]:
        """Iterate over files sorted by relative path."""
        for rel_path in sorted(self.files):
            yield rel_path, self.files[rel_path]


# =============================================================================
# Comment Style Models
# =============================================================================

DELETED_LABEL = "DELETED: "


def _split_newline(line: str) -> tuple[str, str]:
    """Split a trailing '\\n' (or a lone '\\r') off a line."""
    if line.endswith('\n'):
        return line[:-1], '\n'
    if line.endswith('\r'):
        return line[:-1], '\r'
    return line, ''


@dataclass(frozen=True)
class CommentStyle:
    """
    Comment idiom used to flag deleted and inserted lines.

    Line-prefix styles use ``prefix`` and ``new_suffix``; block styles use
    ``open``, ``close`` and ``new_block``.
    """
    kind: CommentKind
    prefix: str = ""
    new_suffix: str = ""
    open: str = ""
    close: str = ""
    new_block: str = ""

    @classmethod
    def line_prefix(cls, prefix: str, new_suffix: str) -> 'CommentStyle':
        return cls(kind=CommentKind.LINE_PREFIX, prefix=prefix, new_suffix=new_suffix)

    @classmethod
    def block(cls, open: str, close: str, new_block: str) -> 'CommentStyle':
        return cls(kind=CommentKind.BLOCK, open=open, close=close, new_block=new_block)

    @property
    def is_block(self) -> bool:
        return self.kind == CommentKind.BLOCK

    def deleted_line(self, line: str) -> str:
        """Render a line that exists only in the base file."""
        content, end = _split_newline(line)
        if self.is_block:
            return f"{self.open} {DELETED_LABEL}{content} {self.close}{end}"
        return f"{self.prefix}{DELETED_LABEL}{content}{end}"

    def new_line(self, line: str) -> str:
        """Render a line that exists only in the target file."""
        content, end = _split_newline(line)
        if self.is_block:
            return f"{content} {self.new_block}{end}"
        return f"{content}{self.new_suffix}{end}"


# =============================================================================
# Run Models
# =============================================================================

DEFAULT_MAX_TEXT_SIZE = 5_000_000


@dataclass(frozen=True)
class Options:
    """Read-only configuration for one comparison run."""
    normalize_eol: bool = False
    max_text_size: int = DEFAULT_MAX_TEXT_SIZE
    ignore_patterns: tuple[str, ...] = ()
    dry_run: bool = False


@dataclass
class Counters:
    """Outcome counters for a single comparison run."""
    same: int = 0
    new_files: int = 0
    del_files: int = 0
    mod_text: int = 0
    mod_binary: int = 0
    del_dirs: int = 0

    @property
    def total_changes(self) -> int:
        return self.new_files + self.del_files + self.mod_text + self.mod_binary

    def record(self, kind: ChangeKind) -> None:
        """Increment the counter matching a file classification."""
        if kind == ChangeKind.SAME:
            self.same += 1
        elif kind == ChangeKind.NEW:
            self.new_files += 1
        elif kind == ChangeKind.DELETED:
            self.del_files += 1
        elif kind == ChangeKind.MODIFIED_TEXT:
            self.mod_text += 1
        elif kind == ChangeKind.MODIFIED_BINARY:
            self.mod_binary += 1
        else:
            raise ValueError(f"Unknown change kind: {kind}")

    def as_rows(self) -> list[tuple[str, int]]:
        """Labelled rows for the human-readable summary."""
        return [
            ("Equal (omitted):", self.same),
            ("New (.new):", self.new_files),
            ("Deleted (.deleted):", self.del_files),
            ("Modified text:", self.mod_text),
            ("Modified binary:", self.mod_binary),
            ("Deleted dirs:", self.del_dirs),
        ]


@dataclass(frozen=True)
class DryRunSummary:
    """File counts reported by a dry run."""
    only_base: int
    only_target: int
    common: int

    @classmethod
    def from_scans(cls, base: ScanResult, target: ScanResult) -> 'DryRunSummary':
        base_keys = base.files.keys()
        target_keys = target.files.keys()
        return cls(
            only_base=len(base_keys - target_keys),
            only_target=len(target_keys - base_keys),
            common=len(base_keys & target_keys),
        )


# =============================================================================
# Error Models
# =============================================================================

class BigDiffError(Exception):
    """Base class for errors raised by the comparison engine."""


class ConfigurationError(BigDiffError):
    """Invalid options or roots, detected before any scanning begins."""
