"""
Text file diff annotator.

Produces a fully materialized annotated file rather than a unified diff:
the target text with every inserted line flagged and every removed base
line re-inserted (commented out) at its original position.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from bigdiff.core.models import CommentStyle
from bigdiff.services.file_io import read_text_best_effort, split_lines_preserve_endings


@dataclass
class DiffStatistics:
    """Line counts for one annotated diff."""
    total_lines_left: int = 0
    total_lines_right: int = 0
    added_lines: int = 0
    removed_lines: int = 0
    unchanged_lines: int = 0

    @property
    def total_changes(self) -> int:
        return self.added_lines + self.removed_lines


@dataclass
class AnnotatedDiff:
    """Annotated text plus the statistics gathered while producing it."""
    text: str
    statistics: DiffStatistics


class DiffAnnotator:
    """
    Annotates the line-level difference between two text files.

    Equal runs are copied verbatim, deleted runs are rendered with the
    style's deleted-line form and inserted runs with its new-line marker.
    """

    def __init__(self, style: CommentStyle, normalize_eol: bool = False):
        self.style = style
        self.normalize_eol = normalize_eol

    def annotate(self, path_a: Path | str, path_b: Path | str) -> str:
        """Annotated text for two files on disk."""
        return self.compare_files(path_a, path_b).text

    def compare_files(self, path_a: Path | str, path_b: Path | str) -> AnnotatedDiff:
        """
        Decode both files and annotate their difference.

        Raises:
            OSError: If either file cannot be read
        """
        a_text = read_text_best_effort(path_a, self.normalize_eol)
        b_text = read_text_best_effort(path_b, self.normalize_eol)
        return self.compare_text(a_text, b_text)

    def compare_text(self, a_text: str, b_text: str) -> AnnotatedDiff:
        """Annotate the difference between two decoded texts."""
        return self.compare_lines(
            split_lines_preserve_endings(a_text),
            split_lines_preserve_endings(b_text),
        )

    def compare_lines(
        self,
        left_lines: Sequence[str],
        right_lines: Sequence[str]
    ) -> AnnotatedDiff:
        """
        Annotate two line sequences whose lines keep their terminators.

        The common prefix and suffix are copied without matching, so only
        the changed middle section reaches the sequence matcher.
        """
        left = list(left_lines)
        right = list(right_lines)

        stats = DiffStatistics(
            total_lines_left=len(left),
            total_lines_right=len(right),
        )

        prefix = self._common_prefix_length(left, right)
        suffix = self._common_suffix_length(left[prefix:], right[prefix:])
        left_middle = left[prefix:len(left) - suffix]
        right_middle = right[prefix:len(right) - suffix]

        output: list[str] = left[:prefix]
        stats.unchanged_lines += prefix

        for tag, i1, i2, j1, j2 in self._get_opcodes(left_middle, right_middle):
            if tag == 'equal':
                output.extend(left_middle[i1:i2])
                stats.unchanged_lines += i2 - i1
            elif tag == 'delete':
                self._emit_removed(output, left_middle[i1:i2], stats)
            elif tag == 'insert':
                self._emit_added(output, right_middle[j1:j2], stats)
            elif tag == 'replace':
                # Removed base lines first, then their replacements
                self._emit_removed(output, left_middle[i1:i2], stats)
                self._emit_added(output, right_middle[j1:j2], stats)

        output.extend(left[len(left) - suffix:])
        stats.unchanged_lines += suffix

        return AnnotatedDiff(text=''.join(output), statistics=stats)

    def _emit_removed(
        self,
        output: list[str],
        lines: Sequence[str],
        stats: DiffStatistics
    ) -> None:
        output.extend(self.style.deleted_line(line) for line in lines)
        stats.removed_lines += len(lines)

    def _emit_added(
        self,
        output: list[str],
        lines: Sequence[str],
        stats: DiffStatistics
    ) -> None:
        output.extend(self.style.new_line(line) for line in lines)
        stats.added_lines += len(lines)

    @staticmethod
    def _common_prefix_length(left: list[str], right: list[str]) -> int:
        n = 0
        for a, b in zip(left, right):
            if a != b:
                break
            n += 1
        return n

    @staticmethod
    def _common_suffix_length(left: list[str], right: list[str]) -> int:
        n = 0
        for a, b in zip(reversed(left), reversed(right)):
            if a != b:
                break
            n += 1
        return n

    @staticmethod
    def _get_opcodes(left: list[str], right: list[str]):
        """Get diff opcodes for two line lists."""
        if not left and not right:
            return []
        matcher = difflib.SequenceMatcher(None, left, right)
        return matcher.get_opcodes()


def annotate_text_diff(
    path_a: Path | str,
    path_b: Path | str,
    style: CommentStyle,
    normalize_eol: bool = False
) -> str:
    """Annotated diff of two files using ``style``."""
    return DiffAnnotator(style, normalize_eol).annotate(path_a, path_b)
