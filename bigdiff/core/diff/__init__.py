"""
Diff module for annotating modified text files.

Provides:
- Extension to comment-style lookup
- The line-level diff annotator
"""

from bigdiff.core.diff.comment_styles import (
    comment_style_for,
    DEFAULT_STYLE,
)
from bigdiff.core.diff.text_diff import (
    DiffAnnotator,
    AnnotatedDiff,
    annotate_text_diff,
)

__all__ = [
    # Comment styles
    'comment_style_for',
    'DEFAULT_STYLE',
    # Text diff
    'DiffAnnotator',
    'AnnotatedDiff',
    'annotate_text_diff',
]
