"""
Folder comparison module.

Provides functionality for:
- Directory scanning with ignore patterns
- Change classification between two trees
- Materializing differences into an output tree
"""

from bigdiff.core.folder.scanner import (
    PathClassifier,
    TreeScanner,
    is_ignored,
    scan_dir,
    validate_pattern,
)
from bigdiff.core.folder.materializer import (
    ChangeMaterializer,
    MaterializeProgress,
    collapse_deleted_dirs,
    run_bigdiff,
)

__all__ = [
    # Scanner
    'PathClassifier',
    'TreeScanner',
    'is_ignored',
    'scan_dir',
    'validate_pattern',
    # Materializer
    'ChangeMaterializer',
    'MaterializeProgress',
    'collapse_deleted_dirs',
    'run_bigdiff',
]
