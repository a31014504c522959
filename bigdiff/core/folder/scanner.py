"""
Directory scanner for tree comparison.

Provides a single-pass, symlink-safe directory traversal with:
- Fixed default exclusions (VCS metadata, interpreter caches, OS marker files)
- User glob patterns matched against the relative path or the bare name
- Pre-descent pruning of ignored directories
- Error resilience (unreadable or vanishing entries are skipped)
"""

from __future__ import annotations

import fnmatch
import logging
import os
import stat
from pathlib import Path, PurePath
from typing import Iterable, Optional, Sequence

from bigdiff.core.models import ConfigurationError, ScanResult


logger = logging.getLogger(__name__)


# Final path components that are always excluded.
DEFAULT_IGNORED_NAMES = frozenset({
    '.git',
    '__pycache__',
    '.DS_Store',
    'Thumbs.db',
})


def normalize_rel_path(rel_path: str | PurePath) -> str:
    """Return a relative path with '/' separators."""
    return str(rel_path).replace(os.sep, '/').replace('\\', '/')


def validate_pattern(pattern: str) -> str:
    """
    Check that a glob pattern is well formed.

    Rejects empty patterns, unterminated character classes, runs of three or
    more '*' and '**' that does not form a whole path component.

    Returns:
        The pattern unchanged

    Raises:
        ConfigurationError: If the pattern is invalid
    """
    if not pattern or not pattern.strip():
        raise ConfigurationError("Invalid glob pattern: empty pattern")

    if '***' in pattern:
        raise ConfigurationError(
            f"Invalid glob pattern: {pattern} (wildcards are either '*' or '**')"
        )

    for component in pattern.split('/'):
        if '**' in component and component != '**':
            raise ConfigurationError(
                f"Invalid glob pattern: {pattern} "
                "('**' must form a single path component)"
            )

    i = 0
    while i < len(pattern):
        if pattern[i] == '[':
            j = i + 1
            if j < len(pattern) and pattern[j] == '!':
                j += 1
            # A ']' right after '[' or '[!' is part of the set
            if j < len(pattern) and pattern[j] == ']':
                j += 1
            close = pattern.find(']', j)
            if close == -1:
                raise ConfigurationError(
                    f"Invalid glob pattern: {pattern} (unterminated character class)"
                )
            i = close
        i += 1

    return pattern


def is_ignored(rel_path: str | PurePath, patterns: Sequence[str] = ()) -> bool:
    """
    Decide whether a relative path is excluded from a scan.

    The path is ignored if its final component is one of the default names,
    or if the '/'-normalized path or its bare name matches any pattern.
    """
    s_rel = normalize_rel_path(rel_path)
    name = s_rel.rstrip('/').rsplit('/', 1)[-1]

    if name in DEFAULT_IGNORED_NAMES:
        return True

    for pattern in patterns:
        if fnmatch.fnmatchcase(s_rel, pattern) or fnmatch.fnmatchcase(name, pattern):
            return True

    return False


class PathClassifier:
    """
    Ignore policy for relative paths.

    Holds a validated, ordered set of user patterns. Never touches the
    filesystem, so the policy can be tested on plain strings.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        unique: list[str] = []
        for pattern in patterns:
            validate_pattern(pattern)
            if pattern not in unique:
                unique.append(pattern)
        self._patterns = tuple(unique)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def classify(self, rel_path: str | PurePath) -> bool:
        """Return True if the path is ignored."""
        return is_ignored(rel_path, self._patterns)

    __call__ = classify


class TreeScanner:
    """
    Scans a directory tree into a ScanResult.

    Symbolic links are never followed nor recorded. Ignored directories are
    pruned before descent so their contents are never listed.
    """

    def __init__(self, classifier: Optional[PathClassifier] = None):
        self.classifier = classifier or PathClassifier()

    def scan(self, root: Path | str) -> ScanResult:
        """
        Scan a directory tree.

        Args:
            root: Root directory to scan

        Returns:
            ScanResult with all surviving files and directories
        """
        root = Path(root)
        result = ScanResult(root=root)

        def on_walk_error(error: OSError) -> None:
            rel_path = self._relative(error.filename, root) if error.filename else "unknown"
            result.errors.append((rel_path, f"Access error: {error.strerror}"))
            logger.debug(f"TreeScanner - Skipping unreadable entry {rel_path}: {error}")

        for dirpath, dirnames, filenames in os.walk(root, topdown=True,
                                                    followlinks=False,
                                                    onerror=on_walk_error):
            current_path = Path(dirpath)

            kept_dirs = []
            for dirname in sorted(dirnames):
                dir_full_path = current_path / dirname
                rel_path = self._relative(dir_full_path, root)

                if self.classifier.classify(rel_path):
                    continue
                if os.path.islink(dir_full_path):
                    continue

                kept_dirs.append(dirname)
                result.dirs.add(rel_path)

            # Prune in place to control recursion
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                file_full_path = current_path / filename
                rel_path = self._relative(file_full_path, root)

                if self.classifier.classify(rel_path):
                    continue

                try:
                    mode = os.lstat(file_full_path).st_mode
                except OSError as e:
                    result.errors.append((rel_path, str(e)))
                    logger.debug(f"TreeScanner - Skipping vanished file {rel_path}: {e}")
                    continue

                if stat.S_ISREG(mode):
                    result.files[rel_path] = file_full_path

        logger.info(
            f"TreeScanner - Scanned {root}: {result.file_count} files, "
            f"{result.directory_count} directories, {len(result.errors)} skipped"
        )
        return result

    @staticmethod
    def _relative(path: str | Path, root: Path) -> str:
        try:
            return normalize_rel_path(Path(path).relative_to(root))
        except ValueError:
            return normalize_rel_path(path)


def scan_dir(root: Path | str, patterns: Sequence[str] = ()) -> ScanResult:
    """Scan ``root`` with the given ignore patterns."""
    return TreeScanner(PathClassifier(patterns)).scan(root)
