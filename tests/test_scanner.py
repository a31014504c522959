"""
Scanner Tests
=============
Ignore policy, pattern validation and directory traversal.
"""

import os

import pytest

from bigdiff.core.folder.scanner import (
    PathClassifier,
    TreeScanner,
    is_ignored,
    normalize_rel_path,
    scan_dir,
    validate_pattern,
)
from bigdiff.core.models import ConfigurationError


# ============================================================================
# Ignore policy
# ============================================================================

class TestIsIgnored:
    """Default exclusions and user patterns."""

    @pytest.mark.parametrize("rel_path", [
        ".git",
        "src/.git",
        "pkg/__pycache__",
        "photos/.DS_Store",
        "Thumbs.db",
    ])
    def test_default_names_always_ignored(self, rel_path):
        assert is_ignored(rel_path)

    def test_default_names_match_whole_component_only(self):
        assert not is_ignored("docs/.gitignore")
        assert not is_ignored("my__pycache__")

    def test_pattern_matches_bare_name(self):
        assert is_ignored("deep/tree/node_modules", ["node_modules"])

    def test_pattern_matches_relative_path(self):
        assert is_ignored("build/out/app.o", ["build/*"])

    def test_pattern_glob_on_extension(self):
        assert is_ignored("logs/today.log", ["*.log"])
        assert not is_ignored("logs/today.txt", ["*.log"])

    def test_matching_is_case_sensitive(self):
        assert not is_ignored("README.MD", ["*.md"])

    def test_backslash_paths_are_normalized(self):
        assert normalize_rel_path("a\\b\\c.txt") == "a/b/c.txt"
        assert is_ignored("a\\b\\skip.tmp", ["a/b/*.tmp"])


class TestValidatePattern:
    """Malformed globs are configuration errors."""

    @pytest.mark.parametrize("pattern", ["*.log", "**/build", "build/**", "[ab]*", "[!x]y", "[]]"])
    def test_valid_patterns(self, pattern):
        assert validate_pattern(pattern) == pattern

    @pytest.mark.parametrize("pattern", ["", "   ", "a[b", "***", "a**b", "src/x**"])
    def test_invalid_patterns(self, pattern):
        with pytest.raises(ConfigurationError):
            validate_pattern(pattern)

    def test_classifier_rejects_invalid_pattern(self):
        with pytest.raises(ConfigurationError):
            PathClassifier(["ok", "bad["])

    def test_classifier_deduplicates_in_order(self):
        classifier = PathClassifier(["*.log", "tmp", "*.log"])
        assert classifier.patterns == ("*.log", "tmp")
        assert classifier("x/tmp")
        assert not classifier("x/keep.txt")


# ============================================================================
# Traversal
# ============================================================================

class TestTreeScanner:
    """Scanning real directory trees."""

    def test_scan_collects_files_and_dirs(self, make_tree):
        root = make_tree("tree", {
            "a.txt": "a",
            "src/main.py": "print()",
            "src/pkg/mod.py": "",
            "empty": None,
        })

        result = scan_dir(root)

        assert set(result.files) == {"a.txt", "src/main.py", "src/pkg/mod.py"}
        assert result.dirs == {"src", "src/pkg", "empty"}
        assert result.files["src/pkg/mod.py"] == root / "src" / "pkg" / "mod.py"
        assert result.errors == []

    def test_ignored_directories_are_pruned(self, make_tree):
        root = make_tree("tree", {
            ".git/config": "x",
            "build/out/app.o": "x",
            "keep/file.txt": "x",
        })

        result = scan_dir(root, ["build"])

        assert set(result.files) == {"keep/file.txt"}
        assert result.dirs == {"keep"}

    def test_ignored_files_are_skipped(self, make_tree):
        root = make_tree("tree", {"a.log": "x", "b.txt": "x", "sub/c.log": "x"})

        result = scan_dir(root, ["*.log"])

        assert set(result.files) == {"b.txt"}
        assert result.dirs == {"sub"}

    def test_symlinks_are_not_recorded(self, make_tree):
        root = make_tree("tree", {"real/file.txt": "x", "plain.txt": "y"})
        try:
            os.symlink(root / "real", root / "dir_link")
            os.symlink(root / "plain.txt", root / "file_link.txt")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")

        result = TreeScanner().scan(root)

        assert set(result.files) == {"real/file.txt", "plain.txt"}
        assert result.dirs == {"real"}

    def test_iter_files_is_sorted(self, make_tree):
        root = make_tree("tree", {"b.txt": "", "a/z.txt": "", "a.txt": ""})

        result = scan_dir(root)

        assert [rel for rel, _ in result.iter_files()] == sorted(result.files)
        assert result.file_count == 3
        assert result.directory_count == 1
