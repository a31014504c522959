"""
Shared fixtures for building small directory trees.
"""

from pathlib import Path
from typing import Callable, Mapping, Optional, Union

import pytest


TreeSpec = Mapping[str, Optional[Union[str, bytes]]]


def build_tree(root: Path, spec: TreeSpec) -> Path:
    """
    Create files and directories under ``root``.

    Keys are '/'-separated relative paths. A ``str`` value is written as
    UTF-8 without newline translation, ``bytes`` are written raw and ``None``
    creates an empty directory.
    """
    root.mkdir(parents=True, exist_ok=True)
    for rel_path, content in spec.items():
        path = root / rel_path
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
    return root


@pytest.fixture
def make_tree(tmp_path) -> Callable[[str, TreeSpec], Path]:
    """Factory building a named tree under the test's temporary directory."""
    def _make(name: str, spec: TreeSpec) -> Path:
        return build_tree(tmp_path / name, spec)
    return _make


@pytest.fixture
def trees(tmp_path):
    """Base, target and (not yet created) output roots."""
    return tmp_path / "base", tmp_path / "target", tmp_path / "out"
