"""
File I/O service for reading inputs and writing output artifacts.

Handles:
- Binary sniffing
- Best-effort text decoding with a legacy code page fallback
- Line ending normalization
- Output naming markers and collision avoidance
"""

from __future__ import annotations

import codecs
import logging
import re
import shutil
from pathlib import Path, PurePath


logger = logging.getLogger(__name__)


# Markers appended to output artifact names
NEW_MARKER = ".new"
DELETED_MARKER = ".deleted"
MODIFIED_MARKER = ".modified"
NOTE_SUFFIX = ".NOTE.txt"

BINARY_CHECK_SIZE = 4096

_LINE_BREAK = re.compile(r"(\r\n|\r|\n)")

# Error handler name for the legacy code page fallback
DECODE_ERRORS = "bigdiff.undefined_as_latin1"


def is_probably_binary(path: Path | str, check_size: int = BINARY_CHECK_SIZE) -> bool:
    """
    Sniff the first bytes of a file to guess whether it is binary.

    Unreadable files count as binary and empty files as text. Otherwise a NUL
    byte or an invalid UTF-8 sample means binary.
    """
    try:
        with open(path, 'rb') as f:
            chunk = f.read(check_size)
    except OSError:
        return True  # Assume binary on error

    if not chunk:
        return False

    if b'\x00' in chunk:
        return True

    try:
        chunk.decode('utf-8', errors='strict')
    except UnicodeDecodeError:
        return True

    return False


def normalize_line_endings(content: str) -> str:
    """Rewrite CRLF and lone CR to LF."""
    return content.replace('\r\n', '\n').replace('\r', '\n')


def _undefined_bytes_as_latin1(error: UnicodeError) -> tuple[str, int]:
    """Map bytes the code page leaves undefined to the same code point."""
    if not isinstance(error, UnicodeDecodeError):
        raise error
    undefined = error.object[error.start:error.end]
    return ''.join(chr(b) for b in undefined), error.end


codecs.register_error(DECODE_ERRORS, _undefined_bytes_as_latin1)


def decode_best_effort(raw_content: bytes, fallback_encoding: str = 'cp1252') -> str:
    """
    Decode bytes as UTF-8, falling back to a single-byte code page.

    Every byte maps to a character, the five bytes cp1252 leaves undefined
    (0x81, 0x8D, 0x8F, 0x90, 0x9D) to U+0081 and so on, so this never fails
    and never loses a byte.
    """
    try:
        return raw_content.decode('utf-8')
    except UnicodeDecodeError:
        return raw_content.decode(fallback_encoding, errors=DECODE_ERRORS)


def read_text_best_effort(path: Path | str, normalize_eol: bool = False) -> str:
    """
    Read a whole file as text.

    Raises:
        OSError: If the file cannot be read
    """
    content = decode_best_effort(Path(path).read_bytes())
    if normalize_eol:
        content = normalize_line_endings(content)
    return content


def split_lines_preserve_endings(content: str) -> list[str]:
    """
    Split into lines that keep their terminators.

    '\\r\\n', '\\n' and a lone '\\r' each end a line; the last line may have
    no terminator.
    """
    pieces = _LINE_BREAK.split(content)
    result = [pieces[i] + pieces[i + 1] for i in range(0, len(pieces) - 1, 2)]
    if pieces[-1]:
        result.append(pieces[-1])
    return result


def with_marker(path: Path, marker: str) -> Path:
    """Append a marker to the final component of a path."""
    return path.with_name(path.name + marker)


def deleted_tree_path(rel_path: str, head: str) -> PurePath:
    """
    Map a path inside a deleted subtree to its output location.

    Components above ``head`` are kept, while the head and everything below it
    get the deleted marker. A file name therefore carries the marker once.
    """
    head_parts = PurePath(head).parts
    parts = PurePath(rel_path).parts
    if parts[:len(head_parts)] != head_parts:
        raise ValueError(f"{rel_path} is not inside deleted directory {head}")

    keep = len(head_parts) - 1
    decorated = [
        part if i < keep else part + DELETED_MARKER
        for i, part in enumerate(parts)
    ]
    return PurePath(*decorated)


def avoid_collision(path: Path) -> Path:
    """
    Return ``path`` if it is free, else the first free ``stem (n).suffix``.
    """
    if not path.exists():
        return path

    stem = path.stem
    suffix = path.suffix
    parent = path.parent

    n = 1
    while True:
        candidate = parent / f"{stem} ({n}){suffix}"
        if not candidate.exists():
            return candidate
        n += 1


def prepare_destination(path: Path) -> Path:
    """Create the parent directory and resolve collisions for an output file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    return avoid_collision(path)


def copy_file(source: Path | str, destination: Path | str) -> int:
    """
    Copy file contents and return the number of bytes copied.

    Raises:
        OSError: If the copy fails
    """
    shutil.copyfile(source, destination)
    return Path(destination).stat().st_size


def write_text(path: Path | str, content: str, encoding: str = 'utf-8') -> int:
    """Write text without newline translation and return bytes written."""
    encoded = content.encode(encoding)
    Path(path).write_bytes(encoded)
    return len(encoded)

