"""
Hashing service for content equality checks.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)


DIGEST_NAME = "sha256"


@dataclass
class HashResult:
    """Result of a hash operation."""
    hash_hex: str
    file_size: int

    def matches(self, other: 'HashResult') -> bool:
        """Check if this hash matches another."""
        return self.hash_hex == other.hash_hex


class HashingService:
    """Service for computing SHA-256 file digests."""

    def __init__(self, chunk_size: int = 65536):
        self.chunk_size = chunk_size

    def hash_file(self, path: Path | str) -> HashResult:
        """
        Compute the digest of a file by streaming its contents.

        Args:
            path: Path to the file

        Returns:
            HashResult with the computed digest

        Raises:
            OSError: If the file cannot be opened or read
        """
        hasher = hashlib.new(DIGEST_NAME)

        file_size = 0
        with open(path, 'rb') as f:
            while chunk := f.read(self.chunk_size):
                hasher.update(chunk)
                file_size += len(chunk)

        return HashResult(hash_hex=hasher.hexdigest(), file_size=file_size)

    def compare_files_by_hash(self, path1: Path | str, path2: Path | str) -> bool:
        """
        Compare two files by digest.

        A file that cannot be opened or read makes the pair unequal, so a
        changed file is never mistaken for an unchanged one.
        """
        try:
            hash1 = self.hash_file(path1)
            hash2 = self.hash_file(path2)
        except OSError as e:
            logger.debug(f"HashingService - Treating {path1} and {path2} as different: {e}")
            return False
        return hash1.matches(hash2)


def files_equal(path1: Path | str, path2: Path | str) -> bool:
    """Byte-exact equality of two files via SHA-256 digests."""
    return HashingService().compare_files_by_hash(path1, path2)
