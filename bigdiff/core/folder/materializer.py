"""
Tree comparison and materialization engine.

Compares two directory trees and writes every difference into an output
tree:
- Files only in target become ``<rel>.new``
- Files only in base become ``<rel>.deleted``
- Directories only in base are copied once per deleted subtree
- Modified text files become annotated diffs, ``<rel>.modified``
- Modified binary or oversized files are copied raw with a provenance note
- Identical files produce nothing
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Callable, Optional

from bigdiff.core.diff.comment_styles import comment_style_for
from bigdiff.core.diff.text_diff import DiffAnnotator
from bigdiff.core.folder.scanner import PathClassifier, TreeScanner, normalize_rel_path
from bigdiff.core.models import ChangeKind, Counters, DryRunSummary, Options, ScanResult
from bigdiff.services.file_io import (
    DELETED_MARKER,
    MODIFIED_MARKER,
    NEW_MARKER,
    NOTE_SUFFIX,
    avoid_collision,
    copy_file,
    deleted_tree_path,
    is_probably_binary,
    prepare_destination,
    with_marker,
    write_text,
)
from bigdiff.services.hashing import HashingService


logger = logging.getLogger(__name__)


@dataclass
class MaterializeProgress:
    """Progress of a materialization run."""
    phase: str  # 'scanning', 'deleted_dirs', 'deleted_files', 'new_files', 'common'
    current_path: str
    items_processed: int
    total_items: int


def collapse_deleted_dirs(base_dirs: set[str], target_dirs: set[str]) -> list[str]:
    """
    Directories missing from target, reduced to the shallowest heads.

    A directory nested under an already-kept head is dropped so each deleted
    subtree is materialized once.
    """
    deleted = base_dirs - target_dirs
    heads: list[str] = []
    for rel_dir in sorted(deleted, key=lambda d: (len(PurePath(d).parts), d)):
        parts = PurePath(rel_dir).parts
        if not any(parts[:len(PurePath(head).parts)] == PurePath(head).parts for head in heads):
            heads.append(rel_dir)
    return heads


def build_note(base_file: Path, target_file: Path, size: int) -> str:
    """Provenance note for a modified file copied without a diff."""
    return (
        "File treated as binary or too large for line diff.\n"
        f"Base origin (A): {base_file}\n"
        f"Target origin (B): {target_file}\n"
        f"Size: {size} bytes\n"
        "Strategy: direct copy from target to '.modified'.\n"
    )


class ChangeMaterializer:
    """
    Compares a base and a target tree and materializes the differences.

    One instance may run several comparisons; each run gets its own Counters.
    """

    def __init__(
        self,
        options: Optional[Options] = None,
        hashing: Optional[HashingService] = None
    ):
        self.options = options or Options()
        self.hashing = hashing or HashingService()
        self._progress_callback: Optional[Callable[[MaterializeProgress], None]] = None

    def scan(self, base_root: Path, target_root: Path) -> tuple[ScanResult, ScanResult]:
        """Scan both roots concurrently; the scans share no state."""
        classifier = PathClassifier(self.options.ignore_patterns)

        with ThreadPoolExecutor(max_workers=2) as executor:
            base_future = executor.submit(TreeScanner(classifier).scan, base_root)
            target_future = executor.submit(TreeScanner(classifier).scan, target_root)
            base_scan = base_future.result()
            target_scan = target_future.result()

        return base_scan, target_scan

    def dry_run(self, base_root: Path | str, target_root: Path | str) -> DryRunSummary:
        """Scan both roots and count what a real run would touch."""
        base_scan, target_scan = self.scan(Path(base_root), Path(target_root))
        return DryRunSummary.from_scans(base_scan, target_scan)

    def run(
        self,
        base_root: Path | str,
        target_root: Path | str,
        out_root: Path | str,
        progress_callback: Optional[Callable[[MaterializeProgress], None]] = None
    ) -> Counters:
        """
        Compare two trees and write the differences under ``out_root``.

        Args:
            base_root: Base (before) directory
            target_root: Target (after) directory
            out_root: Existing output directory
            progress_callback: Called with progress updates

        Returns:
            Counters for this run

        Raises:
            OSError: On a failed write outside deleted-subtree copying
        """
        base_root = Path(base_root)
        target_root = Path(target_root)
        out_root = Path(out_root)
        self._progress_callback = progress_callback

        counters = Counters()

        self._report_progress('scanning', '', 0, 0)
        base_scan, target_scan = self.scan(base_root, target_root)

        heads = collapse_deleted_dirs(base_scan.dirs, target_scan.dirs)
        logger.info(f"ChangeMaterializer - {len(heads)} deleted director{'y' if len(heads) == 1 else 'ies'}")

        processed: set[str] = set()
        for i, head in enumerate(heads, start=1):
            self._report_progress('deleted_dirs', head, i, len(heads))
            processed |= self._copy_deleted_tree(head, base_scan, out_root, counters)

        deleted_files = sorted(
            rel for rel in base_scan.files
            if rel not in target_scan.files and rel not in processed
        )
        for i, rel_path in enumerate(deleted_files, start=1):
            self._report_progress('deleted_files', rel_path, i, len(deleted_files))
            self._copy_marked(base_scan.files[rel_path], out_root / rel_path, DELETED_MARKER)
            counters.record(ChangeKind.DELETED)

        new_files = sorted(rel for rel in target_scan.files if rel not in base_scan.files)
        for i, rel_path in enumerate(new_files, start=1):
            self._report_progress('new_files', rel_path, i, len(new_files))
            self._copy_marked(target_scan.files[rel_path], out_root / rel_path, NEW_MARKER)
            counters.record(ChangeKind.NEW)

        common_files = sorted(base_scan.files.keys() & target_scan.files.keys())
        for i, rel_path in enumerate(common_files, start=1):
            self._report_progress('common', rel_path, i, len(common_files))
            kind = self._materialize_common(
                rel_path,
                base_scan.files[rel_path],
                target_scan.files[rel_path],
                out_root
            )
            counters.record(kind)

        logger.info(
            f"ChangeMaterializer - Done: {counters.same} same, {counters.new_files} new, "
            f"{counters.del_files} deleted, {counters.mod_text} modified text, "
            f"{counters.mod_binary} modified binary, {counters.del_dirs} deleted dirs"
        )
        return counters

    def _copy_deleted_tree(
        self,
        head: str,
        base_scan: ScanResult,
        out_root: Path,
        counters: Counters
    ) -> set[str]:
        """
        Copy everything still present under a deleted head, best effort.

        Returns:
            Relative paths of every file visited under the head
        """
        processed: set[str] = set()
        head_abs = base_scan.root / head

        def on_walk_error(error: OSError) -> None:
            logger.warning(f"ChangeMaterializer - Cannot read {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(head_abs, topdown=True,
                                                    followlinks=False,
                                                    onerror=on_walk_error):
            current_path = Path(dirpath)
            dirnames.sort()
            rel_dir = normalize_rel_path(current_path.relative_to(base_scan.root))
            if rel_dir == head:
                counters.del_dirs += 1

            dest_dir = out_root / deleted_tree_path(rel_dir, head)
            try:
                dest_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning(f"ChangeMaterializer - Cannot create {dest_dir}: {e}")

            for filename in sorted(filenames):
                source = current_path / filename
                rel_path = f"{rel_dir}/{filename}"
                processed.add(rel_path)

                if not source.is_file() or source.is_symlink():
                    continue

                try:
                    destination = prepare_destination(out_root / deleted_tree_path(rel_path, head))
                    copy_file(source, destination)
                except OSError as e:
                    logger.warning(f"ChangeMaterializer - Skipping deleted file {rel_path}: {e}")
                    continue

                counters.del_files += 1
                logger.debug(f"ChangeMaterializer - Deleted (subtree): {rel_path} -> {destination}")

        return processed

    def _copy_marked(self, source: Path, destination: Path, marker: str) -> Path:
        """Copy a file to ``destination`` with ``marker`` appended to its name."""
        destination = prepare_destination(with_marker(destination, marker))
        copy_file(source, destination)
        logger.debug(f"ChangeMaterializer - {marker.lstrip('.').capitalize()}: {source} -> {destination}")
        return destination

    def _materialize_common(
        self,
        rel_path: str,
        base_file: Path,
        target_file: Path,
        out_root: Path
    ) -> ChangeKind:
        """Compare a file present in both trees and write its artifact if it changed."""
        if self.hashing.compare_files_by_hash(base_file, target_file):
            return ChangeKind.SAME

        style = comment_style_for(rel_path)
        destination = prepare_destination(with_marker(out_root / rel_path, MODIFIED_MARKER))

        size = target_file.stat().st_size
        if is_probably_binary(target_file) or size > self.options.max_text_size:
            copy_file(target_file, destination)
            write_text(
                avoid_collision(with_marker(destination, NOTE_SUFFIX)),
                build_note(base_file, target_file, size)
            )
            logger.debug(f"ChangeMaterializer - Modified (copy): {rel_path} -> {destination}")
            return ChangeKind.MODIFIED_BINARY

        annotated = DiffAnnotator(style, self.options.normalize_eol).compare_files(base_file, target_file)
        write_text(destination, annotated.text)
        logger.debug(
            f"ChangeMaterializer - Modified (diff): {rel_path} -> {destination} "
            f"(+{annotated.statistics.added_lines} -{annotated.statistics.removed_lines})"
        )
        return ChangeKind.MODIFIED_TEXT

    def _report_progress(
        self,
        phase: str,
        current_path: str,
        processed: int,
        total: int
    ) -> None:
        """Report progress to callback."""
        if self._progress_callback:
            self._progress_callback(MaterializeProgress(
                phase=phase,
                current_path=current_path,
                items_processed=processed,
                total_items=total,
            ))


def run_bigdiff(
    base_root: Path | str,
    target_root: Path | str,
    out_root: Path | str,
    options: Optional[Options] = None
) -> Counters:
    """Run one comparison and return its counters."""
    return ChangeMaterializer(options).run(base_root, target_root, out_root)
