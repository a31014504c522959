"""
Text Diff Annotator Tests
=========================
"""

import time

import pytest

from bigdiff.core.diff.comment_styles import HASH_STYLE, HTML_STYLE, SLASH_STYLE
from bigdiff.core.diff.text_diff import DiffAnnotator, annotate_text_diff
from bigdiff.core.models import DELETED_LABEL


@pytest.fixture
def annotator():
    return DiffAnnotator(HASH_STYLE)


def split_superposition(text: str, style=HASH_STYLE):
    """Recover base and target texts from an annotated line-prefix diff."""
    deleted_prefix = style.prefix + DELETED_LABEL
    base, target = [], []
    for line in text.splitlines(keepends=True):
        body = line.rstrip("\n")
        end = line[len(body):]
        if line.startswith(deleted_prefix):
            base.append(line[len(deleted_prefix):])
        elif body.endswith(style.new_suffix):
            target.append(body[:-len(style.new_suffix)] + end)
        else:
            base.append(line)
            target.append(line)
    return "".join(base), "".join(target)


class TestAnnotation:
    """Annotated output shape."""

    def test_appended_line(self, annotator):
        result = annotator.compare_text("hello\n", "hello\nworld\n")

        assert result.text == "hello\nworld # NEW\n"
        assert result.statistics.added_lines == 1
        assert result.statistics.removed_lines == 0
        assert result.statistics.unchanged_lines == 1

    def test_removed_line(self, annotator):
        result = annotator.compare_text("a\nb\nc\n", "a\nc\n")

        assert result.text == "a\n# DELETED: b\nc\n"
        assert result.statistics.removed_lines == 1

    def test_replaced_line_deletes_first(self, annotator):
        result = annotator.compare_text("a\nb\nc\n", "a\nB\nc\n")

        assert result.text == "a\n# DELETED: b\nB # NEW\nc\n"
        assert result.statistics.total_changes == 2

    def test_identical_text_copied_verbatim(self, annotator):
        result = annotator.compare_text("x\ny", "x\ny")

        assert result.text == "x\ny"
        assert result.statistics.total_changes == 0

    def test_last_line_without_newline(self, annotator):
        result = annotator.compare_text("a\nb", "a\n")

        assert result.text == "a\n# DELETED: b"

    def test_block_style(self):
        result = DiffAnnotator(HTML_STYLE).compare_text("<p>a</p>\n", "<p>b</p>\n")

        assert result.text == "<!-- DELETED: <p>a</p> -->\n<p>b</p> <!-- NEW -->\n"

    def test_empty_base(self, annotator):
        assert annotator.compare_text("", "one\ntwo\n").text == "one # NEW\ntwo # NEW\n"

    def test_statistics_line_totals(self, annotator):
        stats = annotator.compare_text("a\nb\n", "a\nb\nc\nd\n").statistics

        assert stats.total_lines_left == 2
        assert stats.total_lines_right == 4


class TestSuperposition:
    """The annotation keeps every line of both inputs, in order."""

    @pytest.mark.parametrize("base,target", [
        ("a\nb\nc\n", "a\nc\nd\n"),
        ("one\ntwo\nthree\nfour\n", "zero\ntwo\nfour\nfive\n"),
        ("x\n" * 5, "x\ny\n" * 3),
        ("same\n", "same\n"),
        ("", "only target\n"),
        ("only base\n", ""),
    ])
    def test_base_and_target_recoverable(self, annotator, base, target):
        text = annotator.compare_text(base, target).text

        assert split_superposition(text) == (base, target)


class TestFiles:
    """Reading from disk."""

    def test_compare_files_normalizes_eol_when_asked(self, tmp_path):
        a = tmp_path / "a.txt"
        b = tmp_path / "b.txt"
        a.write_bytes(b"a\r\nb\r\n")
        b.write_bytes(b"a\nb\n")

        assert DiffAnnotator(HASH_STYLE, normalize_eol=True).annotate(a, b) == "a\nb\n"
        assert DiffAnnotator(HASH_STYLE).annotate(a, b) == (
            "# DELETED: a\r\n# DELETED: b\r\na # NEW\nb # NEW\n"
        )

    def test_cp1252_input_is_diffed(self, tmp_path):
        a = tmp_path / "a.c"
        b = tmp_path / "b.c"
        a.write_bytes(b"caf\xe9;\n")
        b.write_bytes(b"caf\xe9;\ntea;\n")

        assert annotate_text_diff(a, b, SLASH_STYLE) == "café;\ntea; // NEW\n"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            DiffAnnotator(HASH_STYLE).compare_files(tmp_path / "nope", tmp_path / "nope2")


class TestLineEndings:
    """Lone carriage returns end lines too."""

    def test_cr_only_files_diff_per_line(self, annotator):
        result = annotator.compare_text("a\rb\rc\r", "a\rB\rc\r")

        assert result.text == "a\r# DELETED: b\rB # NEW\rc\r"
        assert result.statistics.unchanged_lines == 2

    def test_undefined_cp1252_bytes_survive_in_deleted_lines(self, tmp_path):
        a = tmp_path / "a.txt"
        b = tmp_path / "b.txt"
        a.write_bytes(b"caf\xe9 \x81\x8d\x8f\x90\x9d\nkeep\n")
        b.write_bytes(b"keep\n")

        text = DiffAnnotator(HASH_STYLE).annotate(a, b)

        assert text == "# DELETED: café \x81\x8d\x8f\x90\x9d\nkeep\n"


class TestLargeInputs:
    """Large files with many repeated lines diff in bounded time."""

    @staticmethod
    def _source(triples: int, edit_every: int = 0) -> str:
        lines = []
        for i in range(triples):
            value = f"changed_{i}" if edit_every and i % edit_every == edit_every // 2 else str(i)
            lines.append(f"    result_{i} = compute({value})\n")
            lines.append("}\n")
            lines.append("\n")
        return "".join(lines)

    def test_megabyte_file_with_scattered_edits(self, annotator):
        triples = 30_000
        base = self._source(triples)
        target = self._source(triples, edit_every=500)
        edits = triples // 500
        assert len(target) > 1_000_000

        started = time.perf_counter()
        result = annotator.compare_text(base, target)
        elapsed = time.perf_counter() - started

        assert elapsed < 60
        assert result.statistics.removed_lines == edits
        assert result.statistics.added_lines == edits
        assert split_superposition(result.text) == (base, target)

    def test_common_prefix_and_suffix_copied(self, annotator):
        base = "same\n" * 1000 + "old\n" + "tail\n" * 1000
        target = "same\n" * 1000 + "new\n" + "tail\n" * 1000

        result = annotator.compare_text(base, target)

        assert result.statistics.unchanged_lines == 2000
        assert result.text == "same\n" * 1000 + "# DELETED: old\nnew # NEW\n" + "tail\n" * 1000
