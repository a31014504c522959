"""
Comment idioms used to annotate diffs.

Maps a file extension to the comment syntax of its language so deleted and
inserted lines stay valid comments in the annotated output.
"""

from __future__ import annotations

from pathlib import PurePath

from bigdiff.core.models import CommentStyle


SLASH_STYLE = CommentStyle.line_prefix("// ", " // NEW")
HASH_STYLE = CommentStyle.line_prefix("# ", " # NEW")
DASH_STYLE = CommentStyle.line_prefix("-- ", " -- NEW")
PERCENT_STYLE = CommentStyle.line_prefix("% ", " % NEW")
SEMICOLON_STYLE = CommentStyle.line_prefix("; ", " ; NEW")
HTML_STYLE = CommentStyle.block("<!--", "-->", "<!-- NEW -->")
C_BLOCK_STYLE = CommentStyle.block("/*", "*/", "/* NEW */")

DEFAULT_STYLE = HASH_STYLE


def _table(style: CommentStyle, *extensions: str) -> dict[str, CommentStyle]:
    return {ext: style for ext in extensions}


EXTENSION_STYLES: dict[str, CommentStyle] = {
    **_table(SLASH_STYLE,
             ".c", ".h", ".cpp", ".hpp", ".cc", ".java", ".js", ".ts", ".tsx",
             ".cs", ".swift", ".go", ".kt", ".kts", ".scala", ".dart", ".php", ".rs"),
    **_table(HASH_STYLE,
             ".py", ".sh", ".rb", ".r", ".ps1", ".toml", ".yaml", ".yml", ".cfg",
             ".gitignore", ".dockerignore",
             ".txt", ".log", ".conf", ".md",
             ".csv", ".tsv"),
    **_table(DASH_STYLE, ".sql", ".hs", ".lua"),
    **_table(PERCENT_STYLE, ".tex", ".m"),
    **_table(SEMICOLON_STYLE, ".ini"),
    **_table(HTML_STYLE, ".html", ".htm", ".xml", ".xhtml", ".svg"),
    **_table(C_BLOCK_STYLE, ".css", ".scss", ".less", ".json"),
}


def comment_style_for(path: str | PurePath) -> CommentStyle:
    """Comment style for a path, chosen by its lower-cased extension."""
    ext = PurePath(path).suffix.lower()
    return EXTENSION_STYLES.get(ext, DEFAULT_STYLE)
