"""Comment syntax per language: all the line collector needs to know.

Adding a new language:
  1. Add a CommentSyntax entry to LANGUAGES below.
  2. That's it. ``language_for`` picks it up by extension or file name.
"""

from dataclasses import dataclass, field
from pathlib import PurePosixPath


@dataclass(frozen=True)
class CommentSyntax:
    """Line and block comment markers for one language."""

    name: str
    extensions: tuple[str, ...] = ()
    file_names: tuple[str, ...] = ()
    line_comments: tuple[str, ...] = ()
    # (start, end) pairs
    block_comments: tuple[tuple[str, str], ...] = field(default_factory=tuple)


# ── Re-usable building blocks ──────────────────────────────────────

_C_LINE = ("//",)
_C_BLOCK = (("/*", "*/"),)
_HASH = ("#",)
_DASH = ("--",)
_HTML_BLOCK = (("<!--", "-->"),)


# ── Language definitions ───────────────────────────────────────────

LANGUAGES = {
    "c": CommentSyntax("c", (".c", ".h"), line_comments=_C_LINE, block_comments=_C_BLOCK),
    "cpp": CommentSyntax(
        "cpp",
        (".cc", ".cpp", ".cxx", ".hh", ".hpp", ".hxx"),
        line_comments=_C_LINE,
        block_comments=_C_BLOCK,
    ),
    "csharp": CommentSyntax("csharp", (".cs",), line_comments=_C_LINE, block_comments=_C_BLOCK),
    "go": CommentSyntax("go", (".go",), line_comments=_C_LINE, block_comments=_C_BLOCK),
    "java": CommentSyntax("java", (".java",), line_comments=_C_LINE, block_comments=_C_BLOCK),
    "javascript": CommentSyntax(
        "javascript",
        (".js", ".jsx", ".mjs", ".cjs"),
        line_comments=_C_LINE,
        block_comments=_C_BLOCK,
    ),
    "typescript": CommentSyntax(
        "typescript", (".ts", ".tsx"), line_comments=_C_LINE, block_comments=_C_BLOCK
    ),
    "kotlin": CommentSyntax(
        "kotlin", (".kt", ".kts"), line_comments=_C_LINE, block_comments=_C_BLOCK
    ),
    "rust": CommentSyntax("rust", (".rs",), line_comments=_C_LINE, block_comments=_C_BLOCK),
    "scala": CommentSyntax("scala", (".scala",), line_comments=_C_LINE, block_comments=_C_BLOCK),
    "swift": CommentSyntax("swift", (".swift",), line_comments=_C_LINE, block_comments=_C_BLOCK),
    "dart": CommentSyntax("dart", (".dart",), line_comments=_C_LINE, block_comments=_C_BLOCK),
    "php": CommentSyntax(
        "php", (".php",), line_comments=("//", "#"), block_comments=_C_BLOCK
    ),
    "css": CommentSyntax("css", (".css",), block_comments=_C_BLOCK),
    "scss": CommentSyntax(
        "scss", (".scss", ".less"), line_comments=_C_LINE, block_comments=_C_BLOCK
    ),
    "python": CommentSyntax("python", (".py", ".pyi"), line_comments=_HASH),
    "ruby": CommentSyntax(
        "ruby",
        (".rb", ".rake"),
        file_names=("Gemfile", "Rakefile"),
        line_comments=_HASH,
        block_comments=(("=begin", "=end"),),
    ),
    "shell": CommentSyntax(
        "shell", (".sh", ".bash", ".zsh", ".fish"), line_comments=_HASH
    ),
    "perl": CommentSyntax("perl", (".pl", ".pm"), line_comments=_HASH),
    "r": CommentSyntax("r", (".r", ".R"), line_comments=_HASH),
    "yaml": CommentSyntax("yaml", (".yml", ".yaml"), line_comments=_HASH),
    "toml": CommentSyntax("toml", (".toml",), line_comments=_HASH),
    "make": CommentSyntax(
        "make", (".mk",), file_names=("Makefile", "makefile", "GNUmakefile"), line_comments=_HASH
    ),
    "dockerfile": CommentSyntax("dockerfile", (), file_names=("Dockerfile",), line_comments=_HASH),
    "terraform": CommentSyntax(
        "terraform", (".tf", ".hcl"), line_comments=("#", "//"), block_comments=_C_BLOCK
    ),
    "sql": CommentSyntax("sql", (".sql",), line_comments=_DASH, block_comments=_C_BLOCK),
    "lua": CommentSyntax("lua", (".lua",), line_comments=_DASH, block_comments=(("--[[", "]]"),)),
    "haskell": CommentSyntax(
        "haskell", (".hs",), line_comments=_DASH, block_comments=(("{-", "-}"),)
    ),
    "elixir": CommentSyntax("elixir", (".ex", ".exs"), line_comments=_HASH),
    "erlang": CommentSyntax("erlang", (".erl", ".hrl"), line_comments=("%",)),
    "clojure": CommentSyntax("clojure", (".clj", ".cljs", ".edn"), line_comments=(";",)),
    "html": CommentSyntax("html", (".html", ".htm", ".vue", ".svelte"), block_comments=_HTML_BLOCK),
    "xml": CommentSyntax("xml", (".xml", ".svg", ".xsd"), block_comments=_HTML_BLOCK),
    "markdown": CommentSyntax("markdown", (".md", ".markdown"), block_comments=_HTML_BLOCK),
    "json": CommentSyntax("json", (".json",)),
    "text": CommentSyntax("text", (".txt",)),
}

# Used for anything not matched above: every non-blank line is code
PLAIN = CommentSyntax("plain")

_BY_EXTENSION = {ext: cfg for cfg in LANGUAGES.values() for ext in cfg.extensions}
_BY_NAME = {name: cfg for cfg in LANGUAGES.values() for name in cfg.file_names}


def language_for(path: str) -> CommentSyntax:
    """Pick comment syntax for a repository-relative path."""
    pure = PurePosixPath(path)
    if pure.name in _BY_NAME:
        return _BY_NAME[pure.name]
    if pure.suffix in _BY_EXTENSION:
        return _BY_EXTENSION[pure.suffix]
    return _BY_EXTENSION.get(pure.suffix.lower(), PLAIN)
