"""Line collector: blank/comment/code counts and per-line indentation.

This is the collaborator boundary the file metrics builder talks to. The
default ``CommentAwareCollector`` is a lightweight line classifier driven
by ``languages.LANGUAGES``; it does not parse, so string literals that
contain comment markers can be misclassified.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from typing import Optional, Protocol

from ..exceptions import UnreadableFile
from .languages import CommentSyntax, language_for
from .sniffer import DEFAULT_SNIFFER, ContentSniffer


@dataclass(frozen=True)
class LineData:
    """Leading whitespace and visible width of one code line."""

    spaces: int
    tabs: int
    text: int  # characters after the indentation, trailing whitespace trimmed

    def depth(self, tab_width: int) -> int:
        """Indentation depth in columns."""
        return self.spaces + self.tabs * tab_width


@dataclass(frozen=True)
class LineCounts:
    """Collector output for one file."""

    language: str
    is_binary: bool = False
    blank: int = 0
    comment: int = 0
    code: int = 0
    lines: tuple[LineData, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return self.blank + self.comment + self.code


class LineCollector(Protocol):
    """Turns raw file bytes into line counts."""

    def collect(self, data: bytes, path: str) -> LineCounts: ...


def line_data(line: str) -> LineData:
    """Measure leading spaces/tabs and the remaining visible text."""
    spaces = 0
    tabs = 0
    for ix, ch in enumerate(line):
        if ch == " ":
            spaces += 1
        elif ch == "\t":
            tabs += 1
        else:
            return LineData(spaces=spaces, tabs=tabs, text=len(line[ix:].strip()))
    return LineData(spaces=spaces, tabs=tabs, text=0)


def decode(data: bytes, path: str) -> str:
    """Decode file bytes, honouring a unicode BOM, else strict UTF-8.

    Raises:
        UnreadableFile: If the bytes are not valid in the detected encoding
    """
    encoding = "utf-8"
    if data.startswith(codecs.BOM_UTF8):
        encoding = "utf-8-sig"
    elif data.startswith((codecs.BOM_UTF32_LE, codecs.BOM_UTF32_BE)):
        encoding = "utf-32"
    elif data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        encoding = "utf-16"
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        raise UnreadableFile(path, f"Encoding error ({encoding}): {e.reason} at byte {e.start}")


def split_lines(text: str) -> list[str]:
    """Split on newlines only (no form-feed or other unicode breaks)."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class CommentAwareCollector:
    """Classify lines as blank, comment or code using comment markers."""

    def __init__(self, sniffer: Optional[ContentSniffer] = None):
        self.sniffer = sniffer or DEFAULT_SNIFFER

    def collect(self, data: bytes, path: str) -> LineCounts:
        syntax = language_for(path)
        if self.sniffer.is_binary(data):
            return LineCounts(language=syntax.name, is_binary=True)

        text = decode(data, path)
        blank = comment = code = 0
        lines: list[LineData] = []
        open_block: Optional[str] = None  # end marker of an unterminated block comment

        for raw in split_lines(text):
            stripped = raw.strip()
            if not stripped:
                blank += 1
                continue

            is_code, open_block = self._classify(stripped, syntax, open_block)
            if is_code:
                code += 1
                lines.append(line_data(raw))
            else:
                comment += 1

        return LineCounts(
            language=syntax.name,
            blank=blank,
            comment=comment,
            code=code,
            lines=tuple(lines),
        )

    def _classify(
        self, stripped: str, syntax: CommentSyntax, open_block: Optional[str]
    ) -> tuple[bool, Optional[str]]:
        """Return (is_code, end marker still open after this line)."""
        rest = stripped
        if open_block is not None:
            end = rest.find(open_block)
            if end < 0:
                return False, open_block
            rest = rest[end + len(open_block):].strip()
            open_block = None

        # Peel off leading comments; anything left over is code
        # Block markers are tested first: lua's "--[[" also starts with "--"
        while rest:
            for start, finish in syntax.block_comments:
                if rest.startswith(start):
                    end = rest.find(finish, len(start))
                    if end < 0:
                        return False, finish
                    rest = rest[end + len(finish):].strip()
                    break
            else:
                if syntax.line_comments and rest.startswith(syntax.line_comments):
                    return False, None
                return True, self._trailing_block(rest, syntax)
        return False, None

    @staticmethod
    def _trailing_block(code: str, syntax: CommentSyntax) -> Optional[str]:
        """End marker if a block comment opens after code and stays open."""
        for start, finish in syntax.block_comments:
            ix = code.rfind(start)
            if ix >= 0 and code.find(finish, ix + len(start)) < 0:
                return finish
        return None


DEFAULT_COLLECTOR = CommentAwareCollector()
