"""Tests for the comment-aware line collector."""

import pytest

from polyglot_scanner.exceptions import UnreadableFile
from polyglot_scanner.scanning.collector import (
    CommentAwareCollector,
    LineData,
    decode,
    line_data,
    split_lines,
)

collector = CommentAwareCollector()


def collect(text: str, path: str):
    return collector.collect(text.encode("utf-8"), path)


class TestLineData:
    def test_spaces_and_tabs_counted_separately(self):
        assert line_data("\t  return x;  ") == LineData(spaces=2, tabs=1, text=9)

    def test_depth_uses_tab_width(self):
        assert LineData(spaces=2, tabs=1, text=1).depth(4) == 6
        assert LineData(spaces=2, tabs=1, text=1).depth(8) == 10


class TestSplitLines:
    def test_crlf_and_missing_final_newline(self):
        assert split_lines("a\r\nb\r\nc") == ["a", "b", "c"]

    def test_trailing_newline_adds_no_line(self):
        assert split_lines("a\n") == ["a"]
        assert split_lines("") == []


class TestDecode:
    def test_utf8_bom(self):
        assert decode(b"\xef\xbb\xbfhi", "a.txt") == "hi"

    def test_utf16_bom(self):
        assert decode("hi".encode("utf-16"), "a.txt") == "hi"

    def test_invalid_utf8_raises(self):
        with pytest.raises(UnreadableFile):
            decode(b"caf\xe9\n", "latin1.txt")


class TestCommentAwareCollector:
    def test_python_counts(self):
        source = "# header\n\nimport os\n\ndef f():\n    # note\n    return 1\n"

        counts = collect(source, "mod.py")

        assert counts.language == "python"
        assert (counts.blank, counts.comment, counts.code) == (2, 2, 3)
        assert [line.spaces for line in counts.lines] == [0, 0, 4]

    def test_c_block_comments_span_lines(self):
        source = "/*\n * doc\n */\nint x; /* trailing\n still comment */\nint y;\n"

        counts = collect(source, "a.c")

        assert (counts.comment, counts.code) == (4, 2)

    def test_code_after_block_close_is_code(self):
        counts = collect("/* a */ int x;\n", "a.c")

        assert (counts.comment, counts.code) == (0, 1)

    def test_lua_block_beats_line_marker(self):
        source = "--[[\nlong comment\n]]\nlocal x = 1\n-- short\n"

        counts = collect(source, "init.lua")

        assert (counts.comment, counts.code) == (4, 1)

    def test_unknown_extension_is_all_code(self):
        counts = collect("# not a comment here\nvalue\n", "data.unknownext")

        assert counts.language == "plain"
        assert counts.code == 2

    def test_file_name_match(self):
        counts = collect("# comment\nall:\n\techo hi\n", "Makefile")

        assert counts.language == "make"
        assert (counts.comment, counts.code) == (1, 2)
        assert counts.lines[1].tabs == 1

    def test_binary_has_no_lines(self):
        counts = collector.collect(b"\x00\x01\x02\x03binary", "blob.bin")

        assert counts.is_binary
        assert counts.total == 0
        assert counts.lines == ()

    def test_invalid_encoding_raises(self):
        with pytest.raises(UnreadableFile):
            collector.collect(b"x = '\xff\xfe'\n", "bad.py")
