"""Binary/text classification from a file's leading bytes."""

from __future__ import annotations

import codecs
from typing import Protocol

# Bytes inspected per file
SNIFF_BYTES = 8192

_TEXT_BOMS = (
    codecs.BOM_UTF8,
    codecs.BOM_UTF32_LE,
    codecs.BOM_UTF32_BE,
    codecs.BOM_UTF16_LE,
    codecs.BOM_UTF16_BE,
)

# Formats that start with printable bytes but are not source text
_BINARY_MAGIC = (b"%PDF-", b"\x89PNG", b"GIF8", b"PK\x03\x04")


class ContentSniffer(Protocol):
    """Classifies a byte prefix as binary or text."""

    def is_binary(self, prefix: bytes) -> bool: ...


class NullByteSniffer:
    """Treat content as binary when its prefix contains a NUL byte.

    A unicode byte-order mark marks text even though UTF-16/32 content is
    full of NULs; a handful of well-known magic numbers mark binary.
    """

    def __init__(self, sniff_bytes: int = SNIFF_BYTES):
        self.sniff_bytes = sniff_bytes

    def is_binary(self, prefix: bytes) -> bool:
        head = prefix[: self.sniff_bytes]
        if head.startswith(_BINARY_MAGIC):
            return True
        if head.startswith(_TEXT_BOMS):
            return False
        return b"\x00" in head


DEFAULT_SNIFFER = NullByteSniffer()
