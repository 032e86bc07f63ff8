"""
Forward-only event reader for MediaWiki XML dumps.

This is not an XML parser. It splits the byte stream at '<' / '>' into
start, empty, end and text events, the same way a pull parser would, but
it never validates nesting and never decodes entities. Text events carry
the raw escaped bytes between two tags.

Unlike ElementTree or SAX:
- a malformed region is reported and skipped, the pass keeps going
- text stays in its escaped form, which the link pattern and title maps expect

Architecture:
    file/bz2 bytes -> DumpReader -> StartTag/EmptyTag/EndTag/Text
                                        |
                                        v
                                 pages.PageTracker
"""

import bz2
import re
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Tuple, Union

from .diagnostics import DiagnosticsSink
from .errors import XMLSyntaxError


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class StartTag:
    name: bytes
    attributes: bytes = b""


@dataclass(frozen=True)
class EmptyTag:
    name: bytes
    attributes: bytes = b""


@dataclass(frozen=True)
class EndTag:
    name: bytes


@dataclass(frozen=True)
class Text:
    raw: bytes


Event = Union[StartTag, EmptyTag, EndTag, Text]


# name="value" or name='value'
ATTRIBUTE_PATTERN = re.compile(rb'\s*([^\s=/>]+)\s*=\s*(?:"([^"]*)"|\'([^\']*)\')')
TAG_NAME_PATTERN = re.compile(rb'[^\s/>]+')


def parse_attributes(raw: bytes) -> List[Tuple[bytes, bytes]]:
    """
    Split the attribute part of a tag into (name, raw value) pairs.

    Raises:
        XMLSyntaxError: leftover bytes that are not a well-formed attribute
    """
    pairs = []
    pos = 0
    raw = raw.rstrip()
    while pos < len(raw):
        match = ATTRIBUTE_PATTERN.match(raw, pos)
        if not match:
            raise XMLSyntaxError(f"malformed attribute near {raw[pos:pos + 40]!r}")
        value = match.group(2) if match.group(2) is not None else match.group(3)
        pairs.append((match.group(1), value))
        pos = match.end()
    return pairs


# =============================================================================
# BZ2 streaming
# =============================================================================


class BZ2StreamReader:
    """
    Streaming BZ2 decompressor over one or more concatenated streams.

    Multistream dumps (pages-articles-multistream.xml.bz2) are a series of
    independent bz2 streams; a fresh decompressor is started on whatever
    follows the end of each one.

    Raises:
        EOFError: the file ends in the middle of a stream
    """

    def __init__(self, filepath: Path, chunk_size: int = 256 * 1024):
        self.chunk_size = chunk_size
        self.file = open(filepath, "rb")
        self.decompressor = bz2.BZ2Decompressor()
        self.buffer = b""
        self.in_stream = False

    def read(self, size: int = -1) -> bytes:
        """Read decompressed data."""
        if size == -1:
            while self._decompress_chunk():
                pass
            result = self.buffer
            self.buffer = b""
            return result

        while len(self.buffer) < size and self._decompress_chunk():
            pass

        result = self.buffer[:size]
        self.buffer = self.buffer[size:]
        return result

    def _feed(self, compressed: bytes) -> None:
        self.in_stream = True
        self.buffer += self.decompressor.decompress(compressed)
        if self.decompressor.eof:
            self.in_stream = False

    def _decompress_chunk(self) -> bool:
        """Decompress one more piece; False once the compressed input is exhausted."""
        if self.decompressor.eof:
            leftover = self.decompressor.unused_data
            self.decompressor = bz2.BZ2Decompressor()
            if leftover:
                self._feed(leftover)
                return True

        compressed = self.file.read(self.chunk_size)
        if not compressed:
            if self.in_stream:
                raise EOFError("compressed file ended before the end-of-stream marker")
            return False

        self._feed(compressed)
        return True

    def close(self):
        self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def open_dump(path: Path) -> BinaryIO:
    """Open a dump for binary reading, decompressing .bz2 on the fly."""
    path = Path(path)
    if path.suffix == ".bz2":
        return BZ2StreamReader(path)
    return open(path, "rb")


# =============================================================================
# Tokenizer
# =============================================================================

# (opening marker, closing marker) for constructs that produce no events
SKIPPED_MARKUP = (
    (b"<!--", b"-->"),
    (b"<![CDATA[", b"]]>"),
    (b"<?", b"?>"),
    (b"<!", b">"),
)


class DumpReader:
    """
    Pull-based event stream over a binary file object.

    Reads chunk_size bytes at a time and only keeps the unconsumed tail of
    the buffer, so memory is bounded by the largest single text node.
    I/O errors from the file object propagate unchanged; malformed markup
    is reported to the sink and never raised.

    Usage:
        with open_dump(path) as f:
            for event in DumpReader(f, sink=sink):
                ...
    """

    def __init__(self, file_obj: BinaryIO, sink: DiagnosticsSink, chunk_size: int = 1024 * 1024):
        self.file_obj = file_obj
        self.sink = sink
        self.chunk_size = chunk_size
        self.buffer = bytearray()
        self.pos = 0
        self.offset = 0  # absolute stream offset of buffer[0]
        self.eof = False

    def _fill(self) -> bool:
        """Drop consumed bytes and append one more chunk; False at end of input."""
        if self.eof:
            return False
        if self.pos:
            del self.buffer[:self.pos]
            self.offset += self.pos
            self.pos = 0
        chunk = self.file_obj.read(self.chunk_size)
        if not chunk:
            self.eof = True
            return False
        self.buffer += chunk
        return True

    def _find(self, marker: bytes, start: int) -> int:
        """Find marker at or after buffer index start, reading more input as needed."""
        # start is relative to self.pos so it survives buffer compaction
        relative = start - self.pos
        search_from = start
        while True:
            found = self.buffer.find(marker, search_from)
            if found != -1:
                return found
            scanned = len(self.buffer) - self.pos
            if not self._fill():
                return -1
            search_from = max(self.pos + relative, self.pos + scanned - len(marker) + 1)

    def _syntax_error(self, message: str) -> None:
        self.sink.error(XMLSyntaxError(message, offset=self.offset + self.pos))

    def __iter__(self) -> Iterator[Event]:
        while True:
            if self.pos >= len(self.buffer) and not self._fill():
                return

            lt = self._find(b"<", self.pos)
            if lt == -1:
                tail = bytes(self.buffer[self.pos:])
                self.pos = len(self.buffer)
                if tail:
                    yield Text(tail)
                return

            if lt > self.pos:
                yield Text(bytes(self.buffer[self.pos:lt]))
                self.pos = lt

            event = self._read_markup()
            if event is False:
                return
            if event is not None:
                yield event

    def _read_markup(self):
        """
        Consume one construct starting at '<'.

        Returns an event, None for skipped markup, or False when the input
        ends inside the construct.
        """
        # make sure the longest opening marker is visible before dispatching
        while len(self.buffer) - self.pos < len(b"<![CDATA[") and self._fill():
            pass
        head = bytes(self.buffer[self.pos:self.pos + len(b"<![CDATA[")])

        for opener, closer in SKIPPED_MARKUP:
            if head.startswith(opener):
                end = self._find(closer, self.pos + len(opener))
                if end == -1:
                    self._syntax_error(f"unterminated {opener.decode()} at end of input")
                    self.pos = len(self.buffer)
                    return False
                self.pos = end + len(closer)
                return None

        gt = self._find(b">", self.pos + 1)
        if gt == -1:
            self._syntax_error("unterminated tag at end of input")
            self.pos = len(self.buffer)
            return False

        body = bytes(self.buffer[self.pos + 1:gt])
        self.pos = gt + 1

        if body.startswith(b"/"):
            name = body[1:].strip()
            if not name:
                self._syntax_error("closing tag without a name")
                return None
            return EndTag(name)

        empty = body.endswith(b"/")
        if empty:
            body = body[:-1]
        match = TAG_NAME_PATTERN.match(body)
        if not match:
            self._syntax_error(f"tag without a name: {body[:40]!r}")
            return None
        name = match.group(0)
        attributes = body[match.end():]
        if empty:
            return EmptyTag(name, attributes)
        return StartTag(name, attributes)
