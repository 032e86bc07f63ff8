"""
Page state machine shared by both passes.

Turns DumpReader events into one PageRecord per <page> element. The
"currently inside" state is kept as explicit per-page flags rather than a
tag stack, so a stray or missing close tag only costs the current page:

    <page>                  in_page = True
      <title>..</title>     in_title while open, first text event kept
      <redirect title=".."/>
      <id>..</id>           in_id while open, first text event kept
      <revision>
        <id>..</id>         ignored: the page already has its first id
        <text>..</text>     in_text while open, text appended
      </revision>
    </page>                 record handed over, everything reset
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .config import BuildConfig, DEFAULT_CONFIG
from .diagnostics import DiagnosticsSink, LoggingSink
from .errors import DumpIOError, PageIdError, TitleEncodingError, XMLSyntaxError
from .reader import DumpReader, EmptyTag, EndTag, Event, StartTag, Text, open_dump, parse_attributes


logger = logging.getLogger(__name__)

ID_PATTERN = re.compile(r'\+?[0-9]+')

# Elements whose open/close state is tracked; anything else is ignored
TRACKED_ELEMENTS = (b"title", b"id", b"text")


@dataclass(frozen=True)
class PageRecord:
    """Everything the builders need from one <page> element."""

    page_id: Optional[int] = None
    title: Optional[bytes] = None
    redirect: Optional[bytes] = None
    text: bytes = b""


def parse_page_id(raw: bytes) -> int:
    """
    Parse <id> text as an unsigned decimal integer.

    Raises:
        TitleEncodingError: raw is not valid UTF-8
        PageIdError: raw is not a number
    """
    try:
        id_str = raw.decode('utf-8')
    except UnicodeDecodeError as e:
        raise TitleEncodingError(raw, e) from e

    if not ID_PATTERN.fullmatch(id_str):
        raise PageIdError(raw)
    return int(id_str)


class PageTracker:
    """
    Accumulates events for the current page.

    feed() returns a finished PageRecord when the event closes a page and
    None otherwise. Structural problems go to the sink as warnings.
    """

    def __init__(self, sink: DiagnosticsSink):
        self.sink = sink
        self.reset()

    def reset(self) -> None:
        self.in_page = False
        self.in_title = False
        self.in_id = False
        self.in_text = False

        self.page_id: Optional[int] = None
        self.id_seen = False
        self.title: Optional[bytes] = None
        self.redirect: Optional[bytes] = None
        self.text_parts = []

    def feed(self, event: Event) -> Optional[PageRecord]:
        if isinstance(event, Text):
            self._on_text(event.raw)
        elif isinstance(event, StartTag):
            self._on_start(event.name, event.attributes)
        elif isinstance(event, EmptyTag):
            self._on_empty(event.name, event.attributes)
        elif isinstance(event, EndTag):
            return self._on_end(event.name)
        return None

    def _on_start(self, name: bytes, attributes: bytes) -> None:
        if name == b"page":
            if self.in_page:
                self.sink.warning("<page> opened inside another <page>")
            self.in_page = True
        elif name in TRACKED_ELEMENTS:
            if not self.in_page:
                self.sink.warning(f"<{name.decode(errors='replace')}> without parent <page>")
                return
            setattr(self, f"in_{name.decode()}", True)
        elif name == b"redirect":
            # <redirect title="..."></redirect> is accepted like the empty form
            self._on_empty(name, attributes)

    def _on_empty(self, name: bytes, attributes: bytes) -> None:
        if name != b"redirect":
            return
        if not self.in_page:
            self.sink.warning("<redirect /> without parent <page>")
            return
        try:
            pairs = parse_attributes(attributes)
        except XMLSyntaxError as e:
            self.sink.warning(f"malformed <redirect /> attribute: {e}")
            return
        for key, value in pairs:
            if key == b"title":
                self.redirect = value

    def _on_text(self, raw: bytes) -> None:
        if self.in_title and self.title is None:
            self.title = raw

        if self.in_id and not self.id_seen:
            self.id_seen = True
            try:
                self.page_id = parse_page_id(raw)
            except (PageIdError, TitleEncodingError) as e:
                self.sink.error(e)

        if self.in_text:
            self.text_parts.append(raw)

    def _on_end(self, name: bytes) -> Optional[PageRecord]:
        if name == b"page":
            if not self.in_page:
                self.sink.warning("closing </page> tag when not in <page>")
            record = PageRecord(
                page_id=self.page_id,
                title=self.title,
                redirect=self.redirect,
                text=b"".join(self.text_parts),
            )
            self.reset()
            return record

        if name in TRACKED_ELEMENTS:
            flag = f"in_{name.decode()}"
            if not getattr(self, flag):
                tag = name.decode()
                self.sink.warning(f"closing </{tag}> tag when not in <{tag}>")
            setattr(self, flag, False)
        return None


def iter_pages(
    events: Iterable[Event],
    sink: DiagnosticsSink,
    page_log_interval: int = DEFAULT_CONFIG.page_log_interval,
) -> Iterator[PageRecord]:
    """Group an event stream into PageRecords, reporting progress as it goes."""
    tracker = PageTracker(sink)
    processed_pages = 0

    for event in events:
        record = tracker.feed(event)
        if record is None:
            continue
        processed_pages += 1
        if processed_pages % page_log_interval == 0:
            sink.progress("pages processed", processed_pages)
        yield record

    if tracker.in_page:
        sink.warning("dump ended inside an unclosed <page>")
    logger.info(f"processed a total of {processed_pages:,} pages")


def read_pages(
    dump_path: Path,
    sink: Optional[DiagnosticsSink] = None,
    config: BuildConfig = DEFAULT_CONFIG,
) -> Iterator[PageRecord]:
    """
    Stream PageRecords from a dump file (.xml or .xml.bz2).

    The file is closed on every exit path, including when the consumer
    stops iterating early.

    Raises:
        DumpIOError: the dump could not be opened or read
    """
    if sink is None:
        sink = LoggingSink()

    try:
        file_obj = open_dump(dump_path)
    except OSError as e:
        raise DumpIOError(dump_path, e) from e

    with file_obj as f:
        reader = DumpReader(f, sink=sink, chunk_size=config.chunk_size)
        try:
            yield from iter_pages(reader, sink, config.page_log_interval)
        except (OSError, EOFError) as e:
            raise DumpIOError(dump_path, e) from e
