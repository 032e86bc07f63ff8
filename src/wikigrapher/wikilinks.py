"""
Wikilink extraction from raw article text.

Handles the four link shapes found in article bodies:

    [[target]]
    [[target|alias]]
    [[target#section]]
    [[target#section|alias]]

Section anchors and aliases are discarded; only the target bytes are
returned, still escaped exactly as they appear in the dump. Upstream entity
decoding sometimes leaves NUL bytes between the brackets ("[\\x00[...]\\x00]"),
so those are tolerated as padding.

An alias runs to the last "]]" on its line, so "[[A|x]] and [[B]]" yields
only A.
"""

import re
from typing import Iterator, Optional

from .diagnostics import DiagnosticsSink


LINK_PATTERN = re.compile(
    rb'\[\x00*\['
    rb'(?P<target>[^|#\]]*)'
    rb'(?:#[^|\]]*)?'
    rb'(?:\|.*)?'
    rb'\]\x00*\]'
)

UNTITLED_LINK_WARNING = "found wikilink with no title"


def iter_link_targets(text: bytes, sink: Optional[DiagnosticsSink] = None) -> Iterator[bytes]:
    """
    Yield raw link targets in order of appearance.

    Matches never overlap. A link with an empty target ("[[#Section]]",
    "[[|x]]") is reported to the sink as a link with no title and skipped.
    """
    for match in LINK_PATTERN.finditer(text):
        target = match.group('target')
        if not target:
            if sink is not None:
                sink.warning(UNTITLED_LINK_WARNING)
            continue
        yield target


class WikilinkExtractor:
    """
    Restartable view over the link targets of one text block.

    Each iteration rescans the text, so the same extractor can be walked
    more than once without materializing the targets.

    Example:
        >>> list(WikilinkExtractor(b"[[Apple Inc]] and [[Apple|fruit]]"))
        [b'Apple Inc', b'Apple']
    """

    def __init__(self, text: bytes, sink: Optional[DiagnosticsSink] = None):
        self.text = text
        self.sink = sink

    def __iter__(self) -> Iterator[bytes]:
        return iter_link_targets(self.text, self.sink)
