"""
Title normalization.

Turns raw title bytes (from <title>, <redirect title="..."> or a wikilink
target) into the canonical string used as a key in the title mapping:

    1. every run of spaces/underscores becomes a single space
    2. trim: "^ ?(title) $" - a leading space is dropped only when the
       string also ends in exactly one space; otherwise nothing is trimmed
    3. an ASCII lowercase first letter is uppercased (non-ASCII untouched)
    4. the result must be valid UTF-8

Step 2 is asymmetric and must stay that way: both passes, and any title
map saved earlier, rely on the same canonical form.
"""

import re

from .errors import TitleEncodingError


SPACE_PATTERN = re.compile(r'[ _]+')
TRIM_PATTERN = re.compile(r'^ ?(?P<title>[^ ].*[^ ]) \Z')


def process_title(raw_title: bytes) -> str:
    """
    Normalize raw title bytes into a canonical title.

    The patterns run on code points, not bytes, so multi-byte characters
    count as one character in the trim rule. Invalid bytes survive the
    pattern steps as surrogates and are rejected at the end.

    Raises:
        TitleEncodingError: raw_title is not valid UTF-8
    """
    title = raw_title.decode('utf-8', 'surrogateescape')
    title = SPACE_PATTERN.sub(' ', title)
    title = TRIM_PATTERN.sub(r'\g<title>', title, count=1)

    if title and 'a' <= title[0] <= 'z':
        title = title[0].upper() + title[1:]

    try:
        return title.encode('utf-8', 'surrogateescape').decode('utf-8')
    except UnicodeDecodeError as e:
        raise TitleEncodingError(raw_title, e) from e
