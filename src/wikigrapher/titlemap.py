#!/usr/bin/env python3
"""
titlemap.py - First pass: page titles <-> page ids, plus redirects.

Reads:
  - a MediaWiki XML dump (.xml or .xml.bz2)

Produces a TitleMapping with three tables:
  - title_to_id:        canonical title -> page id
  - id_to_title:        page id -> canonical title (exact inverse)
  - redirect_to_target: redirect page title -> title it points to

Redirect pages never appear in title_to_id. Targets are stored as written
in the redirect; they are not followed any further.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .config import BuildConfig, DEFAULT_CONFIG
from .diagnostics import DiagnosticsSink, LoggingSink
from .errors import TitleEncodingError
from .normalize import process_title
from .pages import PageRecord, read_pages


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TitleMapping:
    """Result of the title pass; read-only input to the graph pass."""

    title_to_id: Dict[str, int] = field(default_factory=dict)
    id_to_title: Dict[int, str] = field(default_factory=dict)
    redirect_to_target: Dict[str, str] = field(default_factory=dict)

    def resolve(self, title: str) -> Optional[int]:
        """
        Look up the page id a canonical title refers to.

        Tries a direct hit first, then exactly one redirect hop. A redirect
        pointing at another redirect resolves to None.
        """
        page_id = self.title_to_id.get(title)
        if page_id is not None:
            return page_id

        target = self.redirect_to_target.get(title)
        if target is None:
            return None
        return self.title_to_id.get(target)

    def summary(self) -> str:
        return (f"{len(self.title_to_id):,} titles, "
                f"{len(self.redirect_to_target):,} redirects")


class TitleMappingBuilder:
    """
    Accumulates a TitleMapping one PageRecord at a time.

    Duplicate titles or ids are last-write-wins; the older pairing is
    removed from both directions so the two tables stay exact inverses.
    """

    def __init__(self, sink: Optional[DiagnosticsSink] = None):
        self.sink = sink if sink is not None else LoggingSink()
        self.title_to_id: Dict[str, int] = {}
        self.id_to_title: Dict[int, str] = {}
        self.redirect_to_target: Dict[str, str] = {}
        self.skipped_pages = 0

    def add_page(self, page: PageRecord) -> None:
        if page.redirect is None and page.page_id is None:
            return

        if page.title is None:
            self.sink.warning(f"page without <title> (id {page.page_id}) skipped")
            self.skipped_pages += 1
            return

        try:
            title = process_title(page.title)
            if page.redirect is not None:
                self._add_redirect(title, process_title(page.redirect))
            else:
                self._add_article(title, page.page_id)
        except TitleEncodingError as e:
            self.sink.error(e)
            self.skipped_pages += 1

    def _add_redirect(self, title: str, target: str) -> None:
        self.redirect_to_target[title] = target

        old_id = self.title_to_id.pop(title, None)
        if old_id is not None:
            del self.id_to_title[old_id]

    def _add_article(self, title: str, page_id: int) -> None:
        old_title = self.id_to_title.get(page_id)
        if old_title is not None and old_title != title:
            del self.title_to_id[old_title]

        old_id = self.title_to_id.get(title)
        if old_id is not None and old_id != page_id:
            del self.id_to_title[old_id]

        self.id_to_title[page_id] = title
        self.title_to_id[title] = page_id
        # A title can't be both an article and a redirect; the newest page wins
        self.redirect_to_target.pop(title, None)

    def finish(self) -> TitleMapping:
        return TitleMapping(
            title_to_id=self.title_to_id,
            id_to_title=self.id_to_title,
            redirect_to_target=self.redirect_to_target,
        )


def build_title_mapping(
    dump_path: Path,
    sink: Optional[DiagnosticsSink] = None,
    config: BuildConfig = DEFAULT_CONFIG,
) -> TitleMapping:
    """
    Run the title pass over a dump.

    Raises:
        DumpIOError: the dump could not be opened or read
    """
    if sink is None:
        sink = LoggingSink()

    logger.info(f"Building title mapping from {dump_path}")
    builder = TitleMappingBuilder(sink)
    for page in read_pages(dump_path, sink=sink, config=config):
        builder.add_page(page)

    mapping = builder.finish()
    logger.info(f"Title mapping complete: {mapping.summary()}")
    if builder.skipped_pages:
        logger.info(f"  {builder.skipped_pages:,} pages skipped")
    return mapping
