#!/usr/bin/env python3
"""
graph.py - Second pass: page-to-page link graph.

Reads:
  - a MediaWiki XML dump (.xml or .xml.bz2)
  - the TitleMapping built from the same dump by titlemap.py

Produces a LinkGraph: source page id -> set of destination page ids.

Every [[wikilink]] in a page body is normalized and resolved through the
title mapping (direct title, else one redirect hop). Links that resolve
nowhere are counted as bad edges and dropped; only every Nth one is
reported so a full dump doesn't flood the log.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Set

from .config import BuildConfig, DEFAULT_CONFIG
from .diagnostics import DiagnosticsSink, LoggingSink
from .errors import DanglingLinkError, TitleEncodingError
from .normalize import process_title
from .pages import PageRecord, read_pages
from .titlemap import TitleMapping
from .wikilinks import UNTITLED_LINK_WARNING, iter_link_targets


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkGraph:
    """Adjacency sets keyed by source page id. Nodes are implicit."""

    edges: Dict[int, FrozenSet[int]] = field(default_factory=dict)

    def successors(self, page_id: int) -> FrozenSet[int]:
        return self.edges.get(page_id, frozenset())

    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.edges.values())

    def node_count(self) -> int:
        nodes = set(self.edges)
        for targets in self.edges.values():
            nodes.update(targets)
        return len(nodes)

    def __len__(self) -> int:
        return len(self.edges)


@dataclass
class GraphStats:
    """Counters kept for observability only."""

    pages_processed: int = 0
    pages_linked: int = 0
    good_edges: int = 0
    bad_edges: int = 0
    untitled_links: int = 0


class _CountingSink:
    """Wraps a sink to count 'no title' link warnings from the extractor."""

    def __init__(self, sink: DiagnosticsSink, stats: GraphStats):
        self.sink = sink
        self.stats = stats

    def warning(self, message: str) -> None:
        if message == UNTITLED_LINK_WARNING:
            self.stats.untitled_links += 1
        self.sink.warning(message)

    def error(self, error) -> None:
        self.sink.error(error)

    def progress(self, name: str, count: int) -> None:
        self.sink.progress(name, count)


class LinkGraphBuilder:
    """
    Accumulates a LinkGraph one PageRecord at a time.

    The title mapping is only read, never modified.
    """

    def __init__(
        self,
        title_mapping: TitleMapping,
        sink: Optional[DiagnosticsSink] = None,
        edge_log_interval: int = DEFAULT_CONFIG.edge_log_interval,
    ):
        self.title_mapping = title_mapping
        self.sink = sink if sink is not None else LoggingSink()
        self.edge_log_interval = edge_log_interval
        self.edges: Dict[int, Set[int]] = {}
        self.stats = GraphStats()
        self._link_sink = _CountingSink(self.sink, self.stats)

    def add_page(self, page: PageRecord) -> None:
        self.stats.pages_processed += 1
        if not page.text:
            return
        if page.page_id is None:
            self.sink.warning("text with no page id")
            return

        source_id = page.page_id
        linked = False
        for raw_target in iter_link_targets(page.text, self._link_sink):
            try:
                target = process_title(raw_target)
            except TitleEncodingError as e:
                self.sink.error(e)
                continue

            dest_id = self.title_mapping.resolve(target)
            if dest_id is None:
                self._bad_edge(source_id, target)
                continue

            self.edges.setdefault(source_id, set()).add(dest_id)
            linked = True
            self.stats.good_edges += 1
            if self.stats.good_edges % self.edge_log_interval == 0:
                self.sink.progress("good edges", self.stats.good_edges)

        if linked:
            self.stats.pages_linked += 1

    def _bad_edge(self, source_id: int, target: str) -> None:
        self.stats.bad_edges += 1
        if self.stats.bad_edges % self.edge_log_interval == 0:
            self.sink.error(DanglingLinkError(source_id, target, self.stats.bad_edges))

    def finish(self) -> LinkGraph:
        return LinkGraph(edges={
            source: frozenset(targets) for source, targets in self.edges.items()
        })


def build_link_graph(
    title_mapping: TitleMapping,
    dump_path: Path,
    sink: Optional[DiagnosticsSink] = None,
    config: BuildConfig = DEFAULT_CONFIG,
) -> LinkGraph:
    """
    Run the graph pass over a dump using a previously built title mapping.

    Raises:
        DumpIOError: the dump could not be opened or read
    """
    if sink is None:
        sink = LoggingSink()

    logger.info(f"Building link graph from {dump_path} ({title_mapping.summary()})")
    builder = LinkGraphBuilder(title_mapping, sink=sink, edge_log_interval=config.edge_log_interval)
    for page in read_pages(dump_path, sink=sink, config=config):
        builder.add_page(page)

    graph = builder.finish()
    stats = builder.stats
    logger.info(
        f"Graph complete: {len(graph):,} source pages, {graph.edge_count():,} edges"
    )
    logger.info(
        f"  {stats.good_edges:,} good links, {stats.bad_edges:,} bad links, "
        f"{stats.untitled_links:,} links with no title"
    )
    return graph
