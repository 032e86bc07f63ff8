"""
wikigrapher - title mappings and link graphs from Wikipedia XML dumps.

Modules:
    normalize:  canonical titles from raw title bytes
    wikilinks:  [[wikilink]] target extraction
    reader:     forward-only event reader over dump bytes
    pages:      per-page state machine producing PageRecords
    titlemap:   first pass, titles <-> ids and redirects
    graph:      second pass, page-to-page link graph
    artifacts:  saving and loading both artifacts
"""

__version__ = "0.2.0"

from wikigrapher.errors import (
    ArtifactFormatError,
    ArtifactIOError,
    ConfigError,
    DanglingLinkError,
    DumpIOError,
    PageIdError,
    TitleEncodingError,
    WikigrapherError,
    XMLSyntaxError,
)
from wikigrapher.normalize import process_title
from wikigrapher.wikilinks import WikilinkExtractor, iter_link_targets
from wikigrapher.pages import PageRecord, read_pages
from wikigrapher.titlemap import TitleMapping, TitleMappingBuilder, build_title_mapping
from wikigrapher.graph import GraphStats, LinkGraph, LinkGraphBuilder, build_link_graph
from wikigrapher.artifacts import (
    load_link_graph,
    load_title_mapping,
    save_link_graph,
    save_title_mapping,
)

__all__ = [
    "__version__",
    # Errors
    "WikigrapherError",
    "DumpIOError",
    "ArtifactIOError",
    "ArtifactFormatError",
    "ConfigError",
    "XMLSyntaxError",
    "TitleEncodingError",
    "PageIdError",
    "DanglingLinkError",
    # Text
    "process_title",
    "WikilinkExtractor",
    "iter_link_targets",
    # Passes
    "PageRecord",
    "read_pages",
    "TitleMapping",
    "TitleMappingBuilder",
    "build_title_mapping",
    "GraphStats",
    "LinkGraph",
    "LinkGraphBuilder",
    "build_link_graph",
    # Persistence
    "save_title_mapping",
    "load_title_mapping",
    "save_link_graph",
    "load_link_graph",
]
