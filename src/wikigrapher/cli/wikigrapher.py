#!/usr/bin/env python3
"""
wikigrapher - build a Wikipedia link graph from an XML dump.

Two passes over the same dump, joined by a saved title mapping:

    wikigrapher genmap DUMPFILE -o titlemap.json
    wikigrapher gengraph DUMPFILE titlemap.json -o graph.json

Outputs ending in .gz are gzip-compressed. Dumps ending in .bz2 are
decompressed on the fly.

Example:
    wikigrapher -l config/logging.yaml genmap \\
        data/enwiki-latest-pages-articles.xml.bz2 -o data/titlemap.json.gz
"""

import argparse
import logging
import sys
from contextlib import nullcontext
from pathlib import Path
from typing import List, Optional

from wikigrapher import __version__
from wikigrapher.artifacts import load_title_mapping, save_link_graph, save_title_mapping
from wikigrapher.config import BuildConfig, configure_logging, load_config
from wikigrapher.diagnostics import LoggingSink
from wikigrapher.errors import WikigrapherError
from wikigrapher.graph import build_link_graph
from wikigrapher.progress_display import ProgressSink
from wikigrapher.titlemap import build_title_mapping


logger = logging.getLogger("wikigrapher")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="wikigrapher",
        description="Generates a graph of all the linked Wikipedia pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-l", "--logconf",
        type=Path,
        default=None,
        help="YAML logging configuration (logging.config.dictConfig format)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML build configuration (log intervals, read chunk size)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log warnings and errors; no live progress display",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    genmap = subparsers.add_parser(
        "genmap",
        help="Generate title mapping from XML dump file",
    )
    genmap.add_argument("dumpfile", type=Path, help="Path of the Wikipedia XML dump")
    genmap.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("titlemap.json"),
        help="Output path for the title mapping (default: titlemap.json)",
    )

    gengraph = subparsers.add_parser(
        "gengraph",
        help="Generate digraph from XML dump file and generated title mapping",
    )
    gengraph.add_argument("dumpfile", type=Path, help="Path of the Wikipedia XML dump")
    gengraph.add_argument("tmapfile", type=Path, help="Title mapping written by genmap")
    gengraph.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("graph.json"),
        help="Output path for the link graph (default: graph.json)",
    )

    return parser.parse_args(argv)


def _sink(title: str, config: BuildConfig, quiet: bool):
    if quiet or not config.show_progress:
        return nullcontext(LoggingSink())
    return ProgressSink(title)


def run_genmap(args: argparse.Namespace, config: BuildConfig) -> None:
    with _sink("Building title mapping", config, args.quiet) as sink:
        mapping = build_title_mapping(args.dumpfile, sink=sink, config=config)
    save_title_mapping(mapping, args.output)


def run_gengraph(args: argparse.Namespace, config: BuildConfig) -> None:
    mapping = load_title_mapping(args.tmapfile)
    with _sink("Building link graph", config, args.quiet) as sink:
        graph = build_link_graph(mapping, args.dumpfile, sink=sink, config=config)
    save_link_graph(graph, args.output)


COMMANDS = {
    "genmap": run_genmap,
    "gengraph": run_gengraph,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the wikigrapher CLI."""
    args = parse_args(argv)

    try:
        configure_logging(args.logconf, quiet=args.quiet)
        config = load_config(args.config)
    except WikigrapherError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info(f"started wikigrapher {args.command}")
    logger.info(f"processing dump file {args.dumpfile}")

    try:
        COMMANDS[args.command](args, config)
    except WikigrapherError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted by user; nothing was written")
        return 1

    logger.info(f"completed wikigrapher {args.command} -> {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
