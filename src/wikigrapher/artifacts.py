"""
Artifact persistence for title mappings and link graphs.

Both artifacts are written as a single orjson document; paths ending in
.gz are gzip-compressed. Integer keys become strings on disk (JSON objects
only have string keys) and are converted back on load.

Title mapping layout:
    {"title_to_id": {"Apple": 1},
     "id_to_title": {"1": "Apple"},
     "redirect_to_target": {"Apple Inc": "Apple"}}

Link graph layout:
    {"3": [1, 2], "4": [4]}
"""

import gzip
import logging
from pathlib import Path
from typing import Any, Dict

import orjson

from .errors import ArtifactFormatError, ArtifactIOError
from .graph import LinkGraph
from .titlemap import TitleMapping


logger = logging.getLogger(__name__)


def _write_document(path: Path, document: Any) -> None:
    path = Path(path)
    data = orjson.dumps(document, option=orjson.OPT_NON_STR_KEYS)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix == '.gz':
            with gzip.open(path, 'wb') as f:
                f.write(data)
        else:
            with open(path, 'wb') as f:
                f.write(data)
    except OSError as e:
        raise ArtifactIOError(path, e) from e

    logger.info(f"Wrote {path} ({len(data) / 1024:,.1f} KB uncompressed)")


def _read_document(path: Path) -> Any:
    path = Path(path)
    try:
        if path.suffix == '.gz':
            with gzip.open(path, 'rb') as f:
                data = f.read()
        else:
            with open(path, 'rb') as f:
                data = f.read()
    except (OSError, EOFError) as e:
        raise ArtifactIOError(path, e) from e

    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise ArtifactFormatError(f"{path} is not valid JSON: {e}") from e


def _int_key(key: str, path: Path) -> int:
    try:
        return int(key)
    except ValueError:
        raise ArtifactFormatError(f"{path}: expected a numeric page id, got {key!r}") from None


def _require_mapping(value: Any, what: str, path: Path) -> Dict:
    if not isinstance(value, dict):
        raise ArtifactFormatError(f"{path}: {what} must be an object, got {type(value).__name__}")
    return value


# =============================================================================
# Title mapping
# =============================================================================


def save_title_mapping(mapping: TitleMapping, path: Path) -> None:
    """Serialize a title mapping (three named tables)."""
    _write_document(path, {
        'title_to_id': mapping.title_to_id,
        'id_to_title': mapping.id_to_title,
        'redirect_to_target': mapping.redirect_to_target,
    })


def load_title_mapping(path: Path) -> TitleMapping:
    """
    Load a title mapping written by save_title_mapping.

    Raises:
        ArtifactIOError: the file could not be read
        ArtifactFormatError: the content is not a title mapping
    """
    path = Path(path)
    document = _require_mapping(_read_document(path), "title mapping", path)

    missing = [k for k in ('title_to_id', 'id_to_title', 'redirect_to_target') if k not in document]
    if missing:
        raise ArtifactFormatError(f"{path}: missing tables {', '.join(missing)}")

    title_to_id = _require_mapping(document['title_to_id'], "title_to_id", path)
    id_to_title = _require_mapping(document['id_to_title'], "id_to_title", path)
    redirects = _require_mapping(document['redirect_to_target'], "redirect_to_target", path)

    for title, page_id in title_to_id.items():
        if not isinstance(page_id, int):
            raise ArtifactFormatError(f"{path}: id for {title!r} is not an integer")

    mapping = TitleMapping(
        title_to_id=title_to_id,
        id_to_title={_int_key(k, path): v for k, v in id_to_title.items()},
        redirect_to_target=redirects,
    )
    logger.info(f"Loaded title mapping from {path}: {mapping.summary()}")
    return mapping


# =============================================================================
# Link graph
# =============================================================================


def save_link_graph(graph: LinkGraph, path: Path) -> None:
    """Serialize a link graph; destination sets are written sorted."""
    _write_document(path, {
        source: sorted(targets) for source, targets in sorted(graph.edges.items())
    })


def load_link_graph(path: Path) -> LinkGraph:
    """
    Load a link graph written by save_link_graph.

    Raises:
        ArtifactIOError: the file could not be read
        ArtifactFormatError: the content is not a link graph
    """
    path = Path(path)
    document = _require_mapping(_read_document(path), "link graph", path)

    edges = {}
    for key, targets in document.items():
        if not isinstance(targets, list) or not all(isinstance(t, int) for t in targets):
            raise ArtifactFormatError(f"{path}: targets of {key!r} must be a list of ids")
        edges[_int_key(key, path)] = frozenset(targets)

    graph = LinkGraph(edges=edges)
    logger.info(f"Loaded link graph from {path}: {len(graph):,} source pages")
    return graph
