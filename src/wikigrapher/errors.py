"""
Error taxonomy for wikigrapher.

Only the I/O errors (and a broken artifact or config file) stop a run.
Everything else is handed to the diagnostics sink and the offending page,
field or link is dropped from the output.
"""

from typing import Optional


class WikigrapherError(Exception):
    """Base class for all wikigrapher errors."""


class DumpIOError(WikigrapherError):
    """The dump file could not be opened or read."""

    def __init__(self, path, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        message = f"could not read dump file {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ArtifactIOError(WikigrapherError):
    """An artifact file could not be opened, read or written."""

    def __init__(self, path, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        message = f"could not access artifact file {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ArtifactFormatError(WikigrapherError):
    """An artifact file was readable but its content is not a valid artifact."""


class ConfigError(WikigrapherError):
    """A YAML configuration file is missing, malformed or has bad values."""


class XMLSyntaxError(WikigrapherError):
    """Malformed or unterminated markup in the dump."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte {offset:,})"
        super().__init__(message)


class TitleEncodingError(WikigrapherError):
    """A title, id or link target is not valid UTF-8."""

    def __init__(self, raw: bytes, cause: Optional[UnicodeDecodeError] = None):
        self.raw = raw
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"invalid UTF-8 bytes {raw[:80]!r}{detail}")


class PageIdError(WikigrapherError):
    """Page id text is not an unsigned decimal integer."""

    def __init__(self, raw: bytes):
        self.raw = raw
        super().__init__(f"could not parse id string to integer: {raw[:40]!r}")


class DanglingLinkError(WikigrapherError):
    """A link target that resolves neither directly nor through one redirect."""

    def __init__(self, source_id: int, target: str, bad_edges: int):
        self.source_id = source_id
        self.target = target
        self.bad_edges = bad_edges
        super().__init__(
            f"{bad_edges:,} bad edges (latest: page {source_id} -> {target!r})"
        )
