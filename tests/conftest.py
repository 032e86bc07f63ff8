"""Pytest configuration and shared fixtures."""
import pytest
import tempfile
from pathlib import Path
from typing import Optional


class RecordingSink:
    """DiagnosticsSink that keeps everything it is told, for assertions."""

    def __init__(self):
        self.warnings = []
        self.errors = []
        self.progress_events = []

    def warning(self, message):
        self.warnings.append(message)

    def error(self, error):
        self.errors.append(error)

    def progress(self, name, count):
        self.progress_events.append((name, count))

    def errors_of(self, error_type):
        return [e for e in self.errors if isinstance(e, error_type)]


DUMP_HEADER = """<mediawiki xmlns="http://www.mediawiki.org/xml/export-0.10/" version="0.10" xml:lang="en">
  <siteinfo>
    <sitename>Wikipedia</sitename>
    <dbname>enwiki</dbname>
  </siteinfo>
"""

DUMP_FOOTER = "</mediawiki>\n"


def page_xml(
    title: str,
    page_id: Optional[int] = None,
    redirect: Optional[str] = None,
    text: Optional[str] = None,
    revision_id: int = 9000,
) -> str:
    """Render one <page> element the way MediaWiki exports it."""
    parts = ["  <page>", f"    <title>{title}</title>", "    <ns>0</ns>"]
    if page_id is not None:
        parts.append(f"    <id>{page_id}</id>")
    if redirect is not None:
        parts.append(f'    <redirect title="{redirect}" />')
    parts.append("    <revision>")
    parts.append(f"      <id>{revision_id}</id>")
    parts.append("      <contributor><username>Bot</username><id>42</id></contributor>")
    if text is not None:
        parts.append(f'      <text bytes="{len(text)}" xml:space="preserve">{text}</text>')
    else:
        parts.append('      <text bytes="0" />')
    parts.append("    </revision>")
    parts.append("  </page>")
    return "\n".join(parts) + "\n"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sink():
    """A fresh recording diagnostics sink."""
    return RecordingSink()


@pytest.fixture
def make_page():
    """Factory rendering a single <page> element."""
    return page_xml


@pytest.fixture
def write_dump(temp_dir):
    """Factory writing page elements (or raw XML) to a dump file."""
    def _write(*pages: str, name: str = "dump.xml", raw: bool = False) -> Path:
        path = temp_dir / name
        body = "".join(pages) if raw else DUMP_HEADER + "".join(pages) + DUMP_FOOTER
        path.write_bytes(body.encode("utf-8") if isinstance(body, str) else body)
        return path
    return _write


@pytest.fixture
def fruit_pages():
    """The Apple / Apple Inc / Banana / Cherry dump used across tests."""
    return [
        page_xml("Apple", page_id=1, text="Apple is a fruit. See [[Banana]]."),
        page_xml("Apple Inc", page_id=2, redirect="Apple", text="#REDIRECT [[Apple]]"),
        page_xml("Banana", page_id=3, text="[[Apple Inc]] and [[Apple|fruit]]"),
        page_xml("Cherry", page_id=4, text="[[Nonexistent Page]]"),
    ]


@pytest.fixture
def fruit_dump(write_dump, fruit_pages):
    return write_dump(*fruit_pages)
