"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path, PurePosixPath

import pytest

from verdoc.core.models.document import Document, Frontmatter, infer_version


@pytest.fixture
def make_doc():
    """Factory for in-memory documents (no file on disk)."""

    def _make(
        rel: str,
        title: str | None = None,
        links: list[str] | None = None,
        order: int | None = None,
        html: str = "<p>body</p>",
    ) -> Document:
        relative = PurePosixPath(rel)
        return Document(
            frontmatter=Frontmatter(title=title, order=order),
            content="body",
            html_content=html,
            path=Path("/src") / rel,
            relative_path=relative,
            version=infer_version(relative),
            links=list(links or []),
        )

    return _make


@pytest.fixture
def write_doc(tmp_path: Path):
    """Write a dedented source document under ``tmp_path / "docs"``."""
    docs = tmp_path / "docs"

    def _write(rel: str, text: str) -> Path:
        path = docs / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_site(tmp_path: Path, write_doc) -> Path:
    """Three documents: an untagged index and two pages under v1."""
    write_doc("index.md", """\
        ---
        title: Home
        ---
        # Home
    """)
    write_doc("v1/page.md", """\
        ---
        title: Page
        ---
        Page body.
    """)
    write_doc("v1/other.md", """\
        ---
        title: Other
        ---
        See [[Page]].
    """)
    return tmp_path / "docs"
