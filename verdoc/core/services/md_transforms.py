"""
Markdown transforms — the content stage of the build pipeline.

Two rewrites run on a document body before HTML conversion:
  - Wiki links  ``[[Page Name]]``  →  ``[Page Name](page-name.html)``
  - Shortcodes  ``{{...}}``        →  recognised, passed through literally

The rewritten body is then rendered with markdown-it-py. The renderer
enables exactly four features on top of CommonMark: tables,
strikethrough, task lists and smart punctuation.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin

logger = logging.getLogger(__name__)

OUTPUT_EXTENSION = ".html"


# ── Wiki Links ──────────────────────────────────────────────────────

WIKI_LINK_RE = re.compile(r"\[\[([^\]]+)\]\]")


def slugify(name: str) -> str:
    """Lowercase and replace each space with a hyphen.

    No uniqueness check: "My Page", "my page" and "My-Page" all map to
    ``my-page``.
    """
    return name.lower().replace(" ", "-")


def rewrite_wiki_links(content: str, extension: str = OUTPUT_EXTENSION) -> str:
    """Rewrite ``[[Page Name]]`` into a standard Markdown link.

    [[Getting Started]]

    becomes:

    [Getting Started](getting-started.html)
    """
    def _replace(m: re.Match) -> str:
        page_name = m.group(1)
        return f"[{page_name}]({slugify(page_name)}{extension})"

    return WIKI_LINK_RE.sub(_replace, content)


# ── Shortcodes ──────────────────────────────────────────────────────

# {{note}} ... {{/note}}, {{youtube:ID}}, etc.
SHORTCODE_RE = re.compile(r"\{\{([^}]+)\}\}")


def find_shortcodes(content: str) -> list[str]:
    """Return the inner text of every ``{{...}}`` shortcode, in order."""
    return [m.group(1) for m in SHORTCODE_RE.finditer(content)]


def expand_shortcodes(content: str) -> str:
    """Shortcodes are not expanded; the text is returned unchanged."""
    found = find_shortcodes(content)
    if found:
        logger.debug("Leaving %d shortcode(s) unexpanded: %s", len(found), ", ".join(found))
    return content


# ── HTML Rendering ──────────────────────────────────────────────────

_MD_RENDERER = (
    MarkdownIt("commonmark", {"html": True, "typographer": True})
    .enable(["table", "strikethrough", "replacements", "smartquotes"])
    .use(tasklists_plugin)
)


def markdown_to_html(content: str) -> str:
    """Render Markdown to an HTML fragment."""
    return _MD_RENDERER.render(content)


# ── Document Transform ──────────────────────────────────────────────


@dataclass(frozen=True)
class TransformedContent:
    """A body after link rewriting and HTML conversion."""

    markdown: str
    html: str


def transform(body: str, extension: str = OUTPUT_EXTENSION) -> TransformedContent:
    """Apply both rewrites, then convert to HTML."""
    processed = rewrite_wiki_links(body, extension)
    processed = expand_shortcodes(processed)
    return TransformedContent(markdown=processed, html=markdown_to_html(processed))
