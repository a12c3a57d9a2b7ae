"""
Template engine — renders a document into the site's base template.

The base template is plain HTML with a fixed set of placeholder tokens:

    {{SITE_TITLE}}  {{PAGE_TITLE}}  {{TITLE}}  {{CONTENT}}  {{SIDEBAR}}
    {{BREADCRUMBS}}  {{BACKLINKS}}  {{VERSION_SELECTOR}}
    {{DEFAULT_THEME}}  {{SEARCH_ENABLED}}

Rendering builds a token → fragment map and substitutes it in a single
pass over the template. There are no conditionals or loops: every
fragment is computed in Python first.
"""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path, PurePosixPath

from verdoc.core.models.document import Document
from verdoc.core.models.site import SiteConfig
from verdoc.core.services.md_transforms import OUTPUT_EXTENSION, slugify
from verdoc.core.services.navigation import NavigationNode, NavigationTree

logger = logging.getLogger(__name__)


# ── Template directory ──────────────────────────────────────────────

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"
BASE_TEMPLATE = TEMPLATES_DIR / "base.html"

TOKENS: tuple[str, ...] = (
    "SITE_TITLE",
    "PAGE_TITLE",
    "TITLE",
    "CONTENT",
    "SIDEBAR",
    "BREADCRUMBS",
    "BACKLINKS",
    "VERSION_SELECTOR",
    "DEFAULT_THEME",
    "SEARCH_ENABLED",
)

_TOKEN_RE = re.compile(r"\{\{([A-Z_]+)\}\}")

# Source extensions rewritten to the output extension in hrefs
_SOURCE_SUFFIXES = (".md", ".rst", ".txt", ".adoc")


def substitute(template: str, values: dict[str, str]) -> str:
    """Replace ``{{TOKEN}}`` occurrences with ``values[TOKEN]``.

    Unknown tokens are left untouched. Substituted text is never scanned
    again, so a page body that mentions ``{{SIDEBAR}}`` stays literal.
    """
    return _TOKEN_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def output_href(path: str) -> str:
    """Map a source-relative path to its output href (without leading /)."""
    p = PurePosixPath(path)
    if p.suffix.lower() in _SOURCE_SUFFIXES:
        p = p.with_suffix(OUTPUT_EXTENSION)
    return p.as_posix()


class TemplateRenderer:
    """Renders documents into one fixed base template."""

    def __init__(self, base_template: str) -> None:
        missing = [t for t in TOKENS if f"{{{{{t}}}}}" not in base_template]
        if missing:
            logger.debug("Base template has no placeholder for: %s", ", ".join(missing))
        self.base_template = base_template

    @classmethod
    def from_file(cls, path: Path = BASE_TEMPLATE) -> TemplateRenderer:
        return cls(path.read_text(encoding="utf-8"))

    # ── Page ────────────────────────────────────────────────────────

    def token_values(
        self,
        doc: Document,
        navigation: NavigationTree,
        config: SiteConfig,
    ) -> dict[str, str]:
        """Compute every fragment for ``doc``."""
        title = doc.title or "Untitled"
        site_title = config.site.title

        return {
            "SITE_TITLE": html.escape(site_title),
            "PAGE_TITLE": html.escape(f"{title} - {site_title}"),
            "TITLE": html.escape(title),
            "CONTENT": doc.html_content,
            "SIDEBAR": self.render_sidebar(navigation, doc.relative_path),
            "BREADCRUMBS": (
                self.render_breadcrumbs(doc.relative_path)
                if config.navigation.breadcrumbs else ""
            ),
            "BACKLINKS": self.render_backlinks(doc.backlinks) if doc.backlinks else "",
            "VERSION_SELECTOR": (
                self.render_version_selector(config.site.versions, doc.version)
                if config.has_version_selector() else ""
            ),
            "DEFAULT_THEME": html.escape(config.theme_name),
            "SEARCH_ENABLED": "true" if config.search.enabled else "false",
        }

    def render(self, doc: Document, navigation: NavigationTree, config: SiteConfig) -> str:
        return substitute(self.base_template, self.token_values(doc, navigation, config))

    def render_page(
        self,
        doc: Document,
        navigation: NavigationTree,
        config: SiteConfig,
        output_path: Path,
    ) -> None:
        """Render ``doc`` and write it, creating parent directories."""
        page = self.render(doc, navigation, config)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(page, encoding="utf-8")

    # ── Sidebar ─────────────────────────────────────────────────────

    def render_sidebar(self, navigation: NavigationTree, current_path: PurePosixPath) -> str:
        lines = ['<nav class="sidebar">', "<ul>"]
        for idx in navigation.roots:
            self._render_nav_item(navigation, idx, current_path.stem, 0, lines)
        lines += ["</ul>", "</nav>"]
        return "\n".join(lines)

    def _render_nav_item(
        self,
        navigation: NavigationTree,
        idx: int,
        current_stem: str,
        depth: int,
        lines: list[str],
    ) -> None:
        node = navigation.nodes[idx]
        indent = "  " * depth
        inner = "  " * (depth + 1)

        active = not node.is_directory and PurePosixPath(node.path).stem == current_stem
        lines.append(f'{indent}<li class="active">' if active else f"{indent}<li>")

        if node.is_directory:
            lines.append(f"{inner}<span>{html.escape(node.title)}</span>")
        else:
            lines.append(f'{inner}<a href="{self._node_href(node)}">{html.escape(node.title)}</a>')

        if node.children:
            lines.append(f"{inner}<ul>")
            for child in node.children:
                self._render_nav_item(navigation, child, current_stem, depth + 1, lines)
            lines.append(f"{inner}</ul>")

        lines.append(f"{indent}</li>")

    @staticmethod
    def _node_href(node: NavigationNode) -> str:
        href = output_href(node.path)
        if node.version and not href.startswith(node.version):
            href = f"{node.version}/{href}"
        return html.escape(f"/{href}")

    # ── Breadcrumbs ─────────────────────────────────────────────────

    def render_breadcrumbs(self, path: PurePosixPath) -> str:
        crumbs = ['<a href="/">Home</a>']
        parts = path.parts
        for i, name in enumerate(parts):
            rel = "/".join(parts[: i + 1])
            href = f"/{output_href(rel)}" if i == len(parts) - 1 else f"/{rel}/"
            crumbs.append(f'<a href="{html.escape(href)}">{html.escape(name)}</a>')
        return '<nav class="breadcrumbs">\n' + " / ".join(crumbs) + "\n</nav>"

    # ── Backlinks ───────────────────────────────────────────────────

    def render_backlinks(self, backlinks: list[str]) -> str:
        lines = ['<div class="backlinks">', "<h3>Pages that link here</h3>", "<ul>"]
        for label in backlinks:
            anchor = html.escape(slugify(label))
            lines.append(f'<li><a href="#{anchor}">{html.escape(label)}</a></li>')
        lines += ["</ul>", "</div>"]
        return "\n".join(lines)

    # ── Version selector ────────────────────────────────────────────

    def render_version_selector(self, versions: list[str], current: str | None) -> str:
        lines = ['<select id="version-selector" onchange="switchVersion(this.value)">']
        for version in versions:
            value = html.escape(version)
            selected = " selected" if version == current else ""
            lines.append(f'<option value="{value}"{selected}>{value}</option>')
        lines.append("</select>")
        return "\n".join(lines)
