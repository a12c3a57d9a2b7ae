"""
Tests for the template engine — token substitution and page fragments.
"""

from pathlib import Path, PurePosixPath

import pytest

from verdoc.core.models.site import SiteConfig
from verdoc.core.services.navigation import NavigationTree, build_navigation
from verdoc.core.services.template_engine import (
    BASE_TEMPLATE,
    TOKENS,
    TemplateRenderer,
    output_href,
    substitute,
)

MINI_TEMPLATE = (
    "<title>{{PAGE_TITLE}}</title>|{{SITE_TITLE}}|{{TITLE}}|{{DEFAULT_THEME}}|"
    "{{SEARCH_ENABLED}}|{{VERSION_SELECTOR}}|{{BREADCRUMBS}}|{{SIDEBAR}}|"
    "{{CONTENT}}|{{BACKLINKS}}"
)


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer(MINI_TEMPLATE)


def _config(**site) -> SiteConfig:
    return SiteConfig.model_validate({"site": {"title": "Docs", **site}})


class TestSubstitute:
    def test_known_tokens(self):
        assert substitute("{{A}}-{{B}}", {"A": "1", "B": "2"}) == "1-2"

    def test_unknown_tokens_left_alone(self):
        assert substitute("{{A}} {{note}} {{X}}", {"A": "1"}) == "1 {{note}} {{X}}"

    def test_single_pass(self):
        out = substitute("{{CONTENT}}|{{SIDEBAR}}", {"CONTENT": "{{SIDEBAR}}", "SIDEBAR": "nav"})
        assert out == "{{SIDEBAR}}|nav"

    def test_base_template_has_every_token(self):
        text = BASE_TEMPLATE.read_text(encoding="utf-8")
        for token in TOKENS:
            assert f"{{{{{token}}}}}" in text


class TestOutputHref:
    @pytest.mark.parametrize("src, href", [
        ("v1/page.md", "v1/page.html"),
        ("notes.txt", "notes.html"),
        ("guide.adoc", "guide.html"),
        ("a.md.bak/page.md", "a.md.bak/page.html"),
        ("Notes.MD", "Notes.html"),
        ("v1/Guide.Txt", "v1/Guide.html"),
    ])
    def test_extension_rewrite(self, src, href):
        assert output_href(src) == href


class TestRender:
    def test_titles_and_flags(self, renderer, make_doc):
        doc = make_doc("index.md", title="Home")
        page = renderer.render(doc, build_navigation([doc]), _config())
        assert "<title>Home - Docs</title>" in page
        assert "|Docs|Home|light|true|" in page

    def test_untitled(self, renderer, make_doc):
        doc = make_doc("index.md")
        page = renderer.render(doc, build_navigation([doc]), _config())
        assert "<title>Untitled - Docs</title>" in page

    def test_flags_from_config(self, renderer, make_doc):
        doc = make_doc("index.md", title="Home")
        config = SiteConfig.model_validate({
            "theme": {"default_theme": "dark"},
            "search": {"enabled": False},
        })
        page = renderer.render(doc, build_navigation([doc]), config)
        assert "|dark|false|" in page

    def test_missing_theme_defaults_to_light(self, renderer, make_doc):
        doc = make_doc("index.md", title="Home")
        config = SiteConfig.model_validate({"theme": {"default_theme": None}})
        assert "|light|" in renderer.render(doc, build_navigation([doc]), config)

    def test_body_not_reexpanded(self, renderer, make_doc):
        doc = make_doc("index.md", title="Home", html="<p>{{SIDEBAR}}</p>")
        page = renderer.render(doc, build_navigation([doc]), _config())
        assert "<p>{{SIDEBAR}}</p>" in page

    def test_title_escaped(self, renderer, make_doc):
        doc = make_doc("index.md", title="<b>Bold</b>")
        page = renderer.render(doc, build_navigation([doc]), _config())
        assert "&lt;b&gt;Bold&lt;/b&gt;" in page

    def test_render_page_creates_parents(self, renderer, make_doc, tmp_path: Path):
        doc = make_doc("index.md", title="Home")
        target = tmp_path / "out" / "deep" / "index.html"
        renderer.render_page(doc, build_navigation([doc]), _config(), target)
        assert target.is_file()
        assert "Home - Docs" in target.read_text(encoding="utf-8")


class TestSidebar:
    def test_active_and_hrefs(self, renderer, make_doc):
        docs = [
            make_doc("index.md", title="Home"),
            make_doc("v1/page.md", title="Page"),
            make_doc("v1/other.md", title="Other"),
        ]
        html = renderer.render_sidebar(build_navigation(docs), PurePosixPath("v1/other.md"))
        assert html.startswith('<nav class="sidebar">')
        assert '<a href="/index.html">Home</a>' in html
        assert '<a href="/v1/page.html">Page</a>' in html
        assert "<span>v1</span>" in html
        assert html.count('class="active"') == 1
        active_at = html.index('class="active"')
        assert html.index("/v1/other.html") > active_at

    def test_version_prefix_added_when_missing(self, renderer):
        tree = NavigationTree()
        tree.add_path("page.md", "Page", "v3")
        html = renderer.render_sidebar(tree, PurePosixPath("x.md"))
        assert 'href="/v3/page.html"' in html

    def test_active_matches_file_stem(self, renderer, make_doc):
        docs = [make_doc("index.md", title="Home"), make_doc("latest/index.md", title="Latest")]
        html = renderer.render_sidebar(build_navigation(docs), PurePosixPath("index.md"))
        assert html.count('class="active"') == 2


class TestBreadcrumbs:
    def test_components(self, renderer):
        html = renderer.render_breadcrumbs(PurePosixPath("v1/guide/setup.md"))
        assert html == (
            '<nav class="breadcrumbs">\n'
            '<a href="/">Home</a> / <a href="/v1/">v1</a> / '
            '<a href="/v1/guide/">guide</a> / <a href="/v1/guide/setup.html">setup.md</a>\n'
            "</nav>"
        )

    def test_disabled(self, renderer, make_doc):
        doc = make_doc("v1/page.md", title="Page")
        config = SiteConfig.model_validate({"navigation": {"breadcrumbs": False}})
        page = renderer.render(doc, build_navigation([doc]), config)
        assert "breadcrumbs" not in page


class TestBacklinks:
    def test_rendered_when_present(self, renderer, make_doc):
        doc = make_doc("page.md", title="Page")
        doc.backlinks = ["Other Page", "notes/todo.md"]
        page = renderer.render(doc, build_navigation([doc]), _config())
        assert '<div class="backlinks">' in page
        assert "<h3>Pages that link here</h3>" in page
        assert '<li><a href="#other-page">Other Page</a></li>' in page
        assert "notes/todo.md</a>" in page

    def test_absent_when_empty(self, renderer, make_doc):
        doc = make_doc("page.md", title="Page")
        page = renderer.render(doc, build_navigation([doc]), _config())
        assert "backlinks" not in page


class TestVersionSelector:
    @pytest.mark.parametrize("versions", [["latest"], []])
    def test_hidden_for_single_version(self, renderer, make_doc, versions):
        doc = make_doc("latest/page.md", title="Page")
        config = SiteConfig.model_validate({"site": {"versions": versions}})
        page = renderer.render(doc, build_navigation([doc]), config)
        assert "version-selector" not in page

    def test_shown_for_several_versions(self, renderer, make_doc):
        doc = make_doc("v1/page.md", title="Page")
        config = SiteConfig.model_validate({"site": {"versions": ["latest", "v1"]}})
        page = renderer.render(doc, build_navigation([doc]), config)
        assert '<option value="v1" selected>v1</option>' in page

    def test_marks_current(self, renderer):
        html = renderer.render_version_selector(["latest", "v1", "v2"], "v1")
        assert html.startswith('<select id="version-selector"')
        assert '<option value="v1" selected>v1</option>' in html
        assert '<option value="latest">latest</option>' in html
        assert html.count("selected") == 1

    def test_unversioned_document_selects_nothing(self, renderer):
        html = renderer.render_version_selector(["latest", "v1"], None)
        assert "selected" not in html
