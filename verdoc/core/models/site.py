"""
Site model — the configuration of a documentation site.

Loaded from verdoc.yml, this controls the site title, the set of
published versions and the handful of UI toggles the base template
exposes.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SiteSection(BaseModel):
    """Site identity and the versions offered by the version selector."""

    title: str = "Documentation"
    versions: list[str] = Field(default_factory=lambda: ["latest"])


class NavigationSection(BaseModel):
    """Navigation chrome toggles."""

    breadcrumbs: bool = True


class ThemeSection(BaseModel):
    """UI theme defaults (users can still toggle in the browser)."""

    default_theme: str | None = "light"


class SearchSection(BaseModel):
    """Client-side full-text search."""

    enabled: bool = True


class SiteConfig(BaseModel):
    """Root site configuration — loaded from verdoc.yml.

    Every section is optional; a missing config file yields the defaults.
    """

    site: SiteSection = Field(default_factory=SiteSection)
    navigation: NavigationSection = Field(default_factory=NavigationSection)
    theme: ThemeSection = Field(default_factory=ThemeSection)
    search: SearchSection = Field(default_factory=SearchSection)

    @property
    def theme_name(self) -> str:
        """The default theme, falling back to ``light``."""
        return self.theme.default_theme or "light"

    def has_version_selector(self) -> bool:
        """Whether more than one version is configured."""
        return len(self.site.versions) > 1
