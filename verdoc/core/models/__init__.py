"""
Domain models for verdoc.

    from verdoc.core.models import Document, Frontmatter, SiteConfig
"""

from verdoc.core.models.document import Document, Frontmatter, infer_version
from verdoc.core.models.site import (
    NavigationSection,
    SearchSection,
    SiteConfig,
    SiteSection,
    ThemeSection,
)

__all__ = [
    # document.py
    "Document",
    "Frontmatter",
    "infer_version",
    # site.py
    "NavigationSection",
    "SearchSection",
    "SiteConfig",
    "SiteSection",
    "ThemeSection",
]
