"""
Link graph — outbound links per document and backlinks across the set.

Pass 1 runs per document while it is transformed: ``extract_links``
collects link targets from the rewritten body.

Pass 2 runs once the full document set is known: ``apply_backlinks``
resolves every outbound link against a case-insensitive lookup and
records the linking document on the target.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from verdoc.core.models.document import Document
from verdoc.core.services.md_transforms import OUTPUT_EXTENSION, WIKI_LINK_RE, slugify

logger = logging.getLogger(__name__)

_MD_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def extract_links(content: str) -> list[str]:
    """Collect link targets in order, duplicates kept.

    Wiki-link targets come first, then every standard link whose target
    does not start with ``http``.
    """
    links = [m.group(1) for m in WIKI_LINK_RE.finditer(content)]
    for m in _MD_LINK_RE.finditer(content):
        target = m.group(2)
        if not target.startswith("http"):
            links.append(target)
    return links


def build_lookup(documents: Sequence[Document]) -> dict[str, int]:
    """Map lowercased keys to document indices.

    Keys per document: its title, its relative path, and the slug link a
    wiki link to its title produces (``page.html`` for "Page"). On a
    collision the later document wins.
    """
    lookup: dict[str, int] = {}
    for idx, doc in enumerate(documents):
        if doc.title:
            lookup[doc.title.lower()] = idx
            lookup[f"{slugify(doc.title)}{OUTPUT_EXTENSION}"] = idx
        lookup[doc.relative_path.as_posix().lower()] = idx
    return lookup


def apply_backlinks(documents: Sequence[Document]) -> int:
    """Append a backlink label to every document another one links to.

    Multiple links from one source to the same target produce multiple
    entries. Returns the number of backlinks recorded.
    """
    lookup = build_lookup(documents)

    updates: list[tuple[int, str]] = []
    for doc in documents:
        for link in doc.links:
            target_idx = lookup.get(link.lower())
            if target_idx is not None:
                updates.append((target_idx, doc.label))

    for idx, label in updates:
        documents[idx].backlinks.append(label)

    logger.debug("Recorded %d backlink(s) across %d document(s)", len(updates), len(documents))
    return len(updates)
