"""
Export stages — non-HTML output formats run after HTML emission.

Each format maps to an exporter callable ``(documents, config, output_dir)
-> int`` returning the number of files written. PDF and man-page output
have no renderer yet: their exporters log that and write nothing, so a
``--format html,pdf`` build still succeeds.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from verdoc.core.models.document import Document
from verdoc.core.models.site import SiteConfig

logger = logging.getLogger(__name__)

FORMATS: tuple[str, ...] = ("html", "pdf", "man")

Exporter = Callable[[Sequence[Document], SiteConfig, Path], int]


def parse_formats(selector: str) -> list[str]:
    """Select formats by substring match, e.g. ``"html,pdf"``.

    Order follows :data:`FORMATS`, not the selector.
    """
    return [fmt for fmt in FORMATS if fmt in selector]


def _unavailable(fmt: str) -> Exporter:
    def _export(documents: Sequence[Document], config: SiteConfig, output_dir: Path) -> int:
        logger.warning(
            "%s export is not available yet; skipped %d document(s)",
            fmt.upper(), len(documents),
        )
        return 0

    return _export


_EXPORTERS: dict[str, Exporter] = {
    "pdf": _unavailable("pdf"),
    "man": _unavailable("man"),
}


def get_exporter(fmt: str) -> Exporter | None:
    return _EXPORTERS.get(fmt)
