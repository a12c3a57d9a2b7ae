"""
Project scaffolding — ``verdoc init``.

Creates a minimal source tree and a default config:

    <dir>/verdoc.yml
    <dir>/docs/index.md
    <dir>/docs/latest/index.md

Existing files are never overwritten.
"""

from __future__ import annotations

import logging
from pathlib import Path

from verdoc.core.config.loader import CONFIG_FILE, save_config
from verdoc.core.models.site import SiteConfig

logger = logging.getLogger(__name__)

INDEX_PAGE = """\
---
title: Welcome
tags: [getting-started]
---

# Welcome

This is your first documentation page. Edit this file to get started!

## Getting started

1. Edit this file
2. Configure the site in `verdoc.yml`
3. Add more `.md` files to the `docs/` directory
4. Run `verdoc dev` to preview
5. Run `verdoc build` to generate the static site

Link between pages with wiki links, e.g. [[Latest Version]].

## Shortcodes

{{note}}
Shortcodes are passed through as written.
{{/note}}
"""

LATEST_PAGE = """\
---
title: Latest Version
version: latest
tags: [docs]
---

# Documentation for the latest version

Pages under `docs/latest/` are published under `/latest/`.
"""


def scaffold_project(target_dir: Path) -> list[Path]:
    """Create the starter files under ``target_dir``.

    Returns:
        The files that were written (existing ones are skipped).
    """
    docs_dir = target_dir / "docs"
    (docs_dir / "latest").mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for path, content in (
        (docs_dir / "index.md", INDEX_PAGE),
        (docs_dir / "latest" / "index.md", LATEST_PAGE),
    ):
        if path.exists():
            logger.info("Keeping existing %s", path)
            continue
        path.write_text(content, encoding="utf-8")
        written.append(path)

    config_path = target_dir / CONFIG_FILE
    if config_path.exists():
        logger.info("Keeping existing %s", config_path)
    else:
        save_config(SiteConfig(), config_path)
        written.append(config_path)

    return written
