"""
Site builder — turns a source tree into a rendered output tree.

Pipeline model
──────────────
A build always reprocesses the whole source tree. Stages run in order,
each recorded as a ``StageResult`` on the returned ``BuildReport``:

  "clean"     — Remove and recreate the output directory
  "collect"   — Walk the source tree, parse + transform every document
  "link"      — Sort documents and compute backlinks
  "navigate"  — Build the navigation tree
  "index"     — Build the full-text search index
  "html"      — Copy assets, write the index, render every page
  "pdf"/"man" — Optional exporters, after HTML emission

Failure policy
──────────────
Per-document problems (unreadable file, malformed header, a page that
fails to render) are logged as warnings and the build continues.
Directory/IO failures on the output tree raise ``BuildError``.

Output layout
─────────────
  <output>/assets/css/style.css
  <output>/assets/js/app.js
  <output>/assets/search-index.json
  <output>/<version>/<path-without-version>.html   (versioned documents)
  <output>/<path>.html                             (unversioned documents)
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from verdoc.core.models.document import Document, infer_version
from verdoc.core.models.site import SiteConfig
from verdoc.core.services.exporters import get_exporter, parse_formats
from verdoc.core.services.frontmatter import parse_header
from verdoc.core.services.link_graph import apply_backlinks, extract_links
from verdoc.core.services.md_transforms import OUTPUT_EXTENSION, transform
from verdoc.core.services.navigation import NavigationTree, build_navigation, sort_documents
from verdoc.core.services.template_engine import TEMPLATES_DIR, TemplateRenderer

logger = logging.getLogger(__name__)

DOC_EXTENSIONS = frozenset({".md", ".rst", ".txt", ".adoc"})
SEARCH_INDEX_FORMAT = "json"
STATIC_ASSETS: tuple[tuple[str, str], ...] = (
    ("style.css", "css/style.css"),
    ("app.js", "js/app.js"),
)


class BuildError(Exception):
    """Raised when the output tree cannot be created or written."""


# ── Data Models ─────────────────────────────────────────────────────


@dataclass
class StageResult:
    """Result of executing one build stage."""

    name: str
    label: str
    status: str = "pending"             # "pending" | "running" | "done" | "error"
    duration_ms: int = 0
    error: str = ""
    detail: dict = field(default_factory=dict)


@dataclass
class BuildReport:
    """Result of a full build."""

    source_dir: str
    output_dir: str
    formats: list[str] = field(default_factory=list)
    stages: list[StageResult] = field(default_factory=list)
    ok: bool = False
    total_duration_ms: int = 0
    documents: int = 0
    pages: int = 0
    skipped: list[str] = field(default_factory=list)        # Unreadable source files
    header_fallbacks: list[str] = field(default_factory=list)
    render_errors: list[str] = field(default_factory=list)

    def stage(self, name: str) -> StageResult | None:
        return next((s for s in self.stages if s.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "source_dir": self.source_dir,
            "output_dir": self.output_dir,
            "formats": self.formats,
            "documents": self.documents,
            "pages": self.pages,
            "total_duration_ms": self.total_duration_ms,
            "skipped": self.skipped,
            "header_fallbacks": self.header_fallbacks,
            "render_errors": self.render_errors,
            "stages": [
                {
                    "name": s.name,
                    "status": s.status,
                    "duration_ms": s.duration_ms,
                    "error": s.error,
                    "detail": s.detail,
                }
                for s in self.stages
            ],
        }


# ── Collection ──────────────────────────────────────────────────────


def parse_document(path: Path, source_root: Path) -> tuple[Document, str]:
    """Read, parse and transform one source file.

    Returns the document and the header diagnostic ("" when the header
    parsed or was absent).

    Raises:
        OSError / UnicodeDecodeError: if the file cannot be read.
    """
    text = path.read_text(encoding="utf-8")
    header = parse_header(text)
    content = transform(header.body)
    relative = PurePosixPath(path.relative_to(source_root).as_posix())

    doc = Document(
        frontmatter=header.header,
        content=content.markdown,
        html_content=content.html,
        path=path,
        relative_path=relative,
        version=infer_version(relative),
        links=extract_links(content.markdown),
    )
    return doc, header.diagnostic


def iter_source_files(source_dir: Path) -> Iterator[Path]:
    """Yield document files under ``source_dir``, following symlinks.

    Directories and files are visited in name order. A symlinked
    directory already visited (a cycle) is not entered again.
    """
    seen: set[str] = set()
    for dirpath, dirnames, filenames in os.walk(source_dir, followlinks=True):
        real = os.path.realpath(dirpath)
        if real in seen:
            dirnames[:] = []
            continue
        seen.add(real)

        dirnames.sort()
        for fname in sorted(filenames):
            path = Path(dirpath) / fname
            if path.suffix.lower() in DOC_EXTENSIONS and path.is_file():
                yield path


def collect_documents(
    source_dir: Path,
    report: BuildReport | None = None,
) -> list[Document]:
    """Parse every document under ``source_dir`` in walk order."""
    documents: list[Document] = []
    for path in iter_source_files(source_dir):
        rel = path.relative_to(source_dir).as_posix()
        try:
            doc, diagnostic = parse_document(path, source_dir)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to parse %s: %s", path, e)
            if report is not None:
                report.skipped.append(rel)
            continue

        if diagnostic:
            logger.warning("%s: %s (using default header)", rel, diagnostic)
            if report is not None:
                report.header_fallbacks.append(rel)
        documents.append(doc)
    return documents


# ── Search index ────────────────────────────────────────────────────


def build_search_index(documents: Sequence[Document]) -> str:
    """One entry per document, serialised as a single JSON array."""
    entries = [
        {
            "title": doc.label,
            "content": doc.content,
            "path": doc.relative_path.as_posix(),
            "version": doc.version,
        }
        for doc in documents
    ]
    return json.dumps(entries, ensure_ascii=False)


# ── Output layout ───────────────────────────────────────────────────


def group_by_version(documents: Sequence[Document]) -> dict[str | None, list[Document]]:
    """Group documents by version, keeping document order within a group."""
    groups: dict[str | None, list[Document]] = {}
    for doc in documents:
        groups.setdefault(doc.version, []).append(doc)
    return groups


def output_path_for(doc: Document, output_dir: Path) -> Path:
    """Where the rendered page for ``doc`` is written."""
    rel = doc.relative_path
    if doc.version:
        if rel.parts and rel.parts[0] == doc.version:
            rel = PurePosixPath(*rel.parts[1:])
        return output_dir / doc.version / rel.with_suffix(OUTPUT_EXTENSION)
    return output_dir / rel.with_suffix(OUTPUT_EXTENSION)


# ── Builder ─────────────────────────────────────────────────────────


class SiteBuilder:
    """Runs the full pipeline from ``source_dir`` into ``output_dir``.

    One instance is reused across rebuilds by the live-reload loop; it
    keeps no state between builds beyond the last report.
    """

    def __init__(
        self,
        source_dir: Path,
        output_dir: Path,
        config: SiteConfig | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.source_dir = Path(source_dir)
        self.output_dir = Path(output_dir)
        self.config = config or SiteConfig()
        self.renderer = renderer or TemplateRenderer.from_file()
        self.last_report: BuildReport | None = None

    @contextmanager
    def _stage(self, report: BuildReport, name: str, label: str) -> Iterator[StageResult]:
        sr = StageResult(name=name, label=label, status="running")
        report.stages.append(sr)
        start = time.monotonic()
        try:
            yield sr
            sr.status = "done"
        except OSError as e:
            sr.status = "error"
            sr.error = str(e)
            raise BuildError(f"{label} failed: {e}") from e
        except BuildError as e:
            sr.status = "error"
            sr.error = str(e)
            raise
        finally:
            sr.duration_ms = int((time.monotonic() - start) * 1000)

    def build(self, formats: str = "html") -> BuildReport:
        """Run every stage and return the report.

        Raises:
            BuildError: if the source is missing or the output tree
                cannot be created or written.
        """
        report = BuildReport(
            source_dir=str(self.source_dir),
            output_dir=str(self.output_dir),
            formats=parse_formats(formats),
        )
        self.last_report = report
        total_start = time.monotonic()

        if not self.source_dir.is_dir():
            raise BuildError(f"Source directory not found: {self.source_dir}")

        with self._stage(report, "clean", "Clean Output"):
            self._clean_output()

        with self._stage(report, "collect", "Collect Documents") as sr:
            documents = collect_documents(self.source_dir, report)
            sr.detail = {"documents": len(documents), "skipped": len(report.skipped)}

        with self._stage(report, "link", "Backlinks") as sr:
            documents = sort_documents(documents)
            sr.detail = {"backlinks": apply_backlinks(documents)}

        with self._stage(report, "navigate", "Navigation Tree") as sr:
            navigation = build_navigation(documents)
            sr.detail = {"nodes": len(navigation.nodes), "leaves": len(navigation.leaf_paths())}
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Navigation tree: %s", json.dumps(navigation.to_dict()))

        with self._stage(report, "index", "Search Index"):
            search_index = build_search_index(documents)

        if "html" in report.formats:
            with self._stage(report, "html", "Render HTML") as sr:
                report.pages = self._emit_html(documents, navigation, search_index, report)
                sr.detail = {"pages": report.pages, "errors": len(report.render_errors)}

        for fmt in ("pdf", "man"):
            if fmt in report.formats:
                exporter = get_exporter(fmt)
                with self._stage(report, fmt, f"{fmt.upper()} Export") as sr:
                    written = exporter(documents, self.config, self.output_dir) if exporter else 0
                    sr.detail = {"files": written}

        report.documents = len(documents)
        report.ok = True
        report.total_duration_ms = int((time.monotonic() - total_start) * 1000)
        logger.info(
            "Built %d document(s) into %s in %dms",
            report.documents, self.output_dir, report.total_duration_ms,
        )
        return report

    # ── Stages ──────────────────────────────────────────────────────

    def _clean_output(self) -> None:
        out = self.output_dir.resolve()
        src = self.source_dir.resolve()
        if out == src or out in src.parents:
            raise BuildError(f"Refusing to clean {out}: it contains the source directory")

        if self.output_dir.is_symlink() or self.output_dir.is_file():
            self.output_dir.unlink()
        elif self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _copy_assets(self) -> None:
        assets = self.output_dir / "assets"
        for src_name, dst_rel in STATIC_ASSETS:
            dst = assets / dst_rel
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(TEMPLATES_DIR / "assets" / src_name, dst)

    def _emit_html(
        self,
        documents: Sequence[Document],
        navigation: NavigationTree,
        search_index: str,
        report: BuildReport,
    ) -> int:
        self._copy_assets()
        index_path = self.output_dir / "assets" / f"search-index.{SEARCH_INDEX_FORMAT}"
        index_path.write_text(search_index, encoding="utf-8")

        pages = 0
        for version, docs in group_by_version(documents).items():
            version_dir = self.output_dir / version if version else self.output_dir
            version_dir.mkdir(parents=True, exist_ok=True)
            logger.debug("Rendering %d page(s) for version %s", len(docs), version or "none")

            for doc in docs:
                target = output_path_for(doc, self.output_dir)
                try:
                    self.renderer.render_page(doc, navigation, self.config, target)
                except OSError:
                    raise
                except Exception as e:
                    rel = doc.relative_path.as_posix()
                    logger.warning("Failed to render %s: %s", rel, e)
                    report.render_errors.append(rel)
                    continue
                pages += 1
        return pages
