"""
Live rebuild loop — keeps a served output tree in step with its sources.

States
──────
  BUILDING    initial build in progress, nothing served yet
  READY       last build finished, output tree is complete
  REBUILDING  a source change triggered a new build over a READY tree

Scheduling
──────────
The loop runs on an asyncio event loop. A watchdog observer thread
watches the source tree recursively; its callback only hands the event
to the event loop (``call_soon_threadsafe``) and never builds inline.
A single consumer task drains the queue and runs each rebuild in a
worker thread.

The ``SiteBuilder`` is the shared generator handle. A rebuild takes it
under an ``asyncio.Lock``, runs the full pipeline, then puts it back, so
at most one build runs at a time. There is no cancellation and no
timeout: a queued rebuild always runs to completion after the current
one.

With ``debounce > 0`` events arriving within that window after the
first one (including any that piled up during the previous rebuild) are
merged into one rebuild. With ``debounce == 0`` every event triggers its
own rebuild and rapid edits build up a backlog.

Consistency
───────────
HTTP reads are not synchronised with rebuilds. A request served while
REBUILDING reads whatever is on disk and may see a partially rewritten
output tree.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from verdoc.core.services.site_builder import BuildReport, SiteBuilder

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_S = 0.2
"""Seconds of quiet after a change before rebuilding."""

_REBUILD_EVENTS = frozenset({"modified", "created", "deleted", "moved"})


class ServeError(Exception):
    """Raised when the preview server or its watcher cannot start."""


class LoopState(str, Enum):
    BUILDING = "building"
    READY = "ready"
    REBUILDING = "rebuilding"


class SourceChangeHandler(FileSystemEventHandler):
    """Forwards source-tree changes to a thread-safe callback."""

    def __init__(self, notify: Callable[[str], None]) -> None:
        super().__init__()
        self._notify = notify

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _REBUILD_EVENTS:
            return
        # A file write also modifies its parent directory
        if event.is_directory and event.event_type == "modified":
            return
        self._notify(str(event.src_path))


class LiveRebuildLoop:
    """Owns the generator handle, the rebuild queue and the watcher."""

    def __init__(
        self,
        builder: SiteBuilder,
        debounce: float = DEFAULT_DEBOUNCE_S,
        formats: str = "html",
    ) -> None:
        self._builder: SiteBuilder | None = builder
        self.source_dir = builder.source_dir
        self.output_dir = builder.output_dir
        self.debounce = debounce
        self.formats = formats

        self.state = LoopState.BUILDING
        self.builds = 0
        self.failed_builds = 0
        self.last_error = ""
        self.last_report: BuildReport | None = None

        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[str] | None = None
        self._consumer: asyncio.Task | None = None
        self._observer: Observer | None = None

    # ── Building ────────────────────────────────────────────────────

    async def initial_build(self) -> BuildReport:
        """Run the first build. Failure here is fatal and propagates."""
        self.state = LoopState.BUILDING
        async with self._lock:
            builder = self._take_builder()
            try:
                report = await asyncio.to_thread(builder.build, self.formats)
            finally:
                self._builder = builder
        self._record(report)
        self.state = LoopState.READY
        return report

    async def rebuild(self) -> BuildReport | None:
        """Run one full rebuild. Failures are logged; the loop stays up."""
        async with self._lock:
            builder = self._take_builder()
            self.state = LoopState.REBUILDING
            report: BuildReport | None = None
            try:
                report = await asyncio.to_thread(builder.build, self.formats)
            except Exception as e:
                self.failed_builds += 1
                self.last_error = str(e)
                logger.error("Rebuild failed: %s", e)
            else:
                self._record(report)
            finally:
                self._builder = builder
                self.state = LoopState.READY
        return report

    def _take_builder(self) -> SiteBuilder:
        builder, self._builder = self._builder, None
        if builder is None:
            raise RuntimeError("generator handle already taken")
        return builder

    def _record(self, report: BuildReport) -> None:
        self.builds += 1
        self.last_error = ""
        self.last_report = report
        logger.info("Build #%d finished: %d document(s)", self.builds, report.documents)

    # ── Event hand-off ──────────────────────────────────────────────

    def attach(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Bind to the running event loop and create the rebuild queue."""
        self._loop = loop or asyncio.get_running_loop()
        self._queue = asyncio.Queue()

    def notify(self, path: str) -> None:
        """Queue a rebuild. Safe to call from any thread."""
        if self._loop is None or self._queue is None:
            raise RuntimeError("LiveRebuildLoop.attach() has not been called")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, path)

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def _drain_within(self, window: float) -> int:
        """Swallow events arriving within ``window`` seconds; return count."""
        assert self._loop is not None and self._queue is not None
        deadline = self._loop.time() + window
        merged = 0
        while True:
            remaining = deadline - self._loop.time()
            if remaining <= 0:
                return merged
            try:
                await asyncio.wait_for(self._queue.get(), remaining)
            except asyncio.TimeoutError:
                return merged
            merged += 1

    async def consume(self) -> None:
        """Single consumer: one rebuild per event, or per debounced burst."""
        if self._queue is None:
            raise RuntimeError("LiveRebuildLoop.attach() has not been called")
        while True:
            path = await self._queue.get()
            merged = await self._drain_within(self.debounce) if self.debounce > 0 else 0
            logger.info(
                "Change detected: %s%s, rebuilding",
                path, f" (+{merged} more)" if merged else "",
            )
            await self.rebuild()

    # ── Lifecycle ───────────────────────────────────────────────────

    def start_watching(self) -> None:
        """Start the watchdog observer on the source tree.

        Raises:
            ServeError: if the watcher cannot be initialised.
        """
        handler = SourceChangeHandler(self.notify)
        observer = Observer()
        try:
            observer.schedule(handler, str(self.source_dir), recursive=True)
            observer.start()
        except OSError as e:
            raise ServeError(f"Cannot watch {self.source_dir}: {e}") from e
        self._observer = observer
        logger.info("Watching %s for changes", self.source_dir)

    def start(self) -> asyncio.Task:
        """Attach, start the watcher and the consumer task."""
        if self._queue is None:
            self.attach()
        self.start_watching()
        self._consumer = asyncio.create_task(self.consume(), name="verdoc-rebuild")
        return self._consumer

    async def stop(self) -> None:
        if self._observer is not None:
            observer, self._observer = self._observer, None
            observer.stop()
            await asyncio.to_thread(observer.join)
        if self._consumer is not None:
            consumer, self._consumer = self._consumer, None
            consumer.cancel()
            try:
                await consumer
            except asyncio.CancelledError:
                pass

    def status(self) -> dict:
        return {
            "state": self.state.value,
            "builds": self.builds,
            "failed_builds": self.failed_builds,
            "pending": self.pending,
            "last_error": self.last_error,
            "output_dir": str(Path(self.output_dir)),
        }
