"""
Logging configuration — one setup call from the CLI entrypoint.

Every module logs through ``logging.getLogger(__name__)``; this module
decides where those records go and how they look.

Most of what a build logs is per-document diagnostics (a skipped file, a
header that fell back to defaults, a page that failed to render). At the
default level those print like compiler diagnostics, one per line:

    warning: v1/bad.md: invalid YAML header: ... (using default header)

``-v`` adds timestamps and the emitting module, ``--debug`` adds file and
line. The level comes from the CLI flags, then ``VERDOC_LOG_LEVEL``, then
WARNING. ``VERDOC_LOG_FILE`` / ``VERDOC_LOG_FILE_LEVEL`` add a detailed
log file, e.g. to keep a record of a long ``verdoc dev`` session.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "VERDOC_LOG_LEVEL"
ENV_FILE = "VERDOC_LOG_FILE"
ENV_FILE_LEVEL = "VERDOC_LOG_FILE_LEVEL"

# Watcher, HTTP access log and the Markdown parser are chatty below WARNING
_NOISY_LOGGERS = ("watchdog", "werkzeug", "markdown_it")

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"


class DiagnosticFormatter(logging.Formatter):
    """``warning: message`` lines for build diagnostics."""

    def __init__(self) -> None:
        super().__init__("%(levelname)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        return text.replace(record.levelname, record.levelname.lower(), 1)


def console_formatter(level: int) -> logging.Formatter:
    """Pick the console format for a numeric level."""
    if level <= logging.DEBUG:
        return logging.Formatter(_DETAILED, datefmt="%H:%M:%S")
    if level <= logging.INFO:
        return logging.Formatter("%(asctime)s [%(name)s] %(message)s", datefmt="%H:%M:%S")
    return DiagnosticFormatter()


def resolve_level(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """CLI flags win over ``VERDOC_LOG_LEVEL``; WARNING otherwise."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name.
        log_file: Optional log file; always written in the detailed format.
        log_file_level: Level for the log file (default: ``level``).
        quiet_third_party: Hold watchdog, werkzeug and markdown_it at
            WARNING unless the console is at DEBUG.
    """
    console_level = _parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(console_formatter(console_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_DETAILED, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(fh)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def setup_logging_from_env(level: str, quiet_third_party: bool = True) -> None:
    """``setup_logging`` with the log file taken from the environment."""
    setup_logging(
        level=level,
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
        quiet_third_party=quiet_third_party,
    )


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
