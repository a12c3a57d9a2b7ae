"""
Site routes — serve the built output tree.

  GET /                  → <output>/index.html
  GET /assets/<path>     → static assets (CSS, JS, search index)
  GET /<path>            → any output-relative file; directories resolve
                           to their index.html
  GET /_verdoc/status    → live rebuild loop state (JSON)

Reads go straight to disk and are not synchronised with a rebuild in
progress.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path

from flask import Blueprint, Response, abort, current_app, jsonify

logger = logging.getLogger(__name__)

site_bp = Blueprint("site", __name__)


def _output_dir() -> Path:
    return Path(current_app.config["OUTPUT_DIR"])


def _resolve(root: Path, filepath: str) -> Path | None:
    """Map a request path onto a file under ``root``, or None."""
    root = root.resolve()
    requested = (root / filepath).resolve()
    if requested != root and root not in requested.parents:
        return None  # escapes the output tree
    if requested.is_dir():
        requested = requested / "index.html"
    return requested if requested.is_file() else None


def _serve(root: Path, filepath: str) -> Response:
    target = _resolve(root, filepath)
    if target is None:
        abort(404, description=f"File not found: {filepath}")

    try:
        data = target.read_bytes()
    except OSError as e:
        logger.error("Failed to read %s: %s", target, e)
        abort(500, description="Failed to read file")

    mime = mimetypes.guess_type(str(target))[0] or "application/octet-stream"
    return Response(data, mimetype=mime)


@site_bp.route("/_verdoc/status")
def live_status():  # type: ignore[no-untyped-def]
    """State of the live rebuild loop, if one is attached."""
    live = current_app.config.get("LIVE_LOOP")
    if live is None:
        return jsonify({"state": "static"})
    return jsonify(live.status())


@site_bp.route("/")
def index():  # type: ignore[no-untyped-def]
    return _serve(_output_dir(), "index.html")


@site_bp.route("/assets/<path:filepath>")
def assets(filepath: str):  # type: ignore[no-untyped-def]
    return _serve(_output_dir() / "assets", filepath)


@site_bp.route("/<path:filepath>")
def page(filepath: str):  # type: ignore[no-untyped-def]
    return _serve(_output_dir(), filepath)
