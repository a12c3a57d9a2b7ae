"""
Preview server — Flask app factory and the live dev server.

``create_app`` serves a built output tree. ``serve_live`` wires it to a
``LiveRebuildLoop``: initial build, bind the listener, start the
watcher, then serve until interrupted.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from flask import Flask
from werkzeug.serving import BaseWSGIServer, make_server

from verdoc.core.services.live_reload import LiveRebuildLoop, ServeError

logger = logging.getLogger(__name__)


def create_app(output_dir: Path, live_loop: LiveRebuildLoop | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        output_dir: Root of the built site to serve.
        live_loop: Optional rebuild loop exposed at ``/_verdoc/status``.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__, static_folder=None)

    app.config["OUTPUT_DIR"] = str(output_dir)
    app.config["LIVE_LOOP"] = live_loop

    from verdoc.ui.web.routes_site import site_bp

    app.register_blueprint(site_bp)

    logger.debug("Preview app created (output=%s)", output_dir)
    return app


def bind_server(app: Flask, host: str, port: int) -> BaseWSGIServer:
    """Bind the listening socket.

    Raises:
        ServeError: if the port cannot be bound.
    """
    try:
        return make_server(host, port, app, threaded=True)
    except (OSError, SystemExit) as e:
        raise ServeError(f"Cannot listen on {host}:{port}: {e}") from e


async def serve_live(
    loop: LiveRebuildLoop,
    host: str = "127.0.0.1",
    port: int = 3000,
) -> None:
    """Build, then serve ``loop.output_dir`` while rebuilding on change.

    Raises:
        BuildError: if the initial build fails.
        ServeError: if the port or the watcher cannot be set up.
    """
    loop.attach()
    await loop.initial_build()

    app = create_app(loop.output_dir, live_loop=loop)
    server = bind_server(app, host, port)
    try:
        loop.start()
    except ServeError:
        server.server_close()
        raise

    try:
        logger.warning("Development server running at http://%s:%d/", host, server.port)
        logger.warning("Watching %s for changes...", loop.source_dir)
        await asyncio.to_thread(server.serve_forever)
    finally:
        server.shutdown()
        server.server_close()
        await loop.stop()
