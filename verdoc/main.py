"""
verdoc — CLI entrypoint.

Usage:
    python -m verdoc.main --help
    verdoc build --source docs --output dist
    verdoc dev --port 3000
    verdoc init my-docs
"""

from __future__ import annotations

import asyncio
import json
import sys
import tempfile
from pathlib import Path

import click

from verdoc import __version__
from verdoc.core.observability.logging_config import resolve_level, setup_logging_from_env

CONFIG_OPTION = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to verdoc.yml (default: auto-detect).",
)


def _fail(message: str) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def _load_config(config_path: Path | None):  # type: ignore[no-untyped-def]
    from verdoc.core.config.loader import ConfigError, load_config

    try:
        return load_config(config_path)
    except ConfigError as e:
        _fail(str(e))


@click.group()
@click.version_option(version=__version__, prog_name="verdoc")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """verdoc — versioned documentation site generator."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging_from_env(
        resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )


@cli.command()
@click.option("--source", "-s", type=click.Path(path_type=Path), default=Path("docs"),
              show_default=True, help="Source directory.")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=Path("dist"),
              show_default=True, help="Output directory.")
@click.option("--format", "-f", "formats", default="html", show_default=True,
              help="Export formats: html, pdf, man (comma-separated).")
@CONFIG_OPTION
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output the build report as JSON.")
@click.pass_context
def build(
    ctx: click.Context,
    source: Path,
    output: Path,
    formats: str,
    config_path: Path | None,
    as_json: bool,
) -> None:
    """Build the static site."""
    from verdoc.core.services.site_builder import BuildError, SiteBuilder

    config = _load_config(config_path)

    try:
        report = SiteBuilder(source, output, config).build(formats)
    except BuildError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if not ctx.obj.get("quiet", False):
        click.secho(f"✅ Build complete. Output: {output}", fg="green")
        click.echo(f"   {report.documents} document(s), {report.pages} page(s)")
        if report.skipped:
            click.secho(f"   ⚠️  Skipped {len(report.skipped)} unreadable file(s)", fg="yellow")
        if report.render_errors:
            click.secho(f"   ⚠️  {len(report.render_errors)} page(s) failed to render", fg="yellow")


@cli.command()
@click.option("--source", "-s", type=click.Path(path_type=Path), default=Path("docs"),
              show_default=True, help="Source directory.")
@click.option("--port", "-p", type=int, default=3000, show_default=True, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--debounce", type=float, default=None,
              help="Seconds to coalesce rapid changes (0 = rebuild on every event).")
@CONFIG_OPTION
def dev(
    source: Path,
    port: int,
    host: str,
    debounce: float | None,
    config_path: Path | None,
) -> None:
    """Start the live-reloading development server."""
    from verdoc.core.services.live_reload import DEFAULT_DEBOUNCE_S, LiveRebuildLoop, ServeError
    from verdoc.core.services.site_builder import BuildError, SiteBuilder
    from verdoc.ui.web.server import serve_live

    config = _load_config(config_path)
    output_dir = Path(tempfile.gettempdir()) / "verdoc"

    builder = SiteBuilder(source, output_dir, config)
    loop = LiveRebuildLoop(
        builder,
        debounce=DEFAULT_DEBOUNCE_S if debounce is None else debounce,
    )

    try:
        asyncio.run(serve_live(loop, host=host, port=port))
    except (BuildError, ServeError) as e:
        _fail(str(e))
    except KeyboardInterrupt:
        click.echo("\nServer stopped.")


@cli.command()
@click.argument("directory", type=click.Path(path_type=Path), default=Path("."))
def init(directory: Path) -> None:
    """Initialize a new documentation project."""
    from verdoc.core.services.scaffold import scaffold_project

    try:
        written = scaffold_project(directory)
    except OSError as e:
        _fail(f"Cannot initialize {directory}: {e}")

    for path in written:
        click.echo(f"   + {path}")
    click.secho(f"✅ Initialized project in {directory}", fg="green")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
