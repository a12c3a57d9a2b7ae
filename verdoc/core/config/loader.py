"""
Configuration loader — reads verdoc.yml into a SiteConfig.

It reads YAML, validates against the Pydantic schema, and returns a
typed config. A project without a config file builds with defaults.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from verdoc.core.models.site import SiteConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "verdoc.yml"


class ConfigError(Exception):
    """Raised when the site configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for verdoc.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to verdoc.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> SiteConfig:
    """Load and validate the site configuration.

    Args:
        path: Explicit path to a config file. If None, searches upward
            and falls back to defaults when nothing is found.

    Returns:
        Validated SiteConfig.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using default site config", CONFIG_FILE)
            return SiteConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading site config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = SiteConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid site configuration: {e}") from e

    logger.info(
        "Loaded site config '%s' with %d version(s)",
        config.site.title, len(config.site.versions),
    )
    return config


def save_config(config: SiteConfig, path: Path) -> None:
    """Write a SiteConfig to disk as YAML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(config.model_dump(), sort_keys=False),
        encoding="utf-8",
    )
