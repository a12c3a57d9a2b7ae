"""
Tests for config loading — discovery, defaults and validation errors.
"""

import textwrap
from pathlib import Path

import pytest

from verdoc.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    find_config_file,
    load_config,
    save_config,
)
from verdoc.core.models.site import SiteConfig


def _write(path: Path, text: str) -> Path:
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


class TestFindConfig:
    def test_in_start_dir(self, tmp_path: Path):
        config = _write(tmp_path / CONFIG_FILE, "site: {}\n")
        assert find_config_file(tmp_path) == config.resolve()

    def test_walks_up(self, tmp_path: Path):
        config = _write(tmp_path / CONFIG_FILE, "site: {}\n")
        nested = tmp_path / "docs" / "v1"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == config.resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_config_file(tmp_path) is None


class TestLoadConfig:
    def test_full(self, tmp_path: Path):
        path = _write(tmp_path / CONFIG_FILE, """\
            site:
              title: Handbook
              versions: [latest, v2, v1]
            navigation:
              breadcrumbs: false
            theme:
              default_theme: dark
            search:
              enabled: false
        """)
        config = load_config(path)
        assert config.site.title == "Handbook"
        assert config.site.versions == ["latest", "v2", "v1"]
        assert config.navigation.breadcrumbs is False
        assert config.theme_name == "dark"
        assert config.search.enabled is False

    def test_partial_sections_use_defaults(self, tmp_path: Path):
        path = _write(tmp_path / CONFIG_FILE, "site:\n  title: Only a title\n")
        config = load_config(path)
        assert config.site.title == "Only a title"
        assert config.site.versions == ["latest"]
        assert config.navigation.breadcrumbs is True

    def test_empty_file(self, tmp_path: Path):
        path = _write(tmp_path / CONFIG_FILE, "")
        assert load_config(path) == SiteConfig()

    def test_autodetect_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        assert load_config() == SiteConfig()

    def test_autodetect_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        _write(tmp_path / CONFIG_FILE, "site:\n  title: Found\n")
        monkeypatch.chdir(tmp_path)
        assert load_config().site.title == "Found"

    def test_explicit_missing(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = _write(tmp_path / CONFIG_FILE, "site: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = _write(tmp_path / CONFIG_FILE, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_schema_violation(self, tmp_path: Path):
        path = _write(tmp_path / CONFIG_FILE, "navigation:\n  breadcrumbs: sometimes\n")
        with pytest.raises(ConfigError, match="Invalid site configuration"):
            load_config(path)


class TestSaveConfig:
    def test_written_file_loads_back(self, tmp_path: Path):
        config = SiteConfig.model_validate({"site": {"title": "Saved", "versions": ["v1", "v2"]}})
        path = tmp_path / "nested" / CONFIG_FILE
        save_config(config, path)
        assert "title: Saved" in path.read_text(encoding="utf-8")
        assert load_config(path) == config
