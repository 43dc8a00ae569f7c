"""
Shared fixtures: an application over a temporary SQLite database, and a
helper writing plugin packages into its plugins directory.
"""

import json
import textwrap
from pathlib import Path

import pytest

from plughost.app import Application
from plughost.config.host import DatabaseSettings, HostConfig, PathSettings

SEO_PLUGIN_SOURCE = """
from plughost.config import field
from plughost.config.runtime import SettingsModel
from plughost.plugin.base import Plugin as BasePlugin


class Settings(SettingsModel):
    fields = {
        "title_suffix": field(str, "", "Appended to page titles", max=20),
        "limit": field(int, 10, "Result limit", min=1, max=100),
    }


class Plugin(BasePlugin):
    def create_settings_model(self):
        return Settings()
"""


@pytest.fixture
def host_config(tmp_path):
    """Host configuration rooted in a temporary directory."""
    plugins = tmp_path / "plugins"
    vendor = tmp_path / "vendor"
    plugins.mkdir()
    vendor.mkdir()
    return HostConfig(
        paths=PathSettings(plugins=plugins, vendor=vendor),
        database=DatabaseSettings(url=f"sqlite:///{tmp_path / 'plughost.db'}"),
    )


@pytest.fixture
def app(host_config):
    """Initialized application, reset after the test."""
    application = Application(host_config)
    application.init()
    yield application
    application.reset()
    application.engine.dispose()


@pytest.fixture
def write_plugin(host_config):
    """
    Write a plugin package under the plugins directory.

    Returns a function taking the handle, the manifest dict and optional
    extra files (relative path -> source), returning the plugin directory.
    """

    def _write(handle: str, manifest: dict, files: dict[str, str] | None = None) -> Path:
        plugin_dir = Path(host_config.paths.plugins) / handle
        plugin_dir.mkdir(parents=True, exist_ok=True)
        (plugin_dir / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")

        for relative, source in (files or {}).items():
            path = plugin_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source), encoding="utf-8")

        return plugin_dir

    return _write


@pytest.fixture
def seo_plugin(write_plugin):
    """An on-disk plugin "seo" whose class is found through its autoload path."""
    return write_plugin(
        "seo",
        {
            "name": "acme/seo",
            "version": "1.2.0",
            "description": "Search engine tools",
            "authors": [{"name": "Acme", "homepage": "https://acme.test"}],
            "autoload": {"acme_seo": "src/"},
            "extra": {"name": "SEO", "schemaVersion": "1.1.0"},
        },
        {"src/plugin.py": SEO_PLUGIN_SOURCE},
    )
