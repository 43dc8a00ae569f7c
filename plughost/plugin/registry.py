"""
Plugin Config Resolver.

This module turns a plugin handle into a validated PluginDescriptor.

Key features:
- Precomputed registry loaded from <vendor>/plughost/plugins.json
- Programmatic registration (class objects allowed)
- Fallback to scraping <plugins>/<handle>/manifest.json
- Case-insensitive handles
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from plughost.plugin.descriptor import PluginDescriptor
from plughost.plugin.errors import InvalidPluginConfigError
from plughost.plugin.manifest import MANIFEST_FILE, ManifestError, read_manifest, scrape_config

logger = logging.getLogger(__name__)

REGISTRY_FILE = Path("plughost") / "plugins.json"


class ConfigResolver:
    """
    Resolves plugin configs from the registry or from manifests on disk.

    Attributes:
        plugins_path: Directory holding one sub-directory per plugin
    """

    def __init__(self, plugins_path: Path):
        """
        Initialize ConfigResolver.

        Args:
            plugins_path: Directory holding one sub-directory per plugin
        """
        self.plugins_path = plugins_path
        self._registry: dict[str, dict[str, Any]] = {}

    def load_registry(self, path: Path) -> int:
        """
        Load the package manager's plugin registry file.

        The file holds either a JSON object of handle -> config, or a list
        of configs each carrying a "handle" key. A missing file is not an
        error; an unreadable one is logged and ignored.

        Args:
            path: Registry file, usually <vendor>/plughost/plugins.json

        Returns:
            Number of configs registered
        """
        if not path.is_file():
            return 0

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring plugin registry {path}: {e}")
            return 0

        if isinstance(data, list):
            entries = [
                (entry.get("handle"), entry)
                for entry in data
                if isinstance(entry, dict)
            ]
        elif isinstance(data, dict):
            entries = list(data.items())
        else:
            logger.warning(f"Ignoring plugin registry {path}: expected an object or a list")
            return 0

        count = 0
        for handle, config in entries:
            if not handle or not isinstance(config, Mapping):
                logger.warning(f"Skipping malformed registry entry in {path}")
                continue
            config = {key: value for key, value in config.items() if key != "handle"}
            self.register(str(handle), config)
            count += 1

        logger.debug(f"Loaded {count} plugin config(s) from {path}")
        return count

    def register(self, handle: str, config: Mapping[str, Any]) -> None:
        """
        Register a plugin config under a handle.

        Args:
            handle: Plugin handle (stored lower-cased)
            config: Raw config; "class" may be a class object
        """
        self._registry[handle.lower()] = dict(config)

    def unregister(self, handle: str) -> None:
        self._registry.pop(handle.lower(), None)

    def clear(self) -> None:
        self._registry.clear()

    def handles(self) -> list[str]:
        """Registry handles followed by plugin directory names, lower-cased."""
        handles = list(self._registry)
        if self.plugins_path.is_dir():
            for entry in sorted(self.plugins_path.iterdir()):
                if not entry.is_dir() or entry.name.startswith((".", "_")):
                    continue
                handle = entry.name.lower()
                if handle not in handles:
                    handles.append(handle)
        return handles

    def get_config(self, handle: str) -> dict[str, Any] | None:
        """
        Return the raw config for a handle.

        Registry entries take precedence over the plugin's manifest.
        """
        handle = handle.lower()
        if handle in self._registry:
            return dict(self._registry[handle])
        return self._scrape(handle)

    def _scrape(self, handle: str) -> dict[str, Any] | None:
        plugin_path = self.plugins_path / handle
        manifest_path = plugin_path / MANIFEST_FILE
        if not manifest_path.is_file():
            logger.debug(f"No {MANIFEST_FILE} for plugin {handle}")
            return None

        try:
            manifest = read_manifest(manifest_path)
        except ManifestError as e:
            logger.warning(str(e))
            return None

        config = scrape_config(handle, manifest, plugin_path)
        if config is None:
            logger.warning(f"Could not determine the plugin class for {handle}")
        return config

    def resolve(self, handle: str) -> PluginDescriptor | None:
        """
        Resolve a handle to a descriptor.

        Returns:
            The descriptor, or None if no valid config exists
        """
        config = self.get_config(handle)
        if config is None:
            return None

        try:
            return PluginDescriptor.from_config(handle, config)
        except InvalidPluginConfigError as e:
            logger.warning(str(e))
            return None
