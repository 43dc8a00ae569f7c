"""
Plugin Factory.

This module builds live plugin instances from resolved descriptors.
"""

import logging
from typing import TYPE_CHECKING

from plughost.db.migrations import MigrationTracker
from plughost.db.store import InstalledPluginRecord
from plughost.plugin.base import PluginInterface
from plughost.plugin.descriptor import PluginDescriptor
from plughost.plugin.loader import LoaderError, load_class, plugin_module_prefix
from plughost.plugin.registry import ConfigResolver

if TYPE_CHECKING:
    from plughost.app import Application

logger = logging.getLogger(__name__)


class PluginFactory:
    """
    Creates plugin instances.

    Attributes:
        app: Host application
        resolver: Config resolver used to find each plugin's descriptor
    """

    def __init__(self, app: "Application", resolver: ConfigResolver):
        self.app = app
        self.resolver = resolver

    def create(self, handle: str, record: InstalledPluginRecord | None = None):
        """
        Create a plugin instance.

        Args:
            handle: Plugin handle
            record: The plugin's stored record, if it is installed

        Returns:
            The plugin, or None if its config or class is unusable
        """
        handle = handle.lower()
        descriptor = self.resolver.resolve(handle)
        if descriptor is None:
            return None

        self.register_aliases(handle, descriptor)

        try:
            cls = load_class(descriptor.class_ref)
        except LoaderError as e:
            logger.warning(f"Cannot load class for plugin {handle}: {e}")
            return None

        if not issubclass(cls, PluginInterface):
            logger.warning(
                f"{cls.__module__}.{cls.__qualname__} does not implement the plugin "
                f"interface; skipping {handle}"
            )
            return None

        plugin = cls(handle, self.app, descriptor)

        if record is not None and record.settings:
            settings = plugin.get_settings()
            if settings is not None:
                settings.set_attributes(record.settings, safe_only=False)

        if record is not None and record.id is not None:
            self.attach_migrator(plugin, handle, record.id)

        return plugin

    def register_aliases(self, handle: str, descriptor: PluginDescriptor) -> None:
        """Register a plugin's module aliases ahead of loading its class."""
        for prefix, path in descriptor.aliases.items():
            self.app.aliases.set_alias(prefix, path)

        # Lets plugin modules import each other as plughost.plugins.<handle>.*
        self.app.aliases.set_alias(
            plugin_module_prefix(handle), self.app.paths.plugins / handle
        )

    def attach_migrator(self, plugin, handle: str, plugin_id: int) -> MigrationTracker:
        """Give a plugin a migration tracker scoped to its stored id."""
        migrator = MigrationTracker(
            self.app.store,
            plugin_id,
            namespace=f"{plugin_module_prefix(handle)}.migrations",
            path=self.app.paths.plugins / handle / "migrations",
        )
        plugin.migrator = migrator
        return migrator
