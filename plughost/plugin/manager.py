"""
Plugin Manager.

This module provides plugin lifecycle management.

Key features:
- One-time bulk load of enabled plugins, guarded against re-entrancy
- Transactional install/uninstall with rollback on hook failure
- Enable/disable toggling the stored flag and the live registry together
- Settings persistence, version reconciliation and license keys
- Before/after events around every transition
"""

import inspect
import logging
import mimetypes
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Any

from plughost.core.event_bus import EventBus
from plughost.core.versions import compare_versions
from plughost.db.store import InstalledPluginRecord, utcnow
from plughost.plugin import events
from plughost.plugin.errors import InvalidPluginError
from plughost.plugin.events import PluginEvent
from plughost.plugin.factory import PluginFactory
from plughost.plugin.license import LicenseKeyStatus, normalize_license_key
from plughost.plugin.loader import LoaderError, load_class
from plughost.plugin.registry import REGISTRY_FILE, ConfigResolver

if TYPE_CHECKING:
    from plughost.app import Application

logger = logging.getLogger(__name__)

ICON_FILE = Path("resources") / "icon.svg"
DEFAULT_ICON = "default_plugin.svg"

_DIGITS = re.compile(r"(\d+)")


def natural_key(text: str) -> list[Any]:
    """Sort key ordering text case-insensitively, with numbers by value."""
    return [int(part) if part.isdigit() else part.lower() for part in _DIGITS.split(text)]


@dataclass
class PluginInfo:
    """
    Information about an available plugin.

    Attributes:
        handle: Plugin handle
        name: Declared plugin name
        version: Declared release version
        schema_version: Declared schema version
        developer: Developer name
        description: Short description
        is_installed: Whether the plugin has a stored record
        is_enabled: Whether the plugin is live
        has_settings: Whether the live plugin has a settings model
        config: The plugin's validated config
    """

    handle: str
    name: str
    version: str
    schema_version: str
    developer: str | None = None
    description: str | None = None
    is_installed: bool = False
    is_enabled: bool = False
    has_settings: bool = False
    config: dict[str, Any] = field(default_factory=dict)


class PluginsService:
    """
    Plugin lifecycle manager.

    Owns the runtime registry of enabled plugins and the cache of stored
    plugin records. Every operation runs under one re-entrant lock.
    """

    def __init__(self, app: "Application"):
        """
        Initialize PluginsService.

        Args:
            app: Host application
        """
        self.app = app
        self.events = EventBus()
        self.resolver = ConfigResolver(app.paths.plugins)
        self.factory = PluginFactory(app, self.resolver)

        self._lock = threading.RLock()
        self._plugins: dict[str, Any] = {}
        self._installed: dict[str, InstalledPluginRecord] = {}
        self._plugins_loaded = False
        self._loading_plugins = False

    def init(self) -> None:
        """Load the package manager's plugin registry."""
        self.resolver.load_registry(self.app.paths.vendor / REGISTRY_FILE)

    def reset(self) -> None:
        """Unregister every live plugin and forget all cached state."""
        with self._lock:
            for handle in list(self._plugins):
                self._unregister_plugin(handle)
            self._installed.clear()
            self._plugins_loaded = False
            self._loading_plugins = False
            self.resolver.clear()

    def on(self, event_id: str, callback: Callable, priority: int = 0) -> None:
        """Subscribe to a lifecycle event (see plughost.plugin.events)."""
        self.events.register_consumer(event_id, callback, priority)

    def _fire(self, event_id: str, plugin: Any = None) -> None:
        self.events.dispatch(event_id, PluginEvent(plugin=plugin))

    # Loading

    def load_plugins(self) -> None:
        """
        Load every enabled plugin.

        Runs once per service lifetime. Does nothing while the application
        isn't installed or is updating, and when called again during the load.
        """
        with self._lock:
            if (
                self._plugins_loaded
                or self._loading_plugins
                or not self.app.is_installed
                or self.app.is_updating
            ):
                return

            self._loading_plugins = True
            try:
                self._fire(events.BEFORE_LOAD_PLUGINS)

                self._installed = self.app.store.all_records()

                for handle, record in self._installed.items():
                    if not record.enabled:
                        continue

                    try:
                        plugin = self.factory.create(handle, record)
                    except Exception:
                        logger.exception(f"Failed to create plugin {handle}")
                        continue

                    if plugin is None:
                        logger.warning(f"Skipping plugin {handle}: it could not be created")
                        continue

                    self.sync_plugin_version(plugin)
                    self._register_plugin(handle, plugin)
            finally:
                self._loading_plugins = False

            self._plugins_loaded = True
            logger.info(f"Loaded {len(self._plugins)} plugin(s)")

            self._fire(events.AFTER_LOAD_PLUGINS)

    def are_plugins_loaded(self) -> bool:
        return self._plugins_loaded

    def get_plugin(self, handle: str):
        """
        Return an enabled plugin.

        Returns:
            The live plugin, or None if it isn't enabled
        """
        handle = handle.lower()
        with self._lock:
            self.load_plugins()
            return self._plugins.get(handle)

    def get_all_plugins(self) -> dict[str, Any]:
        """All enabled plugins, indexed by handle."""
        with self._lock:
            self.load_plugins()
            return dict(self._plugins)

    # Lifecycle

    def enable_plugin(self, handle: str) -> bool:
        """
        Enable an installed plugin.

        Returns:
            True once the plugin is enabled

        Raises:
            InvalidPluginError: If the plugin isn't installed or can't be created
        """
        handle = handle.lower()
        with self._lock:
            self.load_plugins()

            record = self._installed.get(handle)
            if record is None:
                raise InvalidPluginError(handle, "not installed")

            if record.enabled:
                return True

            plugin = self.factory.create(handle, record)
            if plugin is None:
                raise InvalidPluginError(handle)

            self._fire(events.BEFORE_ENABLE_PLUGIN, plugin)

            self.app.store.update(handle, enabled=True)
            record.enabled = True

            self.sync_plugin_version(plugin)
            self._register_plugin(handle, plugin)
            logger.info(f"Enabled plugin {handle}")

            self._fire(events.AFTER_ENABLE_PLUGIN, plugin)
            return True

    def disable_plugin(self, handle: str) -> bool:
        """
        Disable an installed plugin.

        Returns:
            True once the plugin is disabled

        Raises:
            InvalidPluginError: If the plugin isn't installed or isn't live
        """
        handle = handle.lower()
        with self._lock:
            self.load_plugins()

            record = self._installed.get(handle)
            if record is None:
                raise InvalidPluginError(handle, "not installed")

            if not record.enabled:
                return True

            plugin = self._plugins.get(handle)
            if plugin is None:
                raise InvalidPluginError(handle)

            self._fire(events.BEFORE_DISABLE_PLUGIN, plugin)

            self.app.store.update(handle, enabled=False)
            record.enabled = False
            self._unregister_plugin(handle)
            logger.info(f"Disabled plugin {handle}")

            self._fire(events.AFTER_DISABLE_PLUGIN, plugin)
            return True

    def install_plugin(self, handle: str) -> bool:
        """
        Install a plugin.

        The record insert and the plugin's own install() run in one
        transaction; if install() returns False nothing is kept.

        Returns:
            True if the plugin is installed, False if its install() failed

        Raises:
            InvalidPluginError: If the plugin can't be created
        """
        handle = handle.lower()
        with self._lock:
            self.load_plugins()

            if handle in self._installed:
                return True

            plugin = self.factory.create(handle)
            if plugin is None:
                raise InvalidPluginError(handle)

            self._fire(events.BEFORE_INSTALL_PLUGIN, plugin)

            transaction = self.app.store.begin()
            try:
                record = self.app.store.insert(
                    handle,
                    version=plugin.version,
                    schema_version=plugin.schema_version,
                    enabled=True,
                    install_date=utcnow(),
                )
                self.factory.attach_migrator(plugin, handle, record.id)

                if plugin.install() is False:
                    transaction.rollback()
                    logger.warning(f"Install of plugin {handle} was aborted")
                    return False

                transaction.commit()
            except Exception:
                transaction.rollback()
                raise

            self._installed[handle] = record
            self._register_plugin(handle, plugin)
            logger.info(f"Installed plugin {handle} {plugin.version}")

            self._fire(events.AFTER_INSTALL_PLUGIN, plugin)
            return True

    def uninstall_plugin(self, handle: str) -> bool:
        """
        Uninstall a plugin.

        The plugin's own uninstall() runs first, then its record and
        migration history are deleted, all in one transaction.

        A handle that was never installed is an error here rather than a
        no-op success, matching enable_plugin and disable_plugin.

        Returns:
            True if the plugin was uninstalled, False if its uninstall() failed

        Raises:
            InvalidPluginError: If the plugin isn't installed or can't be created
        """
        handle = handle.lower()
        with self._lock:
            self.load_plugins()

            record = self._installed.get(handle)
            if record is None:
                raise InvalidPluginError(handle, "not installed")

            if record.enabled:
                plugin = self._plugins.get(handle)
            else:
                plugin = self.factory.create(handle, record)

            if plugin is None:
                raise InvalidPluginError(handle)

            self._fire(events.BEFORE_UNINSTALL_PLUGIN, plugin)

            transaction = self.app.store.begin()
            try:
                if plugin.uninstall() is False:
                    transaction.rollback()
                    logger.warning(f"Uninstall of plugin {handle} was aborted")
                    return False

                self.app.store.delete(record.id)
                transaction.commit()
            except Exception:
                transaction.rollback()
                raise

            self._unregister_plugin(handle)
            del self._installed[handle]
            logger.info(f"Uninstalled plugin {handle}")

            self._fire(events.AFTER_UNINSTALL_PLUGIN, plugin)
            return True

    def save_plugin_settings(self, plugin, settings: dict[str, Any]) -> bool:
        """
        Validate and persist a plugin's settings.

        Args:
            plugin: The plugin
            settings: New setting values

        Returns:
            Whether the settings were saved
        """
        with self._lock:
            model = plugin.get_settings()
            if model is None:
                logger.warning(f"Plugin {plugin.get_handle()} has no settings")
                return False

            model.set_attributes(settings, safe_only=False)

            if not model.validate():
                logger.info(f"Settings for {plugin.get_handle()} failed validation: {model.errors}")
                return False

            self._fire(events.BEFORE_SAVE_PLUGIN_SETTINGS, plugin)

            handle = plugin.get_handle()
            values = model.to_dict()
            affected = self.app.store.update(handle, settings=values)
            if handle in self._installed:
                self._installed[handle].settings = values

            self._fire(events.AFTER_SAVE_PLUGIN_SETTINGS, plugin)
            return bool(affected)

    # Versions

    def has_version_changed(self, plugin) -> bool:
        """Whether the plugin's release version differs from the stored one."""
        record = self.get_stored_plugin_info(plugin.get_handle())
        return record is not None and plugin.version != record.version

    def requires_schema_update(self, plugin) -> bool:
        """Whether the plugin's schema version is ahead of the stored one."""
        record = self.get_stored_plugin_info(plugin.get_handle())
        if record is None:
            return False
        return compare_versions(plugin.schema_version, record.schema_version) > 0

    def sync_plugin_version(self, plugin) -> bool:
        """
        Store a plugin's new release version when its schema is unchanged.

        Skipped in maintenance mode, and when the schema version moved,
        since the pending schema update has to record the version itself.

        Returns:
            True if the stored version was updated
        """
        with self._lock:
            if self.app.in_maintenance_mode:
                return False
            if not self.has_version_changed(plugin) or self.requires_schema_update(plugin):
                return False

            handle = plugin.get_handle()
            self.app.store.update(handle, version=plugin.version)
            self._installed[handle].version = plugin.version
            logger.info(f"Plugin {handle} is now at version {plugin.version}")
            return True

    # Info

    def get_stored_plugin_info(self, handle: str) -> InstalledPluginRecord | None:
        """The stored record of an installed plugin, if any."""
        handle = handle.lower()
        with self._lock:
            self.load_plugins()
            return self._installed.get(handle)

    def get_config(self, handle: str) -> dict[str, Any] | None:
        """A plugin's validated config, or None if it can't be resolved."""
        handle = handle.lower()
        descriptor = self.resolver.resolve(handle)
        return descriptor.to_config() if descriptor is not None else None

    def get_base_path(self, handle: str) -> Path:
        """
        Return the directory holding a plugin's class.

        Raises:
            InvalidPluginError: If the plugin's class can't be found
        """
        handle = handle.lower()
        if self.are_plugins_loaded():
            plugin = self.get_plugin(handle)
            if plugin is not None and hasattr(plugin, "base_path"):
                return plugin.base_path

        descriptor = self.resolver.resolve(handle)
        if descriptor is None:
            raise InvalidPluginError(handle)

        self.factory.register_aliases(handle, descriptor)
        try:
            cls = load_class(descriptor.class_ref)
        except LoaderError as e:
            raise InvalidPluginError(handle, str(e)) from e

        return Path(inspect.getfile(cls)).resolve().parent

    def get_all_plugin_info(self) -> list[PluginInfo]:
        """
        Info about every available plugin, installed or not.

        Returns:
            PluginInfo list sorted by name (case-insensitive, natural order)
        """
        with self._lock:
            self.load_plugins()

            info = []
            for handle in self.resolver.handles():
                descriptor = self.resolver.resolve(handle)
                if descriptor is None:
                    continue

                plugin = self._plugins.get(handle)
                info.append(
                    PluginInfo(
                        handle=handle,
                        name=descriptor.name,
                        version=descriptor.version,
                        schema_version=descriptor.schema_version,
                        developer=descriptor.developer,
                        description=descriptor.description,
                        is_installed=handle in self._installed,
                        is_enabled=plugin is not None,
                        has_settings=plugin is not None and plugin.get_settings() is not None,
                        config=descriptor.to_config(),
                    )
                )

            info.sort(key=lambda item: natural_key(item.name))
            return info

    def get_plugin_icon_svg(self, handle: str) -> bytes:
        """A plugin's SVG icon, or the default icon if it has none."""
        handle = handle.lower()
        icon_path = self.app.paths.plugins / handle / ICON_FILE
        if icon_path.is_file() and _is_svg(icon_path):
            return icon_path.read_bytes()
        return (resources.files("plughost") / "resources" / DEFAULT_ICON).read_bytes()

    # License keys

    def _require_plugin(self, handle: str):
        plugin = self.get_plugin(handle)
        if plugin is None:
            raise InvalidPluginError(handle, "not enabled")
        return plugin

    def get_plugin_license_key(self, handle: str) -> str | None:
        """
        Raises:
            InvalidPluginError: If the plugin isn't enabled
        """
        handle = handle.lower()
        with self._lock:
            self._require_plugin(handle)
            return self._installed[handle].license_key

    def set_plugin_license_key(self, handle: str, license_key: str | None) -> bool:
        """
        Store a plugin's license key.

        The key is normalized to uppercase letters and digits. A new key
        resets any cached license key status to unknown.

        Args:
            handle: Plugin handle
            license_key: The key, or None/empty to clear it

        Returns:
            True once the key is stored

        Raises:
            InvalidPluginError: If the plugin isn't enabled
            InvalidLicenseKeyError: If the key isn't 24 characters once normalized
        """
        handle = handle.lower()
        with self._lock:
            plugin = self._require_plugin(handle)
            normalized = normalize_license_key(license_key)

            handle = plugin.get_handle()
            self.app.store.update(handle, license_key=normalized)
            self._installed[handle].license_key = normalized

            if self.get_plugin_license_key_status(handle) != LicenseKeyStatus.UNKNOWN:
                self.set_plugin_license_key_status(handle, LicenseKeyStatus.UNKNOWN)

            return True

    def get_plugin_license_key_status(self, handle: str) -> LicenseKeyStatus:
        """
        Raises:
            InvalidPluginError: If the plugin isn't enabled
        """
        handle = handle.lower()
        with self._lock:
            self._require_plugin(handle)
            return self._installed[handle].license_key_status

    def set_plugin_license_key_status(
        self, handle: str, status: LicenseKeyStatus | str
    ) -> None:
        """
        Cache a plugin's license key status.

        Raises:
            InvalidPluginError: If the plugin isn't enabled
            ValueError: If the status isn't a known LicenseKeyStatus
        """
        handle = handle.lower()
        with self._lock:
            plugin = self._require_plugin(handle)
            status = LicenseKeyStatus(status)

            handle = plugin.get_handle()
            self.app.store.update(handle, license_key_status=status)
            self._installed[handle].license_key_status = status

    # Registration

    def _register_plugin(self, handle: str, plugin) -> None:
        if hasattr(type(plugin), "set_instance"):
            type(plugin).set_instance(plugin)
        self._plugins[handle] = plugin
        self.app.set_module(handle, plugin)

    def _unregister_plugin(self, handle: str) -> None:
        plugin = self._plugins.pop(handle, None)
        if plugin is not None and hasattr(type(plugin), "set_instance"):
            type(plugin).set_instance(None)
        self.app.set_module(handle, None)


def _is_svg(path: Path) -> bool:
    """Whether a file is an SVG image, by name and by content."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type != "image/svg+xml":
        return False
    try:
        with open(path, "rb") as f:
            head = f.read(1024).lower()
    except OSError:
        return False
    return b"<svg" in head
