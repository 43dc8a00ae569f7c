"""
Plugin Lifecycle Events.

Event ids fired by the plugins service and their payload.
"""

from dataclasses import dataclass
from typing import Any

BEFORE_LOAD_PLUGINS = "plugins.before_load"
AFTER_LOAD_PLUGINS = "plugins.after_load"
BEFORE_ENABLE_PLUGIN = "plugins.before_enable"
AFTER_ENABLE_PLUGIN = "plugins.after_enable"
BEFORE_DISABLE_PLUGIN = "plugins.before_disable"
AFTER_DISABLE_PLUGIN = "plugins.after_disable"
BEFORE_INSTALL_PLUGIN = "plugins.before_install"
AFTER_INSTALL_PLUGIN = "plugins.after_install"
BEFORE_UNINSTALL_PLUGIN = "plugins.before_uninstall"
AFTER_UNINSTALL_PLUGIN = "plugins.after_uninstall"
BEFORE_SAVE_PLUGIN_SETTINGS = "plugins.before_save_settings"
AFTER_SAVE_PLUGIN_SETTINGS = "plugins.after_save_settings"


@dataclass
class PluginEvent:
    """
    Payload of a lifecycle event.

    Attributes:
        plugin: The plugin the event is about (None for load events)
    """

    plugin: Any = None
