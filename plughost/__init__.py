"""
plughost - Plugin lifecycle manager for host applications.

This is the main package that exports the public API:
- Application: host object owning storage, aliases and the plugins service
- Plugin: base class every plugin implementation extends
- PluginsService: install/uninstall/enable/disable and settings persistence
"""

__version__ = "0.1.0"

from plughost.app import Application
from plughost.config import field
from plughost.config.runtime import SettingsModel
from plughost.plugin.base import Plugin, PluginInterface
from plughost.plugin.errors import (
    InvalidLicenseKeyError,
    InvalidPluginConfigError,
    InvalidPluginError,
    PluginError,
)
from plughost.plugin.license import LicenseKeyStatus
from plughost.plugin.manager import PluginsService

__all__ = [
    "__version__",
    "Application",
    "InvalidLicenseKeyError",
    "InvalidPluginConfigError",
    "InvalidPluginError",
    "LicenseKeyStatus",
    "Plugin",
    "PluginError",
    "PluginInterface",
    "PluginsService",
    "SettingsModel",
    "field",
]
