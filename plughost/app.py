"""
Host Application.

The object plugins live in: it owns storage, module aliases, the module
map and the plugins service.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import Engine

from plughost.config.host import HostConfig
from plughost.db.store import InstalledPluginStore, get_engine
from plughost.plugin.loader import AliasRegistry
from plughost.plugin.manager import PluginsService

logger = logging.getLogger(__name__)


@dataclass
class AppPaths:
    """Absolute filesystem locations used by the application."""

    plugins: Path
    vendor: Path


class Application:
    """
    Host application.

    Attributes:
        config: Host configuration
        paths: Plugin and vendor directories
        is_installed: Whether the host itself is installed
        is_updating: Whether the host is applying updates
        in_maintenance_mode: Whether the host is in maintenance mode
        aliases: Module alias table used to import plugin code
        store: Installed-plugin store
        plugins: Plugins service
    """

    def __init__(self, config: HostConfig | None = None, engine: Engine | None = None):
        """
        Initialize Application.

        Args:
            config: Host configuration (defaults apply when omitted)
            engine: SQLAlchemy engine; built from [database] url when omitted
        """
        self.config = config or HostConfig()
        self.paths = AppPaths(
            plugins=Path(self.config.paths.plugins).resolve(),
            vendor=Path(self.config.paths.vendor).resolve(),
        )
        self.is_installed = self.config.app.installed
        self.is_updating = self.config.app.updating
        self.in_maintenance_mode = self.config.app.maintenance

        self.aliases = AliasRegistry()
        self.engine = engine or get_engine(
            self.config.database.url, echo=self.config.database.echo
        )
        self.store = InstalledPluginStore(self.engine)

        self._modules: dict[str, Any] = {}
        self.plugins = PluginsService(self)

    def init(self) -> None:
        """Create the tables, install the alias finder and load the plugin registry."""
        self.store.create_tables()
        self.aliases.install()
        self.plugins.init()
        logger.debug(f"Application ready (plugins path: {self.paths.plugins})")

    def reset(self) -> None:
        """Unload every plugin and remove the alias finder."""
        self.plugins.reset()
        self._modules.clear()
        self.aliases.uninstall()
        self.aliases.clear()

    # Modules

    def set_module(self, handle: str, module: Any) -> None:
        """Register a module under a handle; None removes it."""
        if module is None:
            self._modules.pop(handle, None)
        else:
            self._modules[handle] = module

    def get_module(self, handle: str) -> Any:
        return self._modules.get(handle)

    def has_module(self, handle: str) -> bool:
        return handle in self._modules
