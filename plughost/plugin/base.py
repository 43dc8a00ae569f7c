"""
Plugin Base Class.

This module defines the capabilities every plugin implementation must
provide, and a base class implementing them.

Key features:
- PluginInterface: capability check via issubclass()
- Descriptor fields (name, version, schema version...) as attributes
- Lazily created settings model
- install()/uninstall() returning False on failure
"""

import inspect
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from plughost.config.runtime import SettingsModel
from plughost.plugin.descriptor import DEFAULT_SCHEMA_VERSION, PluginDescriptor
from plughost.plugin.hooks import HookError, HookType, execute_hook
from plughost.plugin.loader import LoaderError, load_class

if TYPE_CHECKING:
    from plughost.app import Application
    from plughost.db.migrations import MigrationTracker

logger = logging.getLogger(__name__)

# Methods a class must define to count as a plugin
CAPABILITIES = ("get_handle", "get_settings", "install", "uninstall")


class PluginInterface(ABC):
    """
    Capability contract for plugin implementations.

    Any class defining every method in CAPABILITIES satisfies
    ``issubclass(cls, PluginInterface)``, whether or not it inherits from it.
    Implementations are constructed as ``cls(handle, app, descriptor)``.
    """

    @abstractmethod
    def get_handle(self) -> str: ...

    @abstractmethod
    def get_settings(self) -> SettingsModel | None: ...

    @abstractmethod
    def install(self) -> bool: ...

    @abstractmethod
    def uninstall(self) -> bool: ...

    @classmethod
    def __subclasshook__(cls, candidate):
        if cls is PluginInterface:
            if all(
                any(name in base.__dict__ for base in candidate.__mro__)
                for name in CAPABILITIES
            ):
                return True
        return NotImplemented


class Plugin(PluginInterface):
    """
    Base class for plugins.

    Subclasses usually override ``create_settings_model()`` and, when they
    need custom install logic, ``before_install()``/``after_install()``.
    """

    _instance: ClassVar["Plugin | None"] = None

    def __init__(
        self,
        handle: str,
        app: "Application",
        descriptor: PluginDescriptor | None = None,
    ):
        """
        Initialize Plugin.

        Args:
            handle: Plugin handle
            app: Host application
            descriptor: Resolved metadata
        """
        self.handle = handle
        self.app = app
        self.descriptor = descriptor

        self.name: str = descriptor.name if descriptor else handle
        self.version: str = descriptor.version if descriptor else ""
        self.schema_version: str = (
            descriptor.schema_version if descriptor else DEFAULT_SCHEMA_VERSION
        )
        self.developer = descriptor.developer if descriptor else None
        self.developer_url = descriptor.developer_url if descriptor else None
        self.description = descriptor.description if descriptor else None
        self.documentation_url = descriptor.documentation_url if descriptor else None

        self.migrator: "MigrationTracker | None" = None

        self._components: dict[str, Any] = dict(descriptor.components) if descriptor else {}
        self._component_instances: dict[str, Any] = {}
        self._settings: SettingsModel | None = None
        self._settings_created = False

    @classmethod
    def set_instance(cls, instance: "Plugin | None") -> None:
        cls._instance = instance

    @classmethod
    def get_instance(cls) -> "Plugin | None":
        """The live instance of this plugin class, while it is enabled."""
        return cls._instance

    def get_handle(self) -> str:
        return self.handle

    @property
    def base_path(self) -> Path:
        """Directory holding the plugin's class."""
        return Path(inspect.getfile(type(self))).resolve().parent

    @property
    def plugin_path(self) -> Path:
        """The plugin's directory under the host's plugins path, else its base path."""
        path = self.app.paths.plugins / self.handle
        return path if path.is_dir() else self.base_path

    # Settings

    def create_settings_model(self) -> SettingsModel | None:
        """Create the plugin's settings model, or None if it has no settings."""
        return None

    def get_settings(self) -> SettingsModel | None:
        if not self._settings_created:
            self._settings = self.create_settings_model()
            self._settings_created = True
        return self._settings

    # Components

    def has_component(self, name: str) -> bool:
        return name in self._components

    def get_component(self, name: str) -> Any:
        """
        Return a declared sub-component, creating it on first use.

        A declaration is a class reference, or a dict with a "class" key and
        keyword arguments for the constructor.

        Raises:
            KeyError: If no component with that name is declared
            LoaderError: If the component class can't be loaded
        """
        if name in self._component_instances:
            return self._component_instances[name]

        declaration = self._components[name]
        if isinstance(declaration, dict):
            kwargs = dict(declaration)
            class_ref = kwargs.pop("class", None)
            if class_ref is None:
                raise LoaderError(f"Component {name} of {self.handle} has no class")
        else:
            class_ref, kwargs = declaration, {}

        component = load_class(class_ref)(**kwargs)
        self._component_instances[name] = component
        return component

    # Install / uninstall

    def _hook_env(self) -> dict[str, str]:
        return {
            "PLUGHOST_PLUGIN_HANDLE": self.handle,
            "PLUGHOST_PLUGIN_VERSION": self.version,
            "PLUGHOST_PLUGIN_SCHEMA_VERSION": self.schema_version,
        }

    def _run_hook(self, hook_type: HookType) -> bool:
        try:
            execute_hook(self.plugin_path, hook_type, self._hook_env())
        except HookError as e:
            logger.error(f"{hook_type.value} hook for {self.handle} failed: {e}")
            return False
        return True

    def install(self) -> bool:
        """
        Install the plugin.

        Runs inside the install transaction; returning False rolls it back.
        """
        if self.before_install() is False:
            return False

        if not self._run_hook(HookType.INSTALL):
            return False

        # Fresh installs already have the latest schema
        if self.migrator is not None:
            self.migrator.mark_all_as_applied()

        self.after_install()
        return True

    def uninstall(self) -> bool:
        """
        Uninstall the plugin.

        Runs inside the uninstall transaction; returning False rolls it back.
        """
        if self.before_uninstall() is False:
            return False

        if not self._run_hook(HookType.UNINSTALL):
            return False

        self.after_uninstall()
        return True

    def before_install(self) -> bool:
        return True

    def after_install(self) -> None:
        pass

    def before_uninstall(self) -> bool:
        return True

    def after_uninstall(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.handle} {self.version}>"
