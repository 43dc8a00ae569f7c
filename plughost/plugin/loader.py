"""
Dynamic Plugin Loader.

This module resolves plugin modules through registered aliases.

Key features:
- Alias table mapping module prefixes to directories
- importlib meta path finder backed by the alias table
- Class references as "package.module:ClassName"
- Purging of aliased modules on reset
"""

import importlib
import importlib.abc
import importlib.machinery
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

logger = logging.getLogger(__name__)

# Conventional alias under which every plugin directory is importable
PLUGINS_NAMESPACE = "plughost.plugins"


class LoaderError(Exception):
    """Base exception for loader-related errors."""

    pass


def plugin_module_prefix(handle: str) -> str:
    """Module prefix aliased to a plugin's own directory."""
    return f"{PLUGINS_NAMESPACE}.{handle}"


class _AliasFinder(importlib.abc.MetaPathFinder):
    """Finds modules whose names fall under a registered alias."""

    def __init__(self, registry: "AliasRegistry"):
        self._registry = registry

    def find_spec(self, fullname, path, target=None):
        spec = self._registry.find_spec(fullname)
        if spec is not None:
            self._registry._provided.add(fullname)
        return spec


class AliasRegistry:
    """
    Module-resolution table for plugin code.

    An alias maps a dotted module prefix (e.g. "acme_seo") to a directory.
    Once installed, ``import acme_seo.plugin`` loads ``<dir>/plugin.py``.
    """

    def __init__(self):
        self._aliases: dict[str, Path] = {}
        self._provided: set[str] = set()
        self._finder = _AliasFinder(self)

    def set_alias(self, name: str, path: str | Path | None) -> None:
        """
        Register an alias; a path of None removes it.

        Args:
            name: Dotted module prefix
            path: Directory holding the prefix's modules
        """
        name = name.strip(".")
        if path is None:
            self._aliases.pop(name, None)
            return
        self._aliases[name] = Path(path)
        logger.debug(f"Alias {name} -> {path}")

    def get_alias(self, name: str) -> Path | None:
        return self._aliases.get(name.strip("."))

    def aliases(self) -> dict[str, Path]:
        return dict(self._aliases)

    def resolve(self, module_name: str) -> Path | None:
        """
        Map a module name to a filesystem location.

        The longest matching alias wins; the remainder of the module name is
        treated as subdirectories.

        Returns:
            The directory or file path the module would live at (without
            suffix), or None if no alias covers the module
        """
        best = None
        for prefix in self._aliases:
            if module_name == prefix or module_name.startswith(prefix + "."):
                if best is None or len(prefix) > len(best):
                    best = prefix
        if best is None:
            return None

        remainder = module_name[len(best) :].strip(".")
        base = self._aliases[best]
        return base.joinpath(*remainder.split(".")) if remainder else base

    def find_spec(self, fullname: str) -> importlib.machinery.ModuleSpec | None:
        """Build an import spec for ``fullname`` from the alias table."""
        location = self.resolve(fullname)
        if location is None:
            # Parent of an alias, e.g. "acme" for "acme.seo"
            if any(prefix.startswith(fullname + ".") for prefix in self._aliases):
                return self._namespace_spec(fullname, [])
            return None

        init_file = location / "__init__.py"
        if init_file.is_file():
            return importlib.util.spec_from_file_location(
                fullname, init_file, submodule_search_locations=[str(location)]
            )

        module_file = location.with_name(location.name + ".py")
        if module_file.is_file():
            return importlib.util.spec_from_file_location(fullname, module_file)

        if location.is_dir():
            return self._namespace_spec(fullname, [str(location)])

        return None

    def _namespace_spec(self, fullname: str, locations: list[str]) -> importlib.machinery.ModuleSpec:
        spec = importlib.machinery.ModuleSpec(fullname, None, is_package=True)
        spec.submodule_search_locations = locations
        return spec

    def install(self) -> None:
        """Put the alias finder first on sys.meta_path."""
        if self._finder not in sys.meta_path:
            sys.meta_path.insert(0, self._finder)

    def uninstall(self) -> None:
        """Remove the alias finder and purge every module it provided."""
        if self._finder in sys.meta_path:
            sys.meta_path.remove(self._finder)
        self.purge_modules()

    def purge_modules(self) -> None:
        """Drop modules loaded through aliases from sys.modules."""
        for name in list(sys.modules):
            if name in self._provided:
                del sys.modules[name]
        self._provided.clear()
        importlib.invalidate_caches()

    def clear(self) -> None:
        self._aliases.clear()


def load_module(module_name: str) -> ModuleType:
    """
    Import a plugin module.

    Raises:
        LoaderError: If the module can't be imported
    """
    try:
        return importlib.import_module(module_name)
    except Exception as e:
        # Clean up a half-initialized module
        sys.modules.pop(module_name, None)
        raise LoaderError(f"Failed to load module {module_name}: {e}") from e


def load_class(reference: Any) -> type:
    """
    Resolve a class reference.

    Args:
        reference: A class, "package.module:ClassName" or "package.module.ClassName"

    Returns:
        The class

    Raises:
        LoaderError: If the reference can't be resolved to a class
    """
    if isinstance(reference, type):
        return reference

    if not isinstance(reference, str) or not reference:
        raise LoaderError(f"Invalid class reference: {reference!r}")

    if ":" in reference:
        module_name, _, attr = reference.partition(":")
    else:
        module_name, _, attr = reference.rpartition(".")

    if not module_name or not attr:
        raise LoaderError(f"Invalid class reference: {reference!r}")

    module = load_module(module_name)

    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise LoaderError(f"{module_name} has no attribute {attr}") from e

    if not isinstance(target, type):
        raise LoaderError(f"{reference} is not a class")

    return target
