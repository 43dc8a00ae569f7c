"""
Plugin Manifest System.

This module reads a plugin's manifest.json and derives its config.

Key features:
- JSON manifest reading with clear errors
- Ordered per-field lookups (extra.* first, then top-level fields, authors, vendor)
- Module aliases from autoload mappings
- Plugin class inferred from the canonical plugin.py entry point

Example manifest:
    {
        "name": "acme/seo",
        "version": "1.2.0",
        "description": "Search engine tools",
        "authors": [{"name": "Acme", "homepage": "https://acme.test"}],
        "autoload": {"acme_seo": "src/"},
        "extra": {"name": "SEO", "schemaVersion": "1.1.0"}
    }
"""

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

MANIFEST_FILE = "manifest.json"

# Entry point looked for under each autoload path, and the class it holds
ENTRY_POINT_FILE = "plugin.py"
ENTRY_POINT_CLASS = "Plugin"

# Version used when a manifest pins none
DEV_VERSION = "dev-master"

# config key -> lookups tried in order; each lookup is a path into the manifest
FIELD_LOOKUPS: dict[str, tuple[tuple[str | int, ...], ...]] = {
    "name": (("extra", "name"),),
    "version": (("extra", "version"), ("version",)),
    "schemaVersion": (("extra", "schemaVersion"),),
    "description": (("extra", "description"), ("description",)),
    "developer": (("extra", "developer"), ("authors", 0, "name")),
    "developerUrl": (
        ("extra", "developerUrl"),
        ("homepage",),
        ("authors", 0, "homepage"),
    ),
    "documentationUrl": (("extra", "documentationUrl"), ("support", "docs")),
    "components": (("extra", "components"),),
}


class ManifestError(Exception):
    """Raised when a manifest file can't be read or parsed."""

    pass


def read_manifest(manifest_path: Path) -> dict[str, Any]:
    """
    Read a manifest.json file.

    Args:
        manifest_path: Path to manifest.json

    Returns:
        Decoded manifest data

    Raises:
        ManifestError: If file cannot be read or parsed
    """
    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ManifestError(f"Manifest file not found: {manifest_path}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Failed to parse manifest JSON {manifest_path}: {e}") from e
    except OSError as e:
        raise ManifestError(f"Failed to read manifest file {manifest_path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {manifest_path} must contain a JSON object")

    return data


def lookup(data: Any, path: tuple[str | int, ...]) -> Any:
    """
    Follow a path of keys/indexes into nested manifest data.

    Returns:
        The value found, or None if any step is missing or empty
    """
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
        elif not isinstance(current, dict) or step not in current:
            return None
        current = current[step]

    if current is None or current == "":
        return None
    return current


def first_value(data: dict[str, Any], lookups: tuple[tuple[str | int, ...], ...]) -> Any:
    """Return the first non-empty value among ``lookups``."""
    for path in lookups:
        value = lookup(data, path)
        if value is not None:
            return value
    return None


def split_package_name(package_name: str) -> tuple[str | None, str]:
    """
    Split "vendor/name" into its parts.

    Returns:
        (vendor, name); vendor is None when there is no prefix
    """
    if "/" in package_name:
        vendor, name = package_name.split("/", 1)
        return vendor, name
    return None, package_name


def generate_default_aliases(
    plugin_path: Path,
    manifest: dict[str, Any],
    file_exists: Callable[[Path], bool],
) -> tuple[dict[str, str], str | None]:
    """
    Derive module aliases from the manifest's autoload mapping.

    Relative paths are anchored at the plugin directory. Paths given as a
    list are skipped, an alias can only point at one directory.

    Args:
        plugin_path: The plugin's directory
        manifest: Manifest data
        file_exists: Predicate used to look for the entry point file

    Returns:
        (aliases, class reference found under one of the paths or None)
    """
    autoload = manifest.get("autoload")
    if not isinstance(autoload, dict) or not autoload:
        return {}, None

    aliases: dict[str, str] = {}
    class_ref = None

    for namespace, path in autoload.items():
        if not isinstance(path, str):
            continue

        if not os.path.isabs(path):
            path = os.path.join(str(plugin_path), path)
        path = os.path.normpath(path)

        module_prefix = namespace.strip(".")
        aliases[module_prefix] = path

        if class_ref is None and file_exists(Path(path) / ENTRY_POINT_FILE):
            module = Path(ENTRY_POINT_FILE).stem
            class_ref = f"{module_prefix}.{module}:{ENTRY_POINT_CLASS}"

    return aliases, class_ref


def scrape_config(
    handle: str,
    manifest: dict[str, Any],
    plugin_path: Path,
    file_exists: Callable[[Path], bool] = Path.is_file,
) -> dict[str, Any] | None:
    """
    Derive a plugin config from its manifest.

    Pure transform: the filesystem is only consulted through ``file_exists``.

    Args:
        handle: Plugin handle
        manifest: Manifest data
        plugin_path: The plugin's directory
        file_exists: Predicate used to look for the entry point file

    Returns:
        The config, or None if no plugin class can be determined
    """
    extra = manifest.get("extra") if isinstance(manifest.get("extra"), dict) else {}
    package_name = manifest.get("name") or handle
    vendor, name = split_package_name(str(package_name))

    aliases, inferred_class = generate_default_aliases(plugin_path, manifest, file_exists)
    class_ref = extra.get("class") or inferred_class
    if class_ref is None:
        return None

    config: dict[str, Any] = {"class": class_ref}
    if aliases:
        config["aliases"] = aliases

    for key, lookups in FIELD_LOOKUPS.items():
        value = first_value(manifest, lookups)
        if value is not None:
            config[key] = value

    config.setdefault("name", name)
    config.setdefault("version", DEV_VERSION)
    if "developer" not in config and vendor is not None:
        config["developer"] = vendor

    return config
