"""
Plugin Descriptor.

This module provides the validated, normalized form of a plugin config.

Key features:
- Required keys: class, name, version
- Defaults for every optional key (schemaVersion defaults to "1.0.0")
- camelCase config keys mapped onto snake_case attributes
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from plughost.plugin.errors import InvalidPluginConfigError

DEFAULT_SCHEMA_VERSION = "1.0.0"

REQUIRED_KEYS = ("class", "name", "version")

OPTIONAL_DEFAULTS: dict[str, Any] = {
    "developer": None,
    "developerUrl": None,
    "description": None,
    "documentationUrl": None,
    "schemaVersion": DEFAULT_SCHEMA_VERSION,
}


def validate_config(handle: str, config: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Validate a plugin config and fill in missing optional keys.

    Args:
        handle: Plugin handle (for error messages)
        config: Raw config from the registry or a manifest

    Returns:
        A new config dict with defaults applied

    Raises:
        InvalidPluginConfigError: If class, name or version is missing
    """
    if not isinstance(config, Mapping):
        raise InvalidPluginConfigError(handle, list(REQUIRED_KEYS))

    missing = [key for key in REQUIRED_KEYS if config.get(key) is None]
    if missing:
        raise InvalidPluginConfigError(handle, missing)

    validated = dict(OPTIONAL_DEFAULTS)
    validated.update({key: value for key, value in config.items() if value is not None})
    return validated


@dataclass
class PluginDescriptor:
    """
    Resolved metadata for a plugin implementation.

    Attributes:
        handle: Lower-cased plugin handle
        class_ref: Plugin class, or "package.module:ClassName"
        name: Declared plugin name
        version: Declared release version
        schema_version: Declared schema version
        developer: Developer name
        developer_url: Developer URL
        description: Short description
        documentation_url: Documentation URL
        aliases: Module prefix -> directory, to register before loading
        components: Sub-component declarations
    """

    handle: str
    class_ref: Any
    name: str
    version: str
    schema_version: str = DEFAULT_SCHEMA_VERSION
    developer: str | None = None
    developer_url: str | None = None
    description: str | None = None
    documentation_url: str | None = None
    aliases: dict[str, str] = field(default_factory=dict)
    components: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(cls, handle: str, config: Mapping[str, Any]) -> "PluginDescriptor":
        """
        Build a descriptor from a raw config.

        Raises:
            InvalidPluginConfigError: If class, name or version is missing
        """
        config = validate_config(handle, config)
        return cls(
            handle=handle.lower(),
            class_ref=config["class"],
            name=str(config["name"]),
            version=str(config["version"]),
            schema_version=str(config["schemaVersion"]),
            developer=config["developer"],
            developer_url=config["developerUrl"],
            description=config["description"],
            documentation_url=config["documentationUrl"],
            aliases=dict(config.get("aliases") or {}),
            components=dict(config.get("components") or {}),
        )

    def to_config(self) -> dict[str, Any]:
        """The descriptor as a camelCase config dict."""
        return {
            "class": self.class_ref,
            "name": self.name,
            "version": self.version,
            "schemaVersion": self.schema_version,
            "developer": self.developer,
            "developerUrl": self.developer_url,
            "description": self.description,
            "documentationUrl": self.documentation_url,
            "aliases": dict(self.aliases),
            "components": dict(self.components),
        }
