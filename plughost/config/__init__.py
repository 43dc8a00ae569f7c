"""
plughost Configuration System.

This module provides:
- Plugin settings schema declaration and validation
- Settings models attached to live plugins
- TOML host configuration

Example usage:
    from plughost.config import field
    from plughost.config.runtime import SettingsModel

    class SeoSettings(SettingsModel):
        fields = {
            'threshold': field(float, 0.5, "Detection threshold"),
            'max_retries': field(int, 3, "Maximum retry attempts", min=1, max=10),
        }
"""

from typing import Any

from plughost.config.host import ConfigError, HostConfig, load_host_config
from plughost.config.schema import SettingField


def field(
    type_: type,
    default: Any,
    description: str = "",
    min: Any = None,
    max: Any = None,
    choices: list[Any] | None = None,
    required: bool = False,
) -> SettingField:
    """
    Helper function to create a SettingField.

    Args:
        type_: The expected type of the field value
        default: Default value for the field
        description: Human-readable description
        min: Minimum value (for numbers) or minimum length (for strings/lists)
        max: Maximum value (for numbers) or maximum length (for strings/lists)
        choices: List of allowed values (optional)
        required: Whether a blank value fails validation

    Returns:
        SettingField instance

    Example:
        field(int, 42, "The answer", min=0, max=100)
    """
    return SettingField(
        type_=type_,
        default=default,
        description=description,
        min=min,
        max=max,
        choices=choices,
        required=required,
    )


__all__ = ["field", "ConfigError", "HostConfig", "load_host_config"]
