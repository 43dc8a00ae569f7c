"""
TOML File I/O Handler.

This module provides TOML parsing and writing with comment preservation.

Key features:
- Parse TOML files using tomllib (Python 3.11+)
- Write TOML files using tomlkit (preserves comments and formatting)
- Render plugin settings as TOML with descriptive comments
"""

import tomllib
from pathlib import Path
from typing import Any

import tomlkit

from plughost.config.schema import SettingField


class TOMLError(Exception):
    """Base exception for TOML-related errors."""

    pass


def read_toml(file_path: Path) -> dict[str, Any]:
    """
    Read and parse a TOML file.

    Args:
        file_path: Path to the TOML file

    Returns:
        Parsed TOML data as dictionary

    Raises:
        TOMLError: If file cannot be read or parsed
    """
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise TOMLError(f"TOML file not found: {file_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise TOMLError(f"Failed to parse TOML file {file_path}: {e}") from e
    except OSError as e:
        raise TOMLError(f"Failed to read TOML file {file_path}: {e}") from e


def write_toml(file_path: Path, data: dict[str, Any]) -> None:
    """
    Write data to a TOML file using tomlkit (preserves formatting).

    Args:
        file_path: Path to the TOML file
        data: Data to write

    Raises:
        TOMLError: If file cannot be written
    """
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            tomlkit.dump(data, f)
    except (OSError, TypeError, ValueError) as e:
        raise TOMLError(f"Failed to write TOML file {file_path}: {e}") from e


def generate_toml_from_schema(
    plugin_name: str, schema: dict[str, SettingField], settings: dict[str, Any]
) -> str:
    """
    Render a plugin's settings as TOML with descriptive comments.

    Args:
        plugin_name: Name of the plugin (used as section header)
        schema: Schema dictionary (field_name -> SettingField)
        settings: Current values (field_name -> value)

    Returns:
        TOML string with comments
    """
    doc = tomlkit.document()

    doc.add(tomlkit.comment(f"Settings for {plugin_name}"))
    doc.add(tomlkit.nl())

    plugin_table = tomlkit.table()

    for field_name, field in schema.items():
        if field.description:
            plugin_table.add(tomlkit.comment(field.description))

        constraints = []
        if field.min is not None:
            constraints.append(f"min: {field.min}")
        if field.max is not None:
            constraints.append(f"max: {field.max}")
        if field.choices is not None:
            constraints.append(f"choices: {field.choices}")

        if constraints:
            plugin_table.add(tomlkit.comment(f"Constraints: {', '.join(constraints)}"))

        value = settings.get(field_name, field.default)
        if value is None:
            # TOML has no null
            plugin_table.add(tomlkit.comment(f"{field_name} is not set"))
        else:
            plugin_table.add(field_name, value)
        plugin_table.add(tomlkit.nl())

    doc.add(plugin_name, plugin_table)

    return tomlkit.dumps(doc)
