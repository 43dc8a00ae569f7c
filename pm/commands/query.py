"""
pm query command (-Q).

List every available plugin with its state, or show details with -Qi.
"""

import sys
from typing import Any

from plughost.app import Application
from plughost.config.toml_handler import generate_toml_from_schema
from plughost.plugin.manager import PluginInfo


def _state(info: PluginInfo) -> str:
    if info.is_enabled:
        return "enabled"
    if info.is_installed:
        return "disabled"
    return "not installed"


def query_command(app: Application, args: Any) -> int:
    """
    Execute query command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    all_info = app.plugins.get_all_plugin_info()

    if args.targets:
        wanted = {target.lower() for target in args.targets}
        all_info = [info for info in all_info if info.handle in wanted]
        missing = wanted - {info.handle for info in all_info}
        for handle in sorted(missing):
            print(f"error: plugin '{handle}' was not found", file=sys.stderr)
        if missing:
            return 1

    if not args.info:
        for info in all_info:
            print(f"{info.handle} {info.version} [{_state(info)}]")
        return 0

    for info in all_info:
        print_info(app, info)
    return 0


def print_info(app: Application, info: PluginInfo) -> None:
    """Print a plugin's details, and its settings when it is enabled."""
    rows = [
        ("Handle", info.handle),
        ("Name", info.name),
        ("Version", info.version),
        ("Schema Version", info.schema_version),
        ("Developer", info.developer or "None"),
        ("Description", info.description or "None"),
        ("State", _state(info)),
    ]

    record = app.plugins.get_stored_plugin_info(info.handle)
    if record is not None and record.install_date is not None:
        rows.append(("Install Date", record.install_date.isoformat(sep=" ", timespec="seconds")))

    for label, value in rows:
        print(f"{label:<15}: {value}")

    plugin = app.plugins.get_plugin(info.handle)
    settings = plugin.get_settings() if plugin is not None else None
    if settings is not None:
        print()
        print(generate_toml_from_schema(info.handle, settings.fields, settings.to_dict()).rstrip())

    print()
