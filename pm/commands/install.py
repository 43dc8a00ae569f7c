"""
pm install command (-S).

Install plugins found in the plugins directory or the vendor registry.
"""

import sys
from typing import Any

from plughost.app import Application
from plughost.plugin.errors import InvalidPluginError


def install_command(app: Application, args: Any) -> int:
    """
    Execute install command.

    Args:
        app: Initialized application
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -S <plugin>...", file=sys.stderr)
        return 1

    success_count = 0
    fail_count = 0

    for handle in args.targets:
        if args.verbose:
            print(f"Installing {handle}")

        try:
            installed = app.plugins.install_plugin(handle)
        except InvalidPluginError as e:
            print(f"Failed to install {handle}: {e}", file=sys.stderr)
            fail_count += 1
            continue

        if installed:
            plugin = app.plugins.get_plugin(handle)
            version = f" {plugin.version}" if plugin is not None else ""
            print(f"Installed {handle}{version}")
            success_count += 1
        else:
            print(f"Failed to install {handle}: install was aborted", file=sys.stderr)
            fail_count += 1

    # Summary
    if args.verbose:
        print(f"\nInstalled: {success_count}, Failed: {fail_count}")

    return 0 if fail_count == 0 else 1
