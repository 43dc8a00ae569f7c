"""
pm remove command (-R).

Uninstall plugins, deleting their stored record and migration history.
"""

import sys
from typing import Any

from plughost.app import Application
from plughost.plugin.errors import InvalidPluginError


def remove_command(app: Application, args: Any) -> int:
    """
    Execute remove command.

    Args:
        app: Initialized application
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -R <plugin>...", file=sys.stderr)
        return 1

    fail_count = 0

    for handle in args.targets:
        try:
            removed = app.plugins.uninstall_plugin(handle)
        except InvalidPluginError as e:
            print(f"Failed to remove {handle}: {e}", file=sys.stderr)
            fail_count += 1
            continue

        if removed:
            print(f"Removed {handle}")
        else:
            print(f"Failed to remove {handle}: uninstall was aborted", file=sys.stderr)
            fail_count += 1

    return 0 if fail_count == 0 else 1
