"""
pm enable/disable commands (--enable, --disable).
"""

import sys
from typing import Any

from plughost.app import Application
from plughost.plugin.errors import InvalidPluginError


def toggle_command(app: Application, args: Any, enable: bool) -> int:
    """
    Enable or disable installed plugins.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    action = "enable" if enable else "disable"

    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print(f"Usage: pm --{action} <plugin>...", file=sys.stderr)
        return 1

    fail_count = 0

    for handle in args.targets:
        try:
            if enable:
                app.plugins.enable_plugin(handle)
            else:
                app.plugins.disable_plugin(handle)
        except InvalidPluginError as e:
            print(f"Failed to {action} {handle}: {e}", file=sys.stderr)
            fail_count += 1
            continue

        print(f"{action.capitalize()}d {handle}")

    return 0 if fail_count == 0 else 1
