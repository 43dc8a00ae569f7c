"""
pm license command (-K).

Show a plugin's license key and status, or store a new key.
An empty key ("") clears the stored one.
"""

import sys
from typing import Any

from plughost.app import Application
from plughost.plugin.errors import InvalidLicenseKeyError


def license_command(app: Application, args: Any) -> int:
    """
    Execute license command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets or len(args.targets) > 2:
        print("Usage: pm -K <plugin> [key]", file=sys.stderr)
        return 1

    handle = args.targets[0]

    if len(args.targets) == 2:
        try:
            app.plugins.set_plugin_license_key(handle, args.targets[1])
        except InvalidLicenseKeyError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    key = app.plugins.get_plugin_license_key(handle)
    status = app.plugins.get_plugin_license_key_status(handle)

    print(f"License key: {key or '(none)'}")
    print(f"Status:      {status.value}")
    return 0
