"""
pm init command (--init).

Write a configuration file holding every default setting.
"""

import sys
from typing import Any

from plughost.config.host import HostConfig, save_host_config


def init_command(args: Any) -> int:
    """
    Execute init command.

    Returns:
        Exit code (0 for success, non-zero if the file already exists)
    """
    if args.config.exists():
        print(f"Error: {args.config} already exists", file=sys.stderr)
        return 1

    save_host_config(HostConfig(), args.config)
    print(f"Wrote {args.config}")
    return 0
