"""
Plugin Lifecycle Script Hooks.

This module runs the optional scripts a plugin ships in its hooks/ directory.

Key features:
- Hook discovery in hooks/ directory
- Environment variable injection
- Subprocess execution with timeout
- Exit code handling
- Hook types: install, uninstall
"""

import logging
import os
import stat
import subprocess
import sys
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class HookError(Exception):
    """Base exception for hook-related errors."""

    pass


class HookType(Enum):
    """Hook type enumeration."""

    INSTALL = "install"
    UNINSTALL = "uninstall"


def execute_hook(
    plugin_dir: Path,
    hook_type: HookType,
    env_vars: dict[str, str] | None = None,
    timeout: int = 60,
) -> bool:
    """
    Execute a lifecycle hook for a plugin.

    Args:
        plugin_dir: Plugin directory path
        hook_type: Type of hook to execute
        env_vars: Additional environment variables to inject
        timeout: Timeout in seconds (default: 60)

    Returns:
        True if a hook script ran, False if the plugin has none

    Raises:
        HookError: If hook execution fails
    """
    hook_path = _find_hook(plugin_dir, hook_type)

    if hook_path is None:
        return False

    env = os.environ.copy()
    if env_vars:
        env.update(env_vars)

    env["PLUGHOST_PLUGIN_DIR"] = str(plugin_dir)
    env["PLUGHOST_HOOK_TYPE"] = hook_type.value

    cmd = [sys.executable, str(hook_path)] if hook_path.suffix == ".py" else [str(hook_path)]

    logger.info(f"Running {hook_type.value} hook {hook_path}")

    try:
        result = subprocess.run(
            cmd,
            cwd=plugin_dir,
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise HookError(
            f"Hook {hook_type.value} timed out after {timeout} seconds"
        ) from e
    except OSError as e:
        raise HookError(f"Failed to execute hook {hook_type.value}: {e}") from e

    if result.returncode != 0:
        raise HookError(
            f"Hook {hook_type.value} failed with exit code {result.returncode}:\n"
            f"stdout: {result.stdout}\n"
            f"stderr: {result.stderr}"
        )

    return True


def _find_hook(plugin_dir: Path, hook_type: HookType) -> Path | None:
    """
    Find hook script in plugin hooks/ directory.

    Looks for scripts in the following order:
    1. hooks/{hook_type}.sh (Unix shell script)
    2. hooks/{hook_type}.bat (Windows batch script)
    3. hooks/{hook_type}.ps1 (PowerShell script)
    4. hooks/{hook_type}.py (Python script)

    Args:
        plugin_dir: Plugin directory path
        hook_type: Type of hook to find

    Returns:
        Path to hook script, or None if not found
    """
    hooks_dir = plugin_dir / "hooks"

    if not hooks_dir.is_dir():
        return None

    for ext in (".sh", ".bat", ".ps1", ".py"):
        hook_path = hooks_dir / f"{hook_type.value}{ext}"
        if hook_path.is_file():
            if ext == ".sh":
                try:
                    hook_path.chmod(hook_path.stat().st_mode | stat.S_IEXEC)
                except OSError:
                    logger.debug(f"Could not mark {hook_path} executable")

            return hook_path

    return None


def has_hook(plugin_dir: Path, hook_type: HookType) -> bool:
    """
    Check if plugin has a specific hook.

    Args:
        plugin_dir: Plugin directory path
        hook_type: Type of hook to check

    Returns:
        True if hook exists
    """
    return _find_hook(plugin_dir, hook_type) is not None
