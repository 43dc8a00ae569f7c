"""
pm CLI - plughost Plugin Manager.

Pacman-style interface for managing plugins of a plughost application.

Usage:
    pm -S <plugin>...            Install plugin(s)
    pm -R <plugin>...            Uninstall plugin(s)
    pm -Q                        List available plugins
    pm -Qi <plugin>...           Show plugin info and settings
    pm -U                        Report pending version/schema updates
    pm --enable <plugin>...      Enable plugin(s)
    pm --disable <plugin>...     Disable plugin(s)
    pm -K <plugin> [key]         Show or set a license key
    pm --init                    Write a default configuration file
"""

import argparse
import sys
from pathlib import Path

from plughost.app import Application
from plughost.config.host import DEFAULT_CONFIG_FILE, ConfigError, load_host_config
from plughost.logging_setup import setup_logging
from plughost.plugin.errors import PluginError


class PMError(Exception):
    """Base exception for pm errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with pacman-style flags."""
    parser = argparse.ArgumentParser(
        prog="pm",
        description="plughost Plugin Manager - Pacman-style plugin manager",
        add_help=False,
    )

    # Operation flags (mutually exclusive)
    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-S", "--sync", action="store_true", help="Install plugin(s)")
    ops.add_argument("-R", "--remove", action="store_true", help="Uninstall plugin(s)")
    ops.add_argument("-U", "--upgrade", action="store_true", help="Report pending updates")
    ops.add_argument("-Q", "--query", action="store_true", help="Query plugins")
    ops.add_argument("-K", "--license", action="store_true", help="Show or set a license key")
    ops.add_argument("--enable", action="store_true", help="Enable plugin(s)")
    ops.add_argument("--disable", action="store_true", help="Disable plugin(s)")
    ops.add_argument("--init", action="store_true", help="Write a default config file")
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    # Query sub-flags
    parser.add_argument("-i", "--info", action="store_true", help="Show info (-Qi)")

    # Common options
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_FILE,
        help=f"Configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    # Positional arguments
    parser.add_argument("targets", nargs="*", help="Plugin handles (and a key for -K)")

    return parser


def print_help():
    """Print help message."""
    help_text = """
pm - plughost Plugin Manager

Usage:
    pm -S <plugin>...            Install plugin(s)
    pm -R <plugin>...            Uninstall plugin(s)
    pm -Q                        List available plugins
    pm -Qi <plugin>...           Show plugin info and settings
    pm -U                        Report pending version/schema updates
    pm --enable <plugin>...      Enable plugin(s)
    pm --disable <plugin>...     Disable plugin(s)
    pm -K <plugin> [key]         Show or set a license key
    pm --init                    Write a default configuration file

Options:
    -c, --config <file>          Configuration file
    -v, --verbose                Verbose output
    -h, --help                   Show this help
"""
    print(help_text.strip())


def open_app(args: argparse.Namespace) -> Application:
    """
    Build and initialize the application described by the config file.

    Raises:
        PMError: If the configuration is invalid
    """
    try:
        config = load_host_config(args.config)
    except ConfigError as e:
        raise PMError(str(e)) from e

    if args.verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)

    app = Application(config)
    app.init()
    return app


def main(argv: list[str] | None = None) -> int:
    """Main entry point for pm CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    operations = ("sync", "remove", "upgrade", "query", "license", "enable", "disable")

    try:
        # Show help
        if args.help or not (args.init or any(getattr(args, op) for op in operations)):
            print_help()
            return 0

        if args.init:
            # --init: needs no application
            from pm.commands.init import init_command

            return init_command(args)

        app = open_app(args)
        try:
            return run_command(app, args)
        finally:
            app.reset()

    except (PMError, PluginError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


def run_command(app: Application, args: argparse.Namespace) -> int:
    """Route to the command selected by the operation flag."""
    if args.sync:
        # -S: Install
        from pm.commands.install import install_command

        return install_command(app, args)

    elif args.remove:
        # -R: Uninstall
        from pm.commands.remove import remove_command

        return remove_command(app, args)

    elif args.upgrade:
        # -U: Pending updates
        from pm.commands.update import update_command

        return update_command(app, args)

    elif args.query:
        # -Q: Query
        from pm.commands.query import query_command

        return query_command(app, args)

    elif args.license:
        # -K: License key
        from pm.commands.license import license_command

        return license_command(app, args)

    else:
        from pm.commands.toggle import toggle_command

        return toggle_command(app, args, enable=args.enable)


if __name__ == "__main__":
    sys.exit(main())
