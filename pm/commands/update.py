"""
pm update command (-U).

Report enabled plugins whose code is ahead of what is stored:
- version changes that were recorded automatically
- schema changes that still need their migrations applied
"""

from typing import Any

from plughost.app import Application


def update_command(app: Application, args: Any) -> int:
    """
    Execute update command.

    Returns:
        Exit code (0 when nothing needs a schema update, 1 otherwise)
    """
    plugins = app.plugins.get_all_plugins()
    if args.targets:
        plugins = {handle: p for handle, p in plugins.items() if handle in args.targets}

    pending = 0

    for handle, plugin in sorted(plugins.items()):
        record = app.plugins.get_stored_plugin_info(handle)

        if app.plugins.requires_schema_update(plugin):
            pending += 1
            print(
                f"{handle}: schema update required "
                f"({record.schema_version} -> {plugin.schema_version})"
            )
            if plugin.migrator is not None:
                for name in plugin.migrator.get_new_migrations():
                    print(f"    pending migration {name}")
        elif app.plugins.has_version_changed(plugin):
            print(f"{handle}: version {record.version} -> {plugin.version}")
        elif args.verbose:
            print(f"{handle}: up to date ({plugin.version})")

    if pending == 0:
        print("All plugins are up to date")
        return 0

    return 1
