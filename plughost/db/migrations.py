"""
Plugin Migration Tracker.

This module applies a plugin's migrations and records their history.

Key features:
- History scoped to a plugin id
- Discovery of m*.py migration modules in the plugin's migrations/ directory
- Each migration module exposes up(session); returning False aborts
- Writes join the store's active transaction
"""

import logging
import re
from datetime import datetime
from pathlib import Path

from plughost.db.store import InstalledPluginStore
from plughost.plugin.loader import LoaderError, load_module

logger = logging.getLogger(__name__)

MIGRATION_NAME = re.compile(r"^m\w+$")


class MigrationError(Exception):
    """Raised when a migration can't be loaded or applied."""

    pass


class MigrationTracker:
    """
    Migration tracker for one installed plugin.

    Attributes:
        plugin_id: Id of the plugin's stored record
        namespace: Module namespace holding the migrations
        path: Directory holding the migration files
    """

    def __init__(
        self,
        store: InstalledPluginStore,
        plugin_id: int,
        namespace: str,
        path: Path,
    ):
        self.store = store
        self.plugin_id = plugin_id
        self.namespace = namespace
        self.path = path

    def get_migration_history(self) -> dict[str, datetime]:
        """Applied migrations, oldest first."""
        return self.store.migration_history(self.plugin_id)

    def get_new_migrations(self) -> list[str]:
        """Names of migrations on disk that haven't been applied, in name order."""
        if not self.path.is_dir():
            return []

        applied = self.get_migration_history()
        names = sorted(
            file.stem
            for file in self.path.glob("*.py")
            if MIGRATION_NAME.match(file.stem)
        )
        return [name for name in names if name not in applied]

    def add_migration_history(self, name: str) -> None:
        self.store.add_migration(self.plugin_id, name)

    def remove_migration_history(self, name: str) -> None:
        self.store.remove_migration(self.plugin_id, name)

    def mark_all_as_applied(self) -> None:
        """Record every pending migration as applied without running it."""
        for name in self.get_new_migrations():
            self.add_migration_history(name)

    def migrate_up(self, name: str) -> bool:
        """
        Apply a single migration.

        Returns:
            False if the migration's up() returned False

        Raises:
            MigrationError: If the migration module can't be loaded
        """
        try:
            module = load_module(f"{self.namespace}.{name}")
        except LoaderError as e:
            raise MigrationError(str(e)) from e

        up = getattr(module, "up", None)
        if not callable(up):
            raise MigrationError(f"Migration {name} has no up() function")

        logger.info(f"Applying migration {self.namespace}.{name}")
        with self.store.session() as session:
            if up(session) is False:
                logger.error(f"Migration {name} failed")
                return False

        self.add_migration_history(name)
        return True

    def up(self) -> bool:
        """
        Apply every new migration in order.

        Returns:
            False as soon as one migration fails
        """
        for name in self.get_new_migrations():
            if not self.migrate_up(name):
                return False
        return True
