"""
Installed-Plugin Store.

This module persists installed plugins and their migration history.

Key features:
- One row per installed plugin, keyed by handle
- Explicit transactions that plugin hooks join
- JSON-encoded settings blob
- Migration history cascade-deleted with its plugin
"""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Engine, create_engine, delete, event, select, update
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from plughost.db.models import Base, MigrationRow, PluginRow
from plughost.plugin.license import LicenseKeyStatus

logger = logging.getLogger(__name__)

_UPDATABLE = {
    "version",
    "schema_version",
    "license_key",
    "license_key_status",
    "enabled",
    "settings",
}


class StoreError(Exception):
    """Raised when the store is used incorrectly."""

    pass


@dataclass
class InstalledPluginRecord:
    """
    Stored info for an installed plugin.

    Attributes:
        id: Synthetic key, referenced by migration history
        handle: Plugin handle
        version: Installed release version
        schema_version: Installed schema version
        license_key: Normalized license key, if any
        license_key_status: Cached license key status
        enabled: Whether the plugin is enabled
        settings: Decoded settings blob
        install_date: When the plugin was installed
    """

    id: int
    handle: str
    version: str
    schema_version: str
    license_key: str | None = None
    license_key_status: LicenseKeyStatus = LicenseKeyStatus.UNKNOWN
    enabled: bool = False
    settings: dict[str, Any] | None = None
    install_date: datetime | None = None


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored by the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_engine(url: str, echo: bool = False) -> Engine:
    """
    Creates a SQLAlchemy engine for the store.

    In-memory SQLite databases share a single connection so every session
    sees the same tables.
    """
    engine_args: dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") == "sqlite:"):
        engine_args["poolclass"] = StaticPool
        engine_args["connect_args"] = {"check_same_thread": False}

    engine = create_engine(url, **engine_args)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def _decode_settings(raw: str | None) -> dict[str, Any] | None:
    if raw is None:
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Discarding undecodable settings blob: {raw[:40]!r}")
        return None
    return decoded if isinstance(decoded, dict) else None


def _to_record(row: PluginRow) -> InstalledPluginRecord:
    try:
        status = LicenseKeyStatus(row.license_key_status)
    except ValueError:
        status = LicenseKeyStatus.UNKNOWN

    return InstalledPluginRecord(
        id=row.id,
        handle=row.handle,
        version=row.version,
        schema_version=row.schema_version,
        license_key=row.license_key,
        license_key_status=status,
        enabled=bool(row.enabled),
        settings=_decode_settings(row.settings),
        install_date=row.install_date,
    )


class Transaction:
    """
    A storage transaction.

    Commits on a clean exit from its ``with`` block and rolls back when
    the block raises. ``rollback()`` may be called inside the block to
    abandon every write made so far.
    """

    def __init__(self, store: "InstalledPluginStore", session: Session):
        self._store = store
        self.session = session
        self.is_active = True

    def commit(self) -> None:
        if not self.is_active:
            raise StoreError("Transaction is no longer active")
        try:
            self.session.commit()
        finally:
            self._finish()

    def rollback(self) -> None:
        if not self.is_active:
            return
        try:
            self.session.rollback()
        finally:
            self._finish()

    def _finish(self) -> None:
        self.is_active = False
        self.session.close()
        self._store._transaction = None

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.is_active:
            if exc_type is not None:
                self.rollback()
            else:
                self.commit()
        return False


class InstalledPluginStore:
    """
    Persistent table of installed plugins.

    Writes made while a transaction is active join that transaction;
    otherwise each write commits on its own.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self._transaction: Transaction | None = None

    def create_tables(self) -> None:
        """Create the plugins and migrations tables if missing."""
        Base.metadata.create_all(self.engine)

    def begin(self) -> Transaction:
        """
        Begin a transaction.

        Raises:
            StoreError: If a transaction is already active
        """
        if self._transaction is not None:
            raise StoreError("A transaction is already active")
        self._transaction = Transaction(self, self._session_factory())
        return self._transaction

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield the active transaction's session, or a self-committing one."""
        if self._transaction is not None:
            yield self._transaction.session
            return

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def all_records(self) -> dict[str, InstalledPluginRecord]:
        """All installed plugins, indexed by handle."""
        with self.session() as session:
            rows = session.scalars(select(PluginRow).order_by(PluginRow.id)).all()
            return {row.handle: _to_record(row) for row in rows}

    def get_record(self, handle: str) -> InstalledPluginRecord | None:
        with self.session() as session:
            row = session.scalars(
                select(PluginRow).where(PluginRow.handle == handle.lower())
            ).first()
            return _to_record(row) if row is not None else None

    def insert(
        self,
        handle: str,
        version: str,
        schema_version: str,
        enabled: bool = True,
        install_date: datetime | None = None,
    ) -> InstalledPluginRecord:
        """
        Insert a plugin row.

        Returns:
            The stored record, including its new id
        """
        with self.session() as session:
            row = PluginRow(
                handle=handle.lower(),
                version=version,
                schema_version=schema_version,
                enabled=enabled,
                license_key_status=LicenseKeyStatus.UNKNOWN.value,
                install_date=install_date or utcnow(),
            )
            session.add(row)
            session.flush()
            return _to_record(row)

    def update(self, handle: str, /, **values: Any) -> int:
        """
        Update columns of a plugin row.

        Returns:
            Number of affected rows

        Raises:
            StoreError: If an unknown column is given
        """
        unknown = set(values) - _UPDATABLE
        if unknown:
            raise StoreError(f"Cannot update column(s): {', '.join(sorted(unknown))}")

        if "settings" in values and values["settings"] is not None:
            values["settings"] = json.dumps(values["settings"])
        if isinstance(values.get("license_key_status"), LicenseKeyStatus):
            values["license_key_status"] = values["license_key_status"].value

        with self.session() as session:
            result = session.execute(
                update(PluginRow).where(PluginRow.handle == handle.lower()).values(**values)
            )
            return result.rowcount

    def delete(self, plugin_id: int) -> None:
        """Delete a plugin row and its migration history."""
        with self.session() as session:
            session.execute(delete(MigrationRow).where(MigrationRow.plugin_id == plugin_id))
            session.execute(delete(PluginRow).where(PluginRow.id == plugin_id))

    def migration_history(self, plugin_id: int) -> dict[str, datetime]:
        """Applied migrations for a plugin, oldest first."""
        with self.session() as session:
            rows = session.scalars(
                select(MigrationRow)
                .where(MigrationRow.plugin_id == plugin_id)
                .order_by(MigrationRow.apply_time, MigrationRow.id)
            ).all()
            return {row.name: row.apply_time for row in rows}

    def add_migration(self, plugin_id: int, name: str, type: str = "plugin") -> None:
        with self.session() as session:
            session.add(
                MigrationRow(plugin_id=plugin_id, type=type, name=name, apply_time=utcnow())
            )

    def remove_migration(self, plugin_id: int, name: str) -> None:
        with self.session() as session:
            session.execute(
                delete(MigrationRow).where(
                    MigrationRow.plugin_id == plugin_id, MigrationRow.name == name
                )
            )
