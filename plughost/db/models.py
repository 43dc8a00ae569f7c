from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class PluginRow(Base):
    """
    One row per installed plugin.
    """

    __tablename__ = "plugins"
    id = Column(Integer, primary_key=True)

    handle = Column(String(150), nullable=False, unique=True)
    version = Column(String(50), nullable=False)
    schema_version = Column(String(15), nullable=False)
    license_key = Column(String(24), nullable=True)
    license_key_status = Column(String(20), nullable=False, default="unknown")
    enabled = Column(Boolean, nullable=False, default=False)
    settings = Column(Text, nullable=True)  # JSON
    install_date = Column(DateTime, nullable=False, server_default=func.now())


class MigrationRow(Base):
    """
    Applied migration history, scoped to a plugin.
    """

    __tablename__ = "migrations"
    id = Column(Integer, primary_key=True)

    plugin_id = Column(
        Integer,
        ForeignKey("plugins.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    type = Column(String(10), nullable=False, default="plugin")
    name = Column(String(255), nullable=False)
    apply_time = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (Index("ix_migrations_plugin_name", "plugin_id", "name"),)
